"""Exceptions raised by the cache-key generator."""


class CodegenError(Exception):
    """Base class for all generator errors."""


class SchemaLoadError(CodegenError):
    """Raised when introspection data or table metadata cannot be loaded."""


class RelationshipError(CodegenError):
    """Raised when the relationship configuration is structurally invalid."""


class CyclicRelationshipError(RelationshipError):
    """Raised when following parent links revisits an entity."""

    def __init__(self, entity: str, cycle: list[str]):
        self.entity = entity
        self.cycle = cycle
        path = " -> ".join(cycle)
        super().__init__(f"Cyclic relationship declared for '{entity}': {path}")
