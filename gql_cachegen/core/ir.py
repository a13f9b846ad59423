"""Intermediate Representation (IR) for introspected GraphQL schemas.

This module defines dataclasses that describe schema types, root operations
and table metadata in a language-agnostic way, suitable for deriving cache
keys and for downstream emitters.
"""

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class TypeKind(str, Enum):
    """GraphQL type kinds as reported by introspection."""
    SCALAR = "SCALAR"
    OBJECT = "OBJECT"
    INTERFACE = "INTERFACE"
    UNION = "UNION"
    ENUM = "ENUM"
    INPUT_OBJECT = "INPUT_OBJECT"
    LIST = "LIST"
    NON_NULL = "NON_NULL"

    @property
    def is_wrapper(self) -> bool:
        return self in (TypeKind.LIST, TypeKind.NON_NULL)


# Scalars every GraphQL schema has, whether or not introspection lists them
BUILTIN_SCALARS = frozenset({"String", "Int", "Float", "Boolean", "ID"})


@dataclass(frozen=True)
class TypeRef:
    """A (possibly wrapped) reference to a named type.

    Wrappers (LIST, NON_NULL) carry ``of_type``; named kinds carry ``name``.
    ``unknown`` marks a degraded reference: a malformed wrapper or a name
    that does not resolve in the registry. ``name`` keeps the original type
    name when one was present, for diagnostics.
    """
    kind: TypeKind
    name: str | None = None
    of_type: "TypeRef | None" = None
    unknown: bool = False

    @classmethod
    def unknown_ref(cls, name: str | None = None) -> "TypeRef":
        return cls(kind=TypeKind.SCALAR, name=name, unknown=True)

    def unwrap(self) -> "TypeRef":
        """Return the innermost named reference."""
        current = self
        while current.of_type is not None:
            current = current.of_type
        return current

    @property
    def base_name(self) -> str | None:
        return self.unwrap().name

    @property
    def base_kind(self) -> TypeKind:
        return self.unwrap().kind

    @property
    def is_non_null(self) -> bool:
        return self.kind is TypeKind.NON_NULL

    @property
    def is_list(self) -> bool:
        """True for ``[T]`` and ``[T]!``."""
        if self.kind is TypeKind.LIST:
            return True
        return self.kind is TypeKind.NON_NULL and self.of_type is not None and self.of_type.kind is TypeKind.LIST

    @property
    def has_unknown(self) -> bool:
        return self.unwrap().unknown

    def replace_base(self, base: "TypeRef") -> "TypeRef":
        """Return a copy with the innermost named reference swapped for ``base``."""
        if self.of_type is None:
            return base
        return TypeRef(kind=self.kind, of_type=self.of_type.replace_base(base))

    def __str__(self) -> str:
        if self.kind is TypeKind.NON_NULL:
            return f"{self.of_type}!"
        if self.kind is TypeKind.LIST:
            return f"[{self.of_type}]"
        if self.unknown:
            return f"<unknown {self.name}>" if self.name else "<unknown>"
        return self.name or "<unnamed>"


@dataclass(frozen=True)
class IRField:
    """A field on an OBJECT or INTERFACE type."""
    name: str
    type: TypeRef
    description: str | None = None
    arguments: tuple["IRArgument", ...] = ()
    is_deprecated: bool = False
    deprecation_reason: str | None = None


@dataclass(frozen=True)
class IRArgument:
    """An operation argument or an INPUT_OBJECT input field."""
    name: str
    type: TypeRef
    default_value: str | None = None
    description: str | None = None

    @property
    def is_required(self) -> bool:
        return self.type.is_non_null and self.default_value is None


@dataclass(frozen=True)
class ResolvedType:
    """A named type in the registry.

    Fields hold name references only (see ``TypeRef``); nested types are
    looked up through the registry on demand.
    """
    name: str
    kind: TypeKind
    description: str | None = None
    fields: tuple[IRField, ...] = ()
    input_fields: tuple[IRArgument, ...] = ()
    enum_values: tuple[str, ...] = ()
    possible_types: tuple[str, ...] = ()
    interfaces: tuple[str, ...] = ()

    def get_field(self, name: str) -> IRField | None:
        for f in self.fields:
            if f.name == name:
                return f
        return None


@dataclass(frozen=True)
class RegistryIssue:
    """A non-fatal problem recorded while building the registry."""
    type_name: str
    field_name: str | None
    message: str

    def __str__(self) -> str:
        where = f"{self.type_name}.{self.field_name}" if self.field_name else self.type_name
        return f"{where}: {self.message}"


class TypeRegistry(Mapping[str, ResolvedType]):
    """Read-only mapping of type name to ResolvedType."""

    def __init__(self, types: dict[str, ResolvedType], issues: list[RegistryIssue] | None = None):
        self._types = dict(types)
        self.issues: tuple[RegistryIssue, ...] = tuple(issues or ())

    def __getitem__(self, name: str) -> ResolvedType:
        return self._types[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._types)

    def __len__(self) -> int:
        return len(self._types)

    def is_known(self, name: str | None) -> bool:
        return name is not None and (name in self._types or name in BUILTIN_SCALARS)

    def resolve(self, ref: TypeRef | str) -> ResolvedType | None:
        """Look up the named type behind a reference (or a bare name)."""
        name = ref if isinstance(ref, str) else ref.base_name
        if name is None:
            return None
        if isinstance(ref, TypeRef) and ref.has_unknown:
            return None
        return self._types.get(name)

    def fields_of(self, ref: TypeRef | str) -> tuple[IRField, ...]:
        """Fields of an OBJECT/INTERFACE type; empty for anything else."""
        resolved = self.resolve(ref)
        return resolved.fields if resolved else ()

    def input_fields_of(self, ref: TypeRef | str) -> tuple[IRArgument, ...]:
        resolved = self.resolve(ref)
        return resolved.input_fields if resolved else ()

    def of_kind(self, kind: TypeKind) -> list[ResolvedType]:
        return [t for t in self._types.values() if t.kind is kind]


@dataclass(frozen=True)
class IROperation:
    """A root query or mutation field."""
    name: str
    operation_type: str  # 'query' or 'mutation'
    arguments: tuple[IRArgument, ...]
    return_type: TypeRef
    description: str | None = None
    is_deprecated: bool = False
    deprecation_reason: str | None = None

    @property
    def has_arguments(self) -> bool:
        return len(self.arguments) > 0

    @property
    def has_required_arguments(self) -> bool:
        return any(arg.type.is_non_null for arg in self.arguments)

    @property
    def return_type_name(self) -> str | None:
        return self.return_type.base_name


@dataclass(frozen=True)
class TableField:
    """A column exposed on a table entity."""
    name: str
    gql_type: str
    is_array: bool = False


@dataclass(frozen=True)
class TableRelation:
    """A relation descriptor from table metadata."""
    kind: str  # 'belongs_to', 'has_one', 'has_many' or 'many_to_many'
    field_name: str | None
    table: str  # referenced / referencing / right table, depending on kind
    keys: tuple[str, ...] = ()


@dataclass(frozen=True)
class TableQueryNames:
    """Canonical CRUD operation names generated for a table."""
    all: str
    one: str | None
    create: str
    update: str | None = None
    delete: str | None = None


@dataclass(frozen=True)
class Table:
    """A schema entity backed by a storage-layer table."""
    name: str  # PascalCase type name, e.g. "User"
    fields: tuple[TableField, ...] = ()
    relations: tuple[TableRelation, ...] = ()
    query: TableQueryNames | None = None
    singular_name: str | None = None
    plural_name: str | None = None

    @property
    def field_names(self) -> set[str]:
        return {f.name for f in self.fields}

    def relations_of_kind(self, kind: str) -> list[TableRelation]:
        return [r for r in self.relations if r.kind == kind]


@dataclass
class SchemaIR:
    """Everything derived from one introspection payload."""
    registry: TypeRegistry
    queries: list[IROperation] = field(default_factory=list)
    mutations: list[IROperation] = field(default_factory=list)
    tables: list[Table] = field(default_factory=list)

    @property
    def all_operations(self) -> list[IROperation]:
        """Return all queries and mutations."""
        return self.queries + self.mutations

    def get_table(self, name: str) -> Table | None:
        lowered = name.lower()
        for table in self.tables:
            if table.name.lower() == lowered:
                return table
        return None


def as_plain(value: Any) -> Any:
    """Convert IR / definition objects into JSON-friendly structures."""
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, TypeRef):
        return str(value)
    if isinstance(value, Mapping):
        return {str(k): as_plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple, set, frozenset)):
        return [as_plain(v) for v in value]
    if hasattr(value, "__dataclass_fields__"):
        return {
            name: as_plain(getattr(value, name))
            for name in value.__dataclass_fields__
            if not name.startswith("_")
        }
    return value
