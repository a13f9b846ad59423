"""Scalar mappings for type descriptions.

Maps GraphQL scalars to the Python type names a downstream emitter should
use, together with the import each one needs.

Example usage:
    from gql_cachegen.core.scalars import ScalarRegistry, ScalarType

    registry = ScalarRegistry()
    registry.register("Money", ScalarType("Decimal", "from decimal import Decimal"))
"""

from dataclasses import dataclass
from typing import Protocol, runtime_checkable


@runtime_checkable
class ScalarHandler(Protocol):
    """Protocol for scalar mappings.

    Attributes:
        python_type: The Python type name (e.g., "datetime", "Decimal")
        import_statement: The import needed for this type, or None for builtins
    """

    python_type: str
    import_statement: str | None


@dataclass(frozen=True)
class ScalarType:
    """A plain scalar mapping."""
    python_type: str
    import_statement: str | None = None


BUILTIN_TYPES = {
    "String": ScalarType("str"),
    "ID": ScalarType("str"),
    "Int": ScalarType("int"),
    "Float": ScalarType("float"),
    "Boolean": ScalarType("bool"),
}

DEFAULT_CUSTOM_TYPES = {
    "DateTime": ScalarType("datetime", "from datetime import datetime"),
    "Datetime": ScalarType("datetime", "from datetime import datetime"),
    "Date": ScalarType("date", "from datetime import date"),
    "Time": ScalarType("time", "from datetime import time"),
    "UUID": ScalarType("UUID", "from uuid import UUID"),
    "JSON": ScalarType("Any", "from typing import Any"),
    "JSONObject": ScalarType("dict[str, Any]", "from typing import Any"),
    "BigInt": ScalarType("int"),
    "BigFloat": ScalarType("Decimal", "from decimal import Decimal"),
    "Cursor": ScalarType("str"),
}

UNKNOWN_TYPE = ScalarType("Any", "from typing import Any")


class ScalarRegistry:
    """Registry of scalar mappings.

    Example:
        registry = ScalarRegistry()
        handler = registry.get("DateTime")
        if handler:
            python_type = handler.python_type  # "datetime"
    """

    def __init__(self, unknown: ScalarHandler = UNKNOWN_TYPE):
        self._handlers: dict[str, ScalarHandler] = {}
        self.unknown = unknown
        self._register_defaults()

    def _register_defaults(self):
        """Register built-in default mappings."""
        for name, handler in {**BUILTIN_TYPES, **DEFAULT_CUSTOM_TYPES}.items():
            self.register(name, handler)

    def register(self, scalar_name: str, handler: ScalarHandler):
        """Register a mapping for a scalar type."""
        self._handlers[scalar_name] = handler

    def get(self, scalar_name: str) -> ScalarHandler | None:
        """Get the mapping for a scalar type, or None if not registered."""
        return self._handlers.get(scalar_name)

    def get_or_unknown(self, scalar_name: str | None) -> ScalarHandler:
        if scalar_name is None:
            return self.unknown
        return self._handlers.get(scalar_name, self.unknown)

    def has(self, scalar_name: str) -> bool:
        """Check if a mapping is registered for a scalar type."""
        return scalar_name in self._handlers

    def get_all_imports(self) -> set:
        """Get all import statements needed for registered mappings."""
        return {h.import_statement for h in self._handlers.values() if h.import_statement}
