"""Transform raw introspection data into a type registry and root operations.

The registry is built in two passes so that self-referential and
mutually-referential types never trigger recursive expansion:

1. every named type is registered with its kind (and enum values);
2. object / input-object fields are resolved to *name references* into
   that table. Consumers that need a nested type's fields look it up in the
   registry themselves.
"""

import logging
from collections.abc import Iterable, Mapping
from typing import Any

from .errors import SchemaLoadError
from .ir import (
    BUILTIN_SCALARS,
    IRArgument,
    IRField,
    IROperation,
    RegistryIssue,
    ResolvedType,
    SchemaIR,
    TypeKind,
    TypeRef,
    TypeRegistry,
)

logger = logging.getLogger(__name__)

# Introspection queries nest ofType about 7 levels deep; anything far beyond
# that is malformed input.
MAX_TYPE_DEPTH = 32


def normalize_type_ref(raw: Any, _depth: int = 0) -> TypeRef:
    """Convert a raw introspection type reference into a TypeRef.

    The wrapper chain is mirrored exactly. Malformed references degrade to
    an unknown marker instead of raising.
    """
    if not isinstance(raw, Mapping) or _depth > MAX_TYPE_DEPTH:
        return TypeRef.unknown_ref()

    try:
        kind = TypeKind(raw.get("kind"))
    except ValueError:
        return TypeRef.unknown_ref(raw.get("name"))

    if kind.is_wrapper:
        inner = raw.get("ofType")
        if inner is None:
            return TypeRef(kind=kind, of_type=TypeRef.unknown_ref())
        return TypeRef(kind=kind, of_type=normalize_type_ref(inner, _depth + 1))

    name = raw.get("name")
    if not name:
        return TypeRef.unknown_ref()
    return TypeRef(kind=kind, name=name)


def _names(items: Iterable[Any] | None) -> tuple[str, ...]:
    if not items:
        return ()
    return tuple(item["name"] for item in items if isinstance(item, Mapping) and isinstance(item.get("name"), str) and item["name"])


class _RegistryBuilder:
    """Collects types and issues for one registry build."""

    def __init__(self):
        self.types: dict[str, ResolvedType] = {}
        self.issues: list[RegistryIssue] = []

    def _check(self, ref: TypeRef, owner: str, field_name: str | None) -> TypeRef:
        """Degrade references that are malformed or point at unregistered types."""
        base = ref.unwrap()
        if base.unknown:
            self.record(owner, field_name, f"malformed type reference {ref}")
            return ref
        if base.name in self.types or base.name in BUILTIN_SCALARS:
            return ref
        self.record(owner, field_name, f"references unknown type '{base.name}'")
        return ref.replace_base(TypeRef.unknown_ref(base.name))

    def record(self, owner: str, field_name: str | None, message: str):
        issue = RegistryIssue(type_name=owner, field_name=field_name, message=message)
        logger.warning("Registry issue: %s", issue)
        self.issues.append(issue)

    def resolve_ref(self, raw: Any, owner: str, field_name: str | None) -> TypeRef:
        return self._check(normalize_type_ref(raw), owner, field_name)

    def entries(self, items: Iterable[Any] | None, owner: str, what: str) -> list[Mapping[str, Any]]:
        """Well-formed named entries of a field list; the rest are recorded and dropped."""
        kept = []
        for item in items or ():
            if isinstance(item, Mapping) and isinstance(item.get("name"), str) and item["name"]:
                kept.append(item)
            else:
                self.record(owner, None, f"malformed {what} entry {item!r}, skipped")
        return kept

    def argument(self, raw: Mapping[str, Any], owner: str) -> IRArgument:
        return IRArgument(
            name=raw["name"],
            type=self.resolve_ref(raw.get("type"), owner, raw["name"]),
            default_value=raw.get("defaultValue"),
            description=raw.get("description"),
        )

    def field(self, raw: Mapping[str, Any], owner: str) -> IRField:
        path = f"{owner}.{raw['name']}"
        return IRField(
            name=raw["name"],
            type=self.resolve_ref(raw.get("type"), owner, raw["name"]),
            description=raw.get("description"),
            arguments=tuple(self.argument(a, path) for a in self.entries(raw.get("args"), path, "argument")),
            is_deprecated=bool(raw.get("isDeprecated", False)),
            deprecation_reason=raw.get("deprecationReason"),
        )


def _is_builtin(name: str) -> bool:
    return name.startswith("__")


def _resolve_kind(raw: Mapping[str, Any]) -> TypeKind | None:
    try:
        kind = TypeKind(raw.get("kind"))
    except ValueError:
        return None
    return None if kind.is_wrapper else kind


def build_type_registry(types: Iterable[Mapping[str, Any]]) -> TypeRegistry:
    """Build a registry mapping type names to resolved types."""
    types = [t for t in types if isinstance(t, Mapping) and isinstance(t.get("name"), str) and t["name"] and not _is_builtin(t["name"])]
    builder = _RegistryBuilder()

    # Pass 1: register every type by name
    for raw in types:
        kind = _resolve_kind(raw)
        if kind is None:
            builder.record(raw["name"], None, f"unsupported type kind {raw.get('kind')!r}, skipped")
            continue
        builder.types[raw["name"]] = ResolvedType(
            name=raw["name"],
            kind=kind,
            description=raw.get("description"),
            enum_values=_names(raw.get("enumValues")) if kind is TypeKind.ENUM else (),
            possible_types=_names(raw.get("possibleTypes")),
        )

    # Pass 2: shallow field resolution against the complete name table
    for raw in types:
        stub = builder.types.get(raw["name"])
        if stub is None:
            continue
        if stub.kind in (TypeKind.OBJECT, TypeKind.INTERFACE):
            builder.types[stub.name] = ResolvedType(
                name=stub.name,
                kind=stub.kind,
                description=stub.description,
                fields=tuple(builder.field(f, stub.name) for f in builder.entries(raw.get("fields"), stub.name, "field")),
                possible_types=stub.possible_types,
                interfaces=_names(raw.get("interfaces")),
            )
        elif stub.kind is TypeKind.INPUT_OBJECT:
            builder.types[stub.name] = ResolvedType(
                name=stub.name,
                kind=stub.kind,
                description=stub.description,
                input_fields=tuple(builder.argument(f, stub.name) for f in builder.entries(raw.get("inputFields"), stub.name, "input field")),
            )

    logger.debug("Built type registry with %d types (%d issues)", len(builder.types), len(builder.issues))
    return TypeRegistry(builder.types, builder.issues)


def _schema_payload(introspection: Mapping[str, Any]) -> Mapping[str, Any]:
    if "__schema" in introspection:
        return introspection["__schema"]
    data = introspection.get("data")
    if isinstance(data, Mapping) and "__schema" in data:
        return data["__schema"]
    raise SchemaLoadError("introspection payload has no '__schema' entry")


def _root_name(schema: Mapping[str, Any], key: str) -> str | None:
    root = schema.get(key)
    if isinstance(root, Mapping):
        return root.get("name")
    return None


def _operations(registry: TypeRegistry, root_name: str | None, op_type: str) -> list[IROperation]:
    """Flatten the fields of a root type into operations."""
    if root_name is None:
        return []
    return [
        IROperation(
            name=f.name,
            operation_type=op_type,
            arguments=f.arguments,
            return_type=f.type,
            description=f.description,
            is_deprecated=f.is_deprecated,
            deprecation_reason=f.deprecation_reason,
        )
        for f in registry.fields_of(root_name)
    ]


def transform_schema(introspection: Mapping[str, Any]) -> SchemaIR:
    """Transform an introspection response into registry plus operations.

    Accepts either ``{"__schema": ...}`` or a full ``{"data": {"__schema": ...}}``
    response.
    """
    schema = _schema_payload(introspection)
    registry = build_type_registry(schema.get("types") or ())

    queries = _operations(registry, _root_name(schema, "queryType") or "Query", "query")
    mutations = _operations(registry, _root_name(schema, "mutationType"), "mutation")

    logger.info("Transformed schema: %d types, %d queries, %d mutations", len(registry), len(queries), len(mutations))
    return SchemaIR(registry=registry, queries=queries, mutations=mutations)
