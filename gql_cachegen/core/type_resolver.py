"""Describe GraphQL type references as Python types.

Descriptions are data (annotation text, imports, referenced schema types),
not source files; an emitter decides how to lay them out.
"""

from dataclasses import dataclass, field

from .ir import TypeKind, TypeRef, TypeRegistry
from .scalars import ScalarRegistry

# Types that are never emitted as referenced models
SKIP_TYPE_TRACKING = frozenset({
    "Query",
    "Mutation",
    "Subscription",
    "PageInfo",
})


@dataclass(frozen=True)
class TypeDescription:
    """A Python rendering of one type reference."""
    annotation: str
    required: bool
    is_list: bool
    referenced_types: frozenset[str] = frozenset()
    imports: frozenset[str] = frozenset()
    unknown: bool = False


@dataclass
class _Collector:
    referenced: set[str] = field(default_factory=set)
    imports: set[str] = field(default_factory=set)
    unknown: bool = False


def _inner(ref: TypeRef, registry: TypeRegistry, scalars: ScalarRegistry, acc: _Collector) -> str:
    """Annotation without the outer Optional."""
    if ref.kind is TypeKind.NON_NULL:
        if ref.of_type is None:
            acc.unknown = True
            return _scalar(None, scalars, acc)
        return _inner(ref.of_type, registry, scalars, acc)

    if ref.kind is TypeKind.LIST:
        if ref.of_type is None:
            acc.unknown = True
            return f"list[{_scalar(None, scalars, acc)}]"
        return f"list[{_nullable(ref.of_type, registry, scalars, acc)}]"

    if ref.unknown:
        acc.unknown = True
        return _scalar(None, scalars, acc)

    resolved = registry.resolve(ref)
    kind = resolved.kind if resolved else ref.kind
    if kind is TypeKind.SCALAR:
        if resolved is None and not registry.is_known(ref.name):
            acc.unknown = True
        return _scalar(ref.name, scalars, acc)

    if ref.name not in SKIP_TYPE_TRACKING:
        acc.referenced.add(ref.name)
    return ref.name


def _scalar(name: str | None, scalars: ScalarRegistry, acc: _Collector) -> str:
    handler = scalars.get_or_unknown(name)
    if handler.import_statement:
        acc.imports.add(handler.import_statement)
    return handler.python_type


def _nullable(ref: TypeRef, registry: TypeRegistry, scalars: ScalarRegistry, acc: _Collector) -> str:
    inner = _inner(ref, registry, scalars, acc)
    return inner if ref.is_non_null else f"{inner} | None"


def describe_type_ref(ref: TypeRef, registry: TypeRegistry, scalars: ScalarRegistry | None = None) -> TypeDescription:
    """Describe a type reference, e.g. ``[User!]`` -> ``list[User] | None``.

    Object, interface, union, enum and input types are referenced by name
    and reported in ``referenced_types``; their fields are not expanded.
    """
    acc = _Collector()
    annotation = _nullable(ref, registry, scalars or ScalarRegistry(), acc)
    return TypeDescription(
        annotation=annotation,
        required=ref.is_non_null,
        is_list=ref.is_list,
        referenced_types=frozenset(acc.referenced),
        imports=frozenset(acc.imports),
        unknown=acc.unknown,
    )


def describe_fields(type_name: str, registry: TypeRegistry, scalars: ScalarRegistry | None = None) -> dict[str, TypeDescription]:
    """Describe every field (or input field) of a named type."""
    scalars = scalars or ScalarRegistry()
    resolved = registry.resolve(type_name)
    if resolved is None:
        return {}
    if resolved.kind is TypeKind.INPUT_OBJECT:
        return {f.name: describe_type_ref(f.type, registry, scalars) for f in resolved.input_fields}
    return {f.name: describe_type_ref(f.type, registry, scalars) for f in resolved.fields}
