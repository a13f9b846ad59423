"""Query key factory definitions.

Keys follow the hierarchical query-key-factory layout::

    all                      ('table',)
    byDatabase(databaseId)   ('table', {'databaseId': ...})
    scoped(scope)            most specific of the above for a partial scope
    lists(scope)             (*scoped(scope), 'list')
    list(variables, scope)   (*lists(scope), variables)
    details(scope)           (*scoped(scope), 'detail')
    detail(id, scope)        (*details(scope), id)

Entities without a relationship (or with scoped keys disabled) get the same
rules without the scope parameter, extending ``all`` directly. Because every
rule extends a shorter one, invalidating a key also invalidates every key it
is a prefix of.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .ir import IROperation, Table
from .keys import (
    Extend,
    KeyFactory,
    KeyParam,
    KeyRule,
    Literal,
    Record,
    ScopeBranch,
    ScopeResolution,
    Value,
)
from .naming import accessor_name, entity_key, keys_name, lc_first
from .relationships import RelationshipGraph, ScopeType, derive_scope_type

logger = logging.getLogger(__name__)

SCOPED_RULE = "scoped"


@dataclass(frozen=True, kw_only=True)
class KeyFactoryDef(KeyFactory):
    """Query keys of one entity."""
    entity: str
    entity_key: str
    scope: ScopeType | None = None

    @property
    def is_scoped(self) -> bool:
        return self.scope is not None

    def accessor_for(self, ancestor: str) -> str | None:
        """Name of the accessor scoping this entity to ``ancestor``, if any."""
        if self.scope is None or self.scope.field_for(ancestor) is None:
            return None
        return accessor_name(self.scope.field_for(ancestor).ancestor)

    def _scope_args(self, scope: Mapping[str, Any] | None) -> tuple[Any, ...]:
        return (scope,) if self.is_scoped else ()

    def all_key(self) -> tuple[Any, ...]:
        return self.build("all")

    def lists_key(self, scope: Mapping[str, Any] | None = None) -> tuple[Any, ...]:
        return self.build("lists", *self._scope_args(scope))

    def list_key(self, variables: Any = None, scope: Mapping[str, Any] | None = None) -> tuple[Any, ...]:
        return self.build("list", variables, *self._scope_args(scope))

    def detail_key(self, id: Any, scope: Mapping[str, Any] | None = None) -> tuple[Any, ...]:
        return self.build("detail", id, *self._scope_args(scope))


def _singular(table: Table) -> str:
    return table.singular_name or lc_first(table.name)


def _simple_rules(singular: str) -> list[KeyRule]:
    variables = KeyParam("variables", "variables", optional=True)
    return [
        KeyRule("lists", (), (Extend("all"), Literal("list")), "List query keys"),
        KeyRule("list", (variables,), (Extend("lists"), Value("variables")), "List query key with variables"),
        KeyRule("details", (), (Extend("all"), Literal("detail")), "Detail query keys"),
        KeyRule("detail", (KeyParam("id", "id"),), (Extend("details"), Value("id")), f"Detail query key for a specific {singular}"),
    ]


def _scoped_rules(singular: str, scope: ScopeType) -> list[KeyRule]:
    scope_param = KeyParam("scope", "scope", optional=True, scope_type=scope.type_name)
    variables = KeyParam("variables", "variables", optional=True)
    return [
        KeyRule("lists", (scope_param,), (Extend(SCOPED_RULE, ("scope",)), Literal("list")), "List query keys (optionally scoped)"),
        KeyRule("list", (variables, scope_param), (Extend("lists", ("scope",)), Value("variables")), "List query key with variables"),
        KeyRule("details", (scope_param,), (Extend(SCOPED_RULE, ("scope",)), Literal("detail")), "Detail query keys (optionally scoped)"),
        KeyRule(
            "detail",
            (KeyParam("id", "id"), scope_param),
            (Extend("details", ("scope",)), Value("id")),
            f"Detail query key for a specific {singular}",
        ),
    ]


def derive_key_factory(table: Table, graph: RelationshipGraph, scoped: bool = True) -> KeyFactoryDef:
    """Derive the query key factory of one entity.

    Raises CyclicRelationshipError when the entity's ancestor chain is cyclic.
    """
    type_name = table.name
    key = entity_key(type_name)
    singular = _singular(table)

    rules = [KeyRule("all", (), (Literal(key),), f"All {singular} queries")]
    scope = derive_scope_type(type_name, graph, type_name) if scoped else None

    if scope is None:
        rules.extend(_simple_rules(singular))
        return KeyFactoryDef(name=keys_name(type_name), rules=tuple(rules), entity=type_name, entity_key=key)

    branches = []
    for f in scope.fields:
        accessor = accessor_name(f.ancestor)
        rules.append(
            KeyRule(
                accessor,
                (KeyParam(f.foreign_key, "id"),),
                (Literal(key), Record(f.foreign_key, f.foreign_key)),
                f"{type_name} queries scoped to a specific {lc_first(f.ancestor)}",
            )
        )
        branches.append(ScopeBranch(foreign_key=f.foreign_key, accessor=accessor))
    rules.extend(_scoped_rules(singular, scope))

    return KeyFactoryDef(
        name=keys_name(type_name),
        rules=tuple(rules),
        scope_resolution=ScopeResolution(SCOPED_RULE, tuple(branches), "all", scope.type_name),
        description="Get scope-aware base key",
        entity=type_name,
        entity_key=key,
        scope=scope,
    )


def derive_key_factories(tables: Iterable[Table], graph: RelationshipGraph, scoped: bool = True) -> dict[str, KeyFactoryDef]:
    """Key factories for all tables, keyed by type name."""
    factories = {}
    for table in tables:
        factories[table.name] = derive_key_factory(table, graph, scoped)
    logger.debug("Derived %d query key factories", len(factories))
    return factories


def derive_custom_query_keys(operations: Iterable[IROperation]) -> KeyFactory | None:
    """One key per custom query: ``(name,)`` or ``(name, variables)``."""
    rules = []
    for op in operations:
        if op.operation_type != "query":
            continue
        if op.has_arguments:
            param = KeyParam("variables", "variables", optional=not op.has_required_arguments)
            rules.append(KeyRule(op.name, (param,), (Literal(op.name), Value("variables")), f"Query key for {op.name}"))
        else:
            rules.append(KeyRule(op.name, (), (Literal(op.name),), f"Query key for {op.name}"))
    if not rules:
        return None
    return KeyFactory(name="customQueryKeys", rules=tuple(rules))
