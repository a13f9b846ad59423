"""Cache invalidation and removal helper definitions.

Every entity gets ``all``, ``lists`` and ``detail`` invalidation actions.
Entities with descendants also get ``withChildren``, which touches the
entity's own detail and list keys and then each descendant (breadth-first):

- through the descendant's ``by<Entity>`` accessor when the descendant
  declares this entity as its parent or as an explicit ancestor;
- through the descendant's whole ``all`` key otherwise (the relationship is
  only an ancestor hop, so there is no scoped accessor to narrow by).

Remove helpers are for hard deletes: they only ever touch the deleted
entity's detail key and never cascade.
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from .ir import Table
from .keys import KeyParam
from .naming import entity_key, lc_first
from .query_keys import KeyFactoryDef
from .relationships import RelationshipGraph

logger = logging.getLogger(__name__)

INVALIDATE = "invalidate"
REMOVE = "remove"


@dataclass(frozen=True)
class KeyTarget:
    """A key touched by an action: ``<factory>.<rule>(*args)``."""
    entity: str
    factory: str
    rule: str
    args: tuple[str, ...] = ()  # names of the action's parameters, passed through

    def resolve(self, factories: Mapping[str, KeyFactoryDef], values: Mapping[str, Any]) -> tuple[Any, ...]:
        return factories[self.entity].build(self.rule, *(values.get(a) for a in self.args))


@dataclass(frozen=True)
class CacheAction:
    """A helper that invalidates or removes a set of keys."""
    name: str
    operation: str  # INVALIDATE or REMOVE
    params: tuple[KeyParam, ...]
    targets: tuple[KeyTarget, ...]
    description: str = ""

    def resolve(self, factories: Mapping[str, KeyFactoryDef], *args: Any, **kwargs: Any) -> list[tuple[Any, ...]]:
        """Concrete keys this action touches for the given arguments."""
        values = dict(zip((p.name for p in self.params), args))
        values.update(kwargs)
        return [target.resolve(factories, values) for target in self.targets]


@dataclass(frozen=True)
class InvalidationDef:
    """Invalidation helpers of one entity."""
    entity: str
    actions: tuple[CacheAction, ...]
    cascades_to: tuple[str, ...] = ()

    @property
    def has_cascade(self) -> bool:
        return any(a.name == "withChildren" for a in self.actions)

    def action(self, name: str) -> CacheAction:
        for action in self.actions:
            if action.name == name:
                return action
        raise KeyError(f"{self.entity} has no invalidation action '{name}'")

    def resolve_cascade(self, id: Any, factories: Mapping[str, KeyFactoryDef]) -> list[tuple[Any, ...]]:
        return self.action("withChildren").resolve(factories, id)


@dataclass(frozen=True)
class RemoveDef:
    """Remove helper of one entity."""
    entity: str
    action: CacheAction


def _id_param() -> KeyParam:
    return KeyParam("id", "id")


def _scope_params(factory: KeyFactoryDef) -> tuple[KeyParam, ...]:
    if factory.scope is None:
        return ()
    return (KeyParam("scope", "scope", optional=True, scope_type=factory.scope.type_name),)


def _target(factory: KeyFactoryDef, rule: str, *args: str) -> KeyTarget:
    return KeyTarget(entity=factory.entity, factory=factory.name, rule=rule, args=args)


def _factory_for(name: str, factories: Mapping[str, KeyFactoryDef]) -> KeyFactoryDef | None:
    key = entity_key(name)
    for factory in factories.values():
        if factory.entity_key == key:
            return factory
    return None


def _cascade_action(
    table: Table,
    factory: KeyFactoryDef,
    descendants: list[str],
    graph: RelationshipGraph,
    factories: Mapping[str, KeyFactoryDef],
) -> CacheAction:
    targets = [_target(factory, "detail", "id"), _target(factory, "lists")]
    for descendant in descendants:
        child = _factory_for(descendant, factories)
        if child is None:
            logger.debug("No table for descendant '%s' of '%s', skipping", descendant, table.name)
            continue
        accessor = child.accessor_for(table.name) if graph.is_direct_ancestor(descendant, table.name) else None
        if accessor is not None:
            targets.append(_target(child, accessor, "id"))
        else:
            targets.append(_target(child, "all"))
    singular = table.singular_name or lc_first(table.name)
    return CacheAction(
        name="withChildren",
        operation=INVALIDATE,
        params=(_id_param(),),
        targets=tuple(targets),
        description=f"Invalidate {singular} and all child entities. Cascades to: {', '.join(descendants)}",
    )


def derive_invalidation(
    table: Table,
    graph: RelationshipGraph,
    factories: Mapping[str, KeyFactoryDef],
    cascade: bool = True,
) -> InvalidationDef:
    """Derive the invalidation helpers of one entity."""
    factory = factories[table.name]
    singular = table.singular_name or lc_first(table.name)
    scope = _scope_params(factory)
    scope_args = ("scope",) if scope else ()

    actions = [
        CacheAction("all", INVALIDATE, (), (_target(factory, "all"),), f"Invalidate all {singular} queries"),
        CacheAction("lists", INVALIDATE, scope, (_target(factory, "lists", *scope_args),), f"Invalidate {singular} list queries"),
        CacheAction(
            "detail",
            INVALIDATE,
            (_id_param(), *scope),
            (_target(factory, "detail", "id", *scope_args),),
            f"Invalidate a specific {singular}",
        ),
    ]

    descendants = graph.descendants_of(table.name)
    if cascade and descendants:
        actions.append(_cascade_action(table, factory, descendants, graph, factories))

    return InvalidationDef(entity=table.name, actions=tuple(actions), cascades_to=tuple(descendants) if cascade else ())


def derive_remove(table: Table, factories: Mapping[str, KeyFactoryDef]) -> RemoveDef:
    """Derive the remove helper of one entity; it never cascades."""
    factory = factories[table.name]
    singular = table.singular_name or lc_first(table.name)
    scope = _scope_params(factory)
    action = CacheAction(
        name=singular,
        operation=REMOVE,
        params=(_id_param(), *scope),
        targets=(_target(factory, "detail", "id", *(("scope",) if scope else ())),),
        description=f"Remove {singular} from cache",
    )
    return RemoveDef(entity=table.name, action=action)


def derive_invalidations(
    tables: Iterable[Table],
    graph: RelationshipGraph,
    factories: Mapping[str, KeyFactoryDef],
    cascade: bool = True,
) -> tuple[dict[str, InvalidationDef], dict[str, RemoveDef]]:
    """Invalidation and remove helpers for all tables, keyed by type name."""
    invalidations: dict[str, InvalidationDef] = {}
    removals: dict[str, RemoveDef] = {}
    for table in tables:
        invalidations[table.name] = derive_invalidation(table, graph, factories, cascade)
        removals[table.name] = derive_remove(table, factories)
    return invalidations, removals
