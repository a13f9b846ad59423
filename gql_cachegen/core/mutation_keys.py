"""Mutation key definitions for tracking in-flight mutations.

Per entity::

    all            ('mutation', 'table')
    create(fk?)    ('mutation', 'table', 'create'[, {fk: ...}])
    update(id)     ('mutation', 'table', 'update', id)
    delete(id)     ('mutation', 'table', 'delete', id)

Per custom mutation: ``('mutation', name)``, extended with an optional
identifier when the operation takes arguments so that concurrent calls of
the same mutation can be told apart.
"""

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from .ir import IROperation, Table
from .keys import Extend, KeyFactory, KeyParam, KeyRule, Literal, Record, Value
from .naming import entity_key, lc_first, mutation_keys_name
from .relationships import RelationshipGraph

logger = logging.getLogger(__name__)


@dataclass(frozen=True, kw_only=True)
class MutationKeyDef(KeyFactory):
    """Mutation keys of one entity."""
    entity: str
    entity_key: str


def derive_mutation_keys(table: Table, graph: RelationshipGraph) -> MutationKeyDef:
    """Derive the mutation keys of one entity.

    ``update`` / ``delete`` are only derived when the table exposes those
    mutations; tables without CRUD metadata get all of them.
    """
    key = entity_key(table.name)
    singular = table.singular_name or lc_first(table.name)
    rel = graph.relationship_for(table.name)

    rules = [KeyRule("all", (), (Literal("mutation"), Literal(key)), f"All {singular} mutation keys")]

    if rel is not None:
        fk = KeyParam(rel.foreign_key, "string", optional=True)
        create = KeyRule("create", (fk,), (Extend("all"), Literal("create"), Record(rel.foreign_key, rel.foreign_key)), f"Create {singular} mutation key")
    else:
        create = KeyRule("create", (), (Extend("all"), Literal("create")), f"Create {singular} mutation key")
    rules.append(create)

    if table.query is None or table.query.update:
        rules.append(KeyRule("update", (KeyParam("id", "id"),), (Extend("all"), Literal("update"), Value("id")), f"Update {singular} mutation key"))
    if table.query is None or table.query.delete:
        rules.append(KeyRule("delete", (KeyParam("id", "id"),), (Extend("all"), Literal("delete"), Value("id")), f"Delete {singular} mutation key"))

    return MutationKeyDef(name=mutation_keys_name(table.name), rules=tuple(rules), entity=table.name, entity_key=key)


def derive_custom_mutation_keys(operations: Iterable[IROperation]) -> KeyFactory | None:
    """One key per custom mutation; None when there are no custom mutations."""
    rules = []
    for op in operations:
        if op.operation_type != "mutation":
            continue
        if op.has_arguments:
            param = KeyParam("identifier", "string", optional=True)
            rules.append(KeyRule(op.name, (param,), (Literal("mutation"), Literal(op.name), Value("identifier")), f"Mutation key for {op.name}"))
        else:
            rules.append(KeyRule(op.name, (), (Literal("mutation"), Literal(op.name)), f"Mutation key for {op.name}"))
    if not rules:
        return None
    return KeyFactory(name="customMutationKeys", rules=tuple(rules))


def derive_all_mutation_keys(tables: Iterable[Table], graph: RelationshipGraph) -> dict[str, MutationKeyDef]:
    keys = {table.name: derive_mutation_keys(table, graph) for table in tables}
    logger.debug("Derived %d mutation key factories", len(keys))
    return keys
