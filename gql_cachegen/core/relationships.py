"""Relationship graph over entities and the scope types derived from it.

Entity names are matched case-insensitively; results keep the spelling used
in the configuration. Ancestor lists are nearest-first.
"""

import logging
from collections import deque
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from .config import EntityRelationship
from .errors import CyclicRelationshipError
from .ir import Table
from .naming import entity_key, foreign_key_for, type_name_for

logger = logging.getLogger(__name__)


class RelationshipGraph:
    """Parent/child graph built once from the declared relationships."""

    def __init__(self, relationships: Mapping[str, EntityRelationship] | None = None):
        self._relationships: dict[str, EntityRelationship] = {}
        self._names: dict[str, str] = {}
        self._children: dict[str, list[str]] = {}

        for child, rel in (relationships or {}).items():
            key = entity_key(child)
            self._relationships[key] = rel
            self._names.setdefault(key, child)
            self._names.setdefault(entity_key(rel.parent), rel.parent)
            self._children.setdefault(entity_key(rel.parent), []).append(key)

    def __contains__(self, entity: str) -> bool:
        return entity_key(entity) in self._relationships

    def __len__(self) -> int:
        return len(self._relationships)

    @property
    def entities(self) -> list[str]:
        """Entities that declare a relationship, in declaration order."""
        return [self._names[key] for key in self._relationships]

    def name_of(self, entity: str) -> str:
        """Configured spelling of an entity name."""
        return self._names.get(entity_key(entity), entity)

    def relationship_for(self, entity: str) -> EntityRelationship | None:
        return self._relationships.get(entity_key(entity))

    def children_of(self, entity: str) -> list[str]:
        return [self._names[key] for key in self._children.get(entity_key(entity), [])]

    def ancestors_of(self, entity: str) -> list[str]:
        """Ancestors of an entity, nearest first.

        An explicit ``ancestors`` declaration is returned verbatim. Otherwise
        parent links are followed until an entity without a relationship is
        reached; revisiting an entity raises CyclicRelationshipError.
        """
        rel = self.relationship_for(entity)
        if rel is None:
            return []
        if rel.ancestors:
            return list(rel.ancestors)

        ancestors: list[str] = []
        visited = [entity_key(entity)]
        current: EntityRelationship | None = rel
        while current is not None:
            key = entity_key(current.parent)
            if key in visited:
                cycle = [self.name_of(k) for k in visited[visited.index(key):]] + [self.name_of(key)]
                raise CyclicRelationshipError(self.name_of(entity), cycle)
            visited.append(key)
            ancestors.append(current.parent)
            current = self._relationships.get(key)
        return ancestors

    def descendants_of(self, entity: str) -> list[str]:
        """All descendants in breadth-first discovery order.

        The entity itself is never included, even when the declarations
        contain a cycle.
        """
        start = entity_key(entity)
        seen = {start}
        descendants: list[str] = []
        queue = deque([start])
        while queue:
            current = queue.popleft()
            for child in self._children.get(current, []):
                if child in seen:
                    continue
                seen.add(child)
                descendants.append(self._names[child])
                queue.append(child)
        return descendants

    def scope_levels(self, entity: str) -> list[str]:
        """Immediate parent followed by the remaining ancestors, de-duplicated."""
        rel = self.relationship_for(entity)
        if rel is None:
            return []
        levels: list[str] = []
        seen: set[str] = set()
        for name in [rel.parent, *self.ancestors_of(entity)]:
            key = entity_key(name)
            if key == entity_key(entity):
                raise CyclicRelationshipError(self.name_of(entity), [self.name_of(entity), *levels, name])
            if key not in seen:
                seen.add(key)
                levels.append(name)
        return levels

    def is_direct_ancestor(self, descendant: str, ancestor: str) -> bool:
        """True when ``descendant`` declares ``ancestor`` as parent or explicit ancestor."""
        rel = self.relationship_for(descendant)
        if rel is None:
            return False
        key = entity_key(ancestor)
        if entity_key(rel.parent) == key:
            return True
        return any(entity_key(a) == key for a in rel.ancestors or ())

    def declared_foreign_key(self, ancestor: str, preferred: Iterable[str] = ()) -> str | None:
        """Foreign key some relationship declares directly into ``ancestor``.

        Relationships of the ``preferred`` entities are consulted first, in
        order, then the whole map in declaration order.
        """
        key = entity_key(ancestor)
        for name in preferred:
            rel = self.relationship_for(name)
            if rel is not None and entity_key(rel.parent) == key:
                return rel.foreign_key
        for rel in self._relationships.values():
            if entity_key(rel.parent) == key:
                return rel.foreign_key
        return None


@dataclass(frozen=True)
class ScopeField:
    """One optional foreign key in a scope, for one ancestor level."""
    ancestor: str
    foreign_key: str
    declared: bool  # False when the name was derived as <ancestor>Id


@dataclass(frozen=True)
class ScopeType:
    """Optional ancestor identifiers that narrow an entity's cache keys."""
    entity: str
    type_name: str
    fields: tuple[ScopeField, ...]

    @property
    def foreign_keys(self) -> list[str]:
        return [f.foreign_key for f in self.fields]

    def field_for(self, ancestor: str) -> ScopeField | None:
        key = entity_key(ancestor)
        for f in self.fields:
            if entity_key(f.ancestor) == key:
                return f
        return None


def derive_scope_type(entity: str, graph: RelationshipGraph, type_name: str | None = None) -> ScopeType | None:
    """Derive the scope of an entity, nearest level first.

    The immediate parent's key is the entity's own ``foreign_key``. For
    deeper levels a foreign key declared into that ancestor wins over the
    derived ``<ancestor>Id``.
    """
    rel = graph.relationship_for(entity)
    if rel is None:
        return None

    levels = graph.scope_levels(entity)
    fields: list[ScopeField] = []
    used: set[str] = set()
    for depth, ancestor in enumerate(levels):
        if depth == 0:
            fk, declared = rel.foreign_key, True
        else:
            fk = graph.declared_foreign_key(ancestor, preferred=levels[:depth])
            declared = fk is not None
            fk = fk or foreign_key_for(ancestor)
        if fk in used:
            logger.warning("Scope of '%s': foreign key '%s' already used by a nearer level, skipping '%s'", entity, fk, ancestor)
            continue
        used.add(fk)
        fields.append(ScopeField(ancestor=ancestor, foreign_key=fk, declared=declared))

    name = type_name or type_name_for(graph.name_of(entity))
    return ScopeType(entity=graph.name_of(entity), type_name=f"{name}Scope", fields=tuple(fields))


def validate_relationships(tables: Iterable[Table], graph: RelationshipGraph) -> list[str]:
    """Check declared relationships against table metadata.

    Returns human-readable warnings; nothing here is fatal.
    """
    by_key = {entity_key(t.name): t for t in tables}
    warnings: list[str] = []
    for entity in graph.entities:
        rel = graph.relationship_for(entity)
        table = by_key.get(entity_key(entity))
        if table is None:
            warnings.append(f"Relationship declared for unknown entity '{entity}'")
        elif table.fields and rel.foreign_key not in table.field_names:
            warnings.append(f"Foreign key '{rel.foreign_key}' is not a field of '{table.name}'")
        if entity_key(rel.parent) not in by_key:
            warnings.append(f"Parent '{rel.parent}' of '{entity}' is not a known entity")
        elif table is not None and table.relations_of_kind("belongs_to"):
            targets = {entity_key(r.table) for r in table.relations_of_kind("belongs_to")}
            if entity_key(rel.parent) not in targets:
                warnings.append(f"'{table.name}' has no belongs-to relation to '{rel.parent}'")
    for message in warnings:
        logger.warning(message)
    return warnings
