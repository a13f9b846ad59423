"""Tests for the relationship graph and scope types."""

import logging

import pytest

from gql_cachegen.core.config import EntityRelationship
from gql_cachegen.core.errors import CyclicRelationshipError
from gql_cachegen.core.ir import Table, TableField, TableRelation
from gql_cachegen.core.relationships import RelationshipGraph, derive_scope_type, validate_relationships


def rel(parent, foreign_key, ancestors=None):
    return EntityRelationship(parent=parent, foreign_key=foreign_key, ancestors=ancestors)


@pytest.fixture
def graph():
    """organization <- database <- table <- field, database <- view."""
    return RelationshipGraph({
        "database": rel("organization", "organizationId"),
        "table": rel("database", "databaseId"),
        "view": rel("database", "databaseId"),
        "field": rel("table", "tableId"),
    })


# =============================================================================
# Graph queries
# =============================================================================


class TestAncestors:
    """Tests for ancestor resolution."""

    def test_walks_parent_chain_nearest_first(self, graph):
        assert graph.ancestors_of("field") == ["table", "database", "organization"]

    def test_root_has_no_ancestors(self, graph):
        assert graph.ancestors_of("organization") == []

    def test_two_level_chain(self):
        graph = RelationshipGraph({"c": rel("b", "bId"), "b": rel("a", "aId")})
        assert graph.ancestors_of("c") == ["b", "a"]

    def test_explicit_ancestors_are_verbatim(self):
        graph = RelationshipGraph({
            "table": rel("database", "databaseId", ["organization"]),
            "database": rel("organization", "organizationId"),
        })
        assert graph.ancestors_of("table") == ["organization"]

    def test_case_insensitive_lookup(self, graph):
        assert graph.ancestors_of("Field") == ["table", "database", "organization"]
        assert "FIELD" in graph

    def test_cycle_raises(self):
        graph = RelationshipGraph({"a": rel("b", "bId"), "b": rel("a", "aId")})
        with pytest.raises(CyclicRelationshipError) as exc_info:
            graph.ancestors_of("a")
        assert exc_info.value.entity == "a"
        assert exc_info.value.cycle == ["a", "b", "a"]
        assert "a -> b -> a" in str(exc_info.value)

    def test_self_parent_raises(self):
        graph = RelationshipGraph({"node": rel("node", "parentId")})
        with pytest.raises(CyclicRelationshipError):
            graph.ancestors_of("node")


class TestDescendants:
    """Tests for descendant resolution."""

    def test_breadth_first_order(self, graph):
        assert graph.descendants_of("organization") == ["database", "table", "view", "field"]

    def test_leaf_has_none(self, graph):
        assert graph.descendants_of("field") == []

    def test_children(self, graph):
        assert graph.children_of("database") == ["table", "view"]

    def test_cycle_never_includes_self(self):
        graph = RelationshipGraph({"a": rel("b", "bId"), "b": rel("a", "aId")})
        assert graph.descendants_of("a") == ["b"]
        assert graph.descendants_of("b") == ["a"]


class TestScopeLevels:
    """Tests for scope_levels and is_direct_ancestor."""

    def test_parent_then_ancestors(self, graph):
        assert graph.scope_levels("field") == ["table", "database", "organization"]

    def test_explicit_ancestors_without_parent(self):
        graph = RelationshipGraph({"table": rel("database", "databaseId", ["organization"])})
        assert graph.scope_levels("table") == ["database", "organization"]

    def test_explicit_ancestors_including_parent(self):
        graph = RelationshipGraph({"table": rel("database", "databaseId", ["database", "organization"])})
        assert graph.scope_levels("table") == ["database", "organization"]

    def test_entity_in_own_ancestors_raises(self):
        graph = RelationshipGraph({"field": rel("table", "tableId", ["table", "field"])})
        with pytest.raises(CyclicRelationshipError):
            graph.scope_levels("field")

    def test_is_direct_ancestor(self, graph):
        assert graph.is_direct_ancestor("field", "Table")
        assert not graph.is_direct_ancestor("field", "database")

    def test_explicit_ancestor_is_direct(self):
        graph = RelationshipGraph({"field": rel("table", "tableId", ["table", "database"])})
        assert graph.is_direct_ancestor("field", "database")


# =============================================================================
# Scope types
# =============================================================================


class TestDeriveScopeType:
    """Tests for derive_scope_type."""

    def test_no_relationship(self, graph):
        assert derive_scope_type("organization", graph) is None

    def test_scope_fields_nearest_first(self, graph):
        scope = derive_scope_type("field", graph, "Field")
        assert scope.type_name == "FieldScope"
        assert scope.foreign_keys == ["tableId", "databaseId", "organizationId"]
        assert all(f.declared for f in scope.fields)

    def test_default_type_name(self):
        graph = RelationshipGraph({"app_user": rel("organization", "organizationId")})
        assert derive_scope_type("app_user", graph).type_name == "AppUserScope"

    def test_derived_foreign_key(self):
        graph = RelationshipGraph({"field": rel("table", "tableId", ["table", "project"])})
        scope = derive_scope_type("field", graph)
        assert scope.foreign_keys == ["tableId", "projectId"]
        assert scope.field_for("project").declared is False

    def test_declared_key_beats_derived(self):
        graph = RelationshipGraph({
            "field": rel("table", "tableId", ["table", "database"]),
            "table": rel("database", "dbId"),
        })
        scope = derive_scope_type("field", graph)
        assert scope.field_for("database").foreign_key == "dbId"

    def test_colliding_foreign_key_is_skipped(self, caplog):
        graph = RelationshipGraph({
            "field": rel("table", "parentId"),
            "table": rel("database", "parentId"),
        })
        with caplog.at_level(logging.WARNING):
            scope = derive_scope_type("field", graph)
        assert scope.foreign_keys == ["parentId"]
        assert "already used" in caplog.text


class TestValidateRelationships:
    """Tests for validate_relationships."""

    def test_clean_configuration(self):
        tables = [
            Table(name="Database"),
            Table(
                name="Table",
                fields=(TableField("id", "UUID"), TableField("databaseId", "UUID")),
                relations=(TableRelation("belongs_to", "database", "Database", ("databaseId",)),),
            ),
        ]
        graph = RelationshipGraph({"table": rel("database", "databaseId")})
        assert validate_relationships(tables, graph) == []

    def test_reports_problems(self):
        tables = [
            Table(name="Database"),
            Table(
                name="Table",
                fields=(TableField("id", "UUID"),),
                relations=(TableRelation("belongs_to", "schema", "Schema", ("schemaId",)),),
            ),
        ]
        graph = RelationshipGraph({
            "table": rel("database", "databaseId"),
            "column": rel("table", "tableId"),
            "index": rel("ghost", "ghostId"),
        })
        warnings = validate_relationships(tables, graph)
        assert "Foreign key 'databaseId' is not a field of 'Table'" in warnings
        assert "'Table' has no belongs-to relation to 'database'" in warnings
        assert "Relationship declared for unknown entity 'column'" in warnings
        assert "Parent 'ghost' of 'index' is not a known entity" in warnings
