"""Tests for derivation hooks."""

import pytest

from gql_cachegen.core.hooks import (
    FilterOperationsHook,
    FilterTablesHook,
    HookRunner,
    PostDeriveHook,
    PreDeriveHook,
    filter_names,
    matches_patterns,
)
from gql_cachegen.core.ir import IROperation, SchemaIR, Table, TypeKind, TypeRef, TypeRegistry


def op(name, operation_type):
    return IROperation(name=name, operation_type=operation_type, arguments=(), return_type=TypeRef(TypeKind.SCALAR, name="String"))


@pytest.fixture
def sample_ir():
    """Create a sample schema IR for testing."""
    return SchemaIR(
        registry=TypeRegistry({}),
        queries=[op("users", "query"), op("_debug", "query"), op("currentUser", "query")],
        mutations=[op("createUser", "mutation"), op("_resetCache", "mutation")],
        tables=[Table(name="User"), Table(name="_Migration"), Table(name="AuditLog"), Table(name="Product")],
    )


class TestPatterns:
    """Tests for glob matching."""

    def test_star(self):
        assert matches_patterns("anything", ["*"])

    def test_prefix_and_suffix(self):
        assert matches_patterns("_Migration", ["_*"])
        assert matches_patterns("AuditLog", ["*Log"])
        assert not matches_patterns("User", ["_*", "*Log"])

    def test_single_character(self):
        assert matches_patterns("User", ["Us?r"])
        assert not matches_patterns("Usr", ["Us?r"])

    def test_exact(self):
        assert matches_patterns("User", ["User"])
        assert not matches_patterns("Users", ["User"])

    def test_regex_characters_are_literal(self):
        assert not matches_patterns("UserXId", ["User.*"])
        assert matches_patterns("User.Id", ["User.*"])

    def test_case_sensitive(self):
        assert not matches_patterns("user", ["User"])
        assert not matches_patterns("auditlog", ["*Log"])

    def test_filter_names(self):
        names = ["User", "_Migration", "AuditLog"]
        assert filter_names(names, exclude=["_*"]) == ["User", "AuditLog"]
        assert filter_names(names, include=["*Log", "User"]) == ["User", "AuditLog"]
        assert filter_names(names, include=[]) == names


class TestFilterTablesHook:
    """Tests for FilterTablesHook."""

    def test_exclude(self, sample_ir):
        result = FilterTablesHook(exclude=["_*", "*Log"]).pre_derive(sample_ir)
        assert [t.name for t in result.tables] == ["User", "Product"]

    def test_include(self, sample_ir):
        result = FilterTablesHook(include=["User"]).pre_derive(sample_ir)
        assert [t.name for t in result.tables] == ["User"]

    def test_leaves_operations_alone(self, sample_ir):
        result = FilterTablesHook(exclude=["*"]).pre_derive(sample_ir)
        assert result.tables == []
        assert len(result.queries) == 3


class TestFilterOperationsHook:
    """Tests for FilterOperationsHook."""

    def test_filters_queries(self, sample_ir):
        result = FilterOperationsHook("query", exclude=["_*"]).pre_derive(sample_ir)
        assert [q.name for q in result.queries] == ["users", "currentUser"]
        assert len(result.mutations) == 2

    def test_filters_mutations(self, sample_ir):
        result = FilterOperationsHook("mutation", exclude=["_*"]).pre_derive(sample_ir)
        assert [m.name for m in result.mutations] == ["createUser"]

    def test_invalid_operation_type(self):
        with pytest.raises(ValueError):
            FilterOperationsHook("subscription")


class TestHookRunner:
    """Tests for HookRunner."""

    def test_run_pre_hooks(self, sample_ir):
        runner = HookRunner()
        runner.add_pre_hook(FilterTablesHook(exclude=["_*"]))

        result = runner.run_pre_hooks(sample_ir)
        assert "_Migration" not in [t.name for t in result.tables]

    def test_multiple_pre_hooks(self, sample_ir):
        runner = HookRunner()
        runner.add_pre_hook(FilterTablesHook(exclude=["_*"]))

        class CountTablesHook:
            def pre_derive(self, ir):
                ir.table_count = len(ir.tables)
                return ir

        runner.add_pre_hook(CountTablesHook())

        result = runner.run_pre_hooks(sample_ir)
        assert result.table_count == 3  # User, AuditLog and Product (after filtering)

    def test_run_post_hooks_in_order(self):
        runner = HookRunner()
        calls = []

        class Recorder:
            def __init__(self, name):
                self.name = name

            def post_derive(self, result):
                calls.append(self.name)
                return result

        runner.add_post_hook(Recorder("first"))
        runner.add_post_hook(Recorder("second"))
        sentinel = object()
        assert runner.run_post_hooks(sentinel) is sentinel
        assert calls == ["first", "second"]


class TestProtocolCompliance:
    """Tests for protocol compliance."""

    def test_filter_tables_is_pre_hook(self):
        assert isinstance(FilterTablesHook(), PreDeriveHook)

    def test_filter_operations_is_pre_hook(self):
        assert isinstance(FilterOperationsHook("query"), PreDeriveHook)

    def test_custom_post_hook(self):
        class CustomPostHook:
            def post_derive(self, result):
                return result

        assert isinstance(CustomPostHook(), PostDeriveHook)
        assert not isinstance(CustomPostHook(), PreDeriveHook)
