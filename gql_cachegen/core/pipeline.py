"""End-to-end derivation: introspection + table metadata -> cache definitions.

Example usage:
    from gql_cachegen.core import CodegenConfig, generate_definitions

    result = generate_definitions(introspection, tables, CodegenConfig.model_validate(raw_config))
    result.key_factories["Table"].build("byDatabase", "db-1")
    # ('table', {'databaseId': 'db-1'})
"""

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .classifier import OperationPartition, classify_operations
from .config import CodegenConfig
from .hooks import FilterOperationsHook, FilterTablesHook, HookRunner
from .introspection import transform_schema
from .invalidation import InvalidationDef, RemoveDef, derive_invalidations
from .ir import SchemaIR, Table, as_plain
from .keys import KeyFactory
from .loader import parse_tables, schema_fingerprint
from .mutation_keys import MutationKeyDef, derive_all_mutation_keys, derive_custom_mutation_keys
from .naming import lc_first
from .query_keys import KeyFactoryDef, derive_custom_query_keys, derive_key_factories
from .relationships import RelationshipGraph, ScopeType, validate_relationships

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """Everything derived for one schema, ready for an emitter."""
    ir: SchemaIR
    partition: OperationPartition
    graph: RelationshipGraph
    scopes: dict[str, ScopeType] = field(default_factory=dict)
    key_factories: dict[str, KeyFactoryDef] = field(default_factory=dict)
    custom_query_keys: KeyFactory | None = None
    invalidations: dict[str, InvalidationDef] = field(default_factory=dict)
    removals: dict[str, RemoveDef] = field(default_factory=dict)
    mutation_keys: dict[str, MutationKeyDef] = field(default_factory=dict)
    custom_mutation_keys: KeyFactory | None = None
    warnings: list[str] = field(default_factory=list)
    fingerprint: str | None = None

    @property
    def tables(self) -> list[Table]:
        return self.ir.tables

    def summary(self) -> dict[str, int]:
        return {
            "types": len(self.ir.registry),
            "tables": len(self.ir.tables),
            "tableOperations": len(self.partition.table_operations),
            "customQueries": len(self.partition.custom_queries),
            "customMutations": len(self.partition.custom_mutations),
            "scopedEntities": len(self.scopes),
            "cascades": sum(1 for inv in self.invalidations.values() if inv.has_cascade),
            "warnings": len(self.warnings),
        }

    def query_key_store(self) -> dict[str, KeyFactory]:
        """Unified query key store: ``store["table"].build("detail", id)``."""
        store: dict[str, KeyFactory] = {lc_first(name): factory for name, factory in self.key_factories.items()}
        if self.custom_query_keys is not None:
            store["custom"] = self.custom_query_keys
        return store

    def mutation_key_store(self) -> dict[str, KeyFactory]:
        store: dict[str, KeyFactory] = {lc_first(name): keys for name, keys in self.mutation_keys.items()}
        if self.custom_mutation_keys is not None:
            store["custom"] = self.custom_mutation_keys
        return store

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view of the derived definitions."""
        return {
            "fingerprint": self.fingerprint,
            "summary": self.summary(),
            "customOperations": [op.name for op in self.partition.custom_operations],
            "scopes": as_plain(self.scopes),
            "queryKeys": as_plain(self.key_factories),
            "customQueryKeys": as_plain(self.custom_query_keys),
            "invalidation": as_plain(self.invalidations),
            "remove": as_plain(self.removals),
            "mutationKeys": as_plain(self.mutation_keys),
            "customMutationKeys": as_plain(self.custom_mutation_keys),
            "queryKeyStore": {prop: keys.name for prop, keys in self.query_key_store().items()},
            "mutationKeyStore": {prop: keys.name for prop, keys in self.mutation_key_store().items()},
            "warnings": list(self.warnings),
        }


def _coerce_tables(tables: Any) -> list[Table]:
    if tables is None:
        return []
    if isinstance(tables, Mapping):
        return parse_tables(tables)
    tables = list(tables)
    if any(isinstance(t, Mapping) for t in tables):
        return parse_tables(tables)
    return tables


def _config_hooks(config: CodegenConfig) -> HookRunner:
    runner = HookRunner()
    runner.add_pre_hook(FilterTablesHook(config.tables.include, config.tables.exclude))
    runner.add_pre_hook(FilterOperationsHook("query", config.queries.include, config.queries.exclude))
    runner.add_pre_hook(FilterOperationsHook("mutation", config.mutations.include, config.mutations.exclude))
    return runner


def generate_definitions(
    introspection: Mapping[str, Any],
    tables: Iterable[Table] | Any = None,
    config: CodegenConfig | None = None,
    hooks: HookRunner | None = None,
) -> GenerationResult:
    """Derive every cache definition for a schema.

    Args:
        introspection: Introspection response (``{"__schema": ...}`` or ``{"data": {...}}``)
        tables: Table objects, or raw ``_meta.tables`` metadata
        config: Generator configuration; defaults apply when omitted
        hooks: Extra hooks, run after the configured filters

    Raises:
        SchemaLoadError: The introspection payload has no schema
        CyclicRelationshipError: Parent links loop back on themselves
    """
    config = config or CodegenConfig()
    options = config.query_keys

    ir = transform_schema(introspection)
    ir.tables = _coerce_tables(tables)

    ir = _config_hooks(config).run_pre_hooks(ir)
    if hooks is not None:
        ir = hooks.run_pre_hooks(ir)

    partition = classify_operations(ir.tables, ir.all_operations)
    graph = RelationshipGraph(options.relationships)

    warnings = [str(issue) for issue in ir.registry.issues]
    result = GenerationResult(
        ir=ir,
        partition=partition,
        graph=graph,
        custom_query_keys=derive_custom_query_keys(partition.custom_queries),
        warnings=warnings,
        fingerprint=schema_fingerprint(introspection, as_plain(ir.tables)),
    )

    if options.generate_mutation_keys:
        result.custom_mutation_keys = derive_custom_mutation_keys(partition.custom_mutations)

    if not ir.tables:
        logger.info("No tables to derive cache keys for")
    else:
        result.warnings.extend(validate_relationships(ir.tables, graph))
        result.key_factories = derive_key_factories(ir.tables, graph, options.generate_scoped_keys)
        result.scopes = {name: f.scope for name, f in result.key_factories.items() if f.scope is not None}
        result.invalidations, result.removals = derive_invalidations(
            ir.tables, graph, result.key_factories, options.generate_cascade_helpers
        )
        if options.generate_mutation_keys:
            result.mutation_keys = derive_all_mutation_keys(ir.tables, graph)

    if hooks is not None:
        result = hooks.run_post_hooks(result)

    logger.info("Derived definitions: %s", result.summary())
    return result
