"""Core modules for cache key and invalidation derivation."""

from .classifier import OperationPartition, TableOperationNames, classify_operations, get_table_operation_names
from .config import CodegenConfig, EntityRelationship, FilterConfig, QueryKeyConfig
from .errors import CodegenError, CyclicRelationshipError, RelationshipError, SchemaLoadError
from .hooks import (
    FilterOperationsHook,
    FilterTablesHook,
    HookRunner,
    PostDeriveHook,
    PreDeriveHook,
)
from .introspection import build_type_registry, normalize_type_ref, transform_schema
from .invalidation import CacheAction, InvalidationDef, RemoveDef, derive_invalidation, derive_remove
from .ir import (
    IRArgument,
    IRField,
    IROperation,
    ResolvedType,
    SchemaIR,
    Table,
    TableQueryNames,
    TypeKind,
    TypeRef,
    TypeRegistry,
)
from .keys import KeyFactory, KeyRule, is_prefix
from .loader import load_introspection, load_table_meta, parse_tables, schema_fingerprint
from .mutation_keys import MutationKeyDef, derive_mutation_keys
from .pipeline import GenerationResult, generate_definitions
from .query_keys import KeyFactoryDef, derive_key_factory
from .relationships import RelationshipGraph, ScopeType, derive_scope_type, validate_relationships
from .scalars import ScalarHandler, ScalarRegistry, ScalarType
from .type_resolver import TypeDescription, describe_type_ref

__all__ = [
    # Config
    "CodegenConfig",
    "EntityRelationship",
    "FilterConfig",
    "QueryKeyConfig",
    # Errors
    "CodegenError",
    "CyclicRelationshipError",
    "RelationshipError",
    "SchemaLoadError",
    # IR types
    "IRArgument",
    "IRField",
    "IROperation",
    "ResolvedType",
    "SchemaIR",
    "Table",
    "TableQueryNames",
    "TypeKind",
    "TypeRef",
    "TypeRegistry",
    # Introspection
    "build_type_registry",
    "normalize_type_ref",
    "transform_schema",
    # Loader
    "load_introspection",
    "load_table_meta",
    "parse_tables",
    "schema_fingerprint",
    # Classifier
    "OperationPartition",
    "TableOperationNames",
    "classify_operations",
    "get_table_operation_names",
    # Relationships
    "RelationshipGraph",
    "ScopeType",
    "derive_scope_type",
    "validate_relationships",
    # Keys
    "KeyFactory",
    "KeyFactoryDef",
    "KeyRule",
    "MutationKeyDef",
    "derive_key_factory",
    "derive_mutation_keys",
    "is_prefix",
    # Invalidation
    "CacheAction",
    "InvalidationDef",
    "RemoveDef",
    "derive_invalidation",
    "derive_remove",
    # Hooks
    "PreDeriveHook",
    "PostDeriveHook",
    "FilterTablesHook",
    "FilterOperationsHook",
    "HookRunner",
    # Scalars
    "ScalarHandler",
    "ScalarRegistry",
    "ScalarType",
    "TypeDescription",
    "describe_type_ref",
    # Pipeline
    "GenerationResult",
    "generate_definitions",
]
