"""Generator configuration.

Relationships are declared, never inferred from the schema: one foreign key
can support more than one cache-scoping interpretation.

Example (JSON, camelCase accepted)::

    {
      "queryKeys": {
        "relationships": {
          "database": {"parent": "organization", "foreignKey": "organizationId"},
          "table": {"parent": "database", "foreignKey": "databaseId", "ancestors": ["organization"]},
          "field": {"parent": "table", "foreignKey": "tableId"}
        },
        "generateCascadeHelpers": true
      },
      "tables": {"exclude": ["_*"]}
    }

Explicit ``ancestors`` are listed nearest-first and may omit the immediate
parent, which always comes from ``parent``.
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _ConfigModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True, extra="forbid")


class EntityRelationship(_ConfigModel):
    """Declared parent of an entity, keyed by the child entity name."""

    parent: str
    foreign_key: str
    ancestors: tuple[str, ...] | None = None

    @field_validator("parent", "foreign_key")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("must not be empty")
        return value

    @field_validator("ancestors")
    @classmethod
    def _clean_ancestors(cls, value: tuple[str, ...] | None) -> tuple[str, ...] | None:
        if value is None:
            return None
        cleaned = tuple(a.strip() for a in value if a.strip())
        # An empty explicit list means "walk the parent chain"
        return cleaned or None


class QueryKeyConfig(_ConfigModel):
    """Query key, invalidation and mutation key options."""

    relationships: dict[str, EntityRelationship] = Field(default_factory=dict)
    generate_scoped_keys: bool = True
    generate_cascade_helpers: bool = True
    generate_mutation_keys: bool = True

    @field_validator("relationships")
    @classmethod
    def _unique_entities(cls, value: dict[str, EntityRelationship]) -> dict[str, EntityRelationship]:
        seen: dict[str, str] = {}
        for name in value:
            lowered = name.lower()
            if lowered in seen:
                raise ValueError(f"relationship declared twice: '{seen[lowered]}' and '{name}'")
            seen[lowered] = name
        return value


class FilterConfig(_ConfigModel):
    """Glob include/exclude patterns (``*`` and ``?`` wildcards)."""

    include: tuple[str, ...] = ("*",)
    exclude: tuple[str, ...] = ()


class CodegenConfig(_ConfigModel):
    """Top-level configuration handed to the pipeline."""

    query_keys: QueryKeyConfig = Field(default_factory=QueryKeyConfig)
    tables: FilterConfig = Field(default_factory=FilterConfig)
    queries: FilterConfig = Field(default_factory=FilterConfig)
    mutations: FilterConfig = Field(default_factory=FilterConfig)
