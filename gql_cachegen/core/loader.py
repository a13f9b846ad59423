"""Load introspection data and table metadata from disk.

Introspection can come from a JSON dump of an introspection query or from
SDL files (``.graphql`` / ``.graphqls``, a single file or a directory),
which graphql-core turns into the same introspection shape.
"""

import hashlib
import json
import logging
import os
from collections.abc import Mapping
from typing import Any

from graphql import GraphQLError, build_schema, introspection_from_schema

from .errors import SchemaLoadError
from .ir import Table, TableField, TableQueryNames, TableRelation

logger = logging.getLogger(__name__)

SDL_SUFFIXES = (".graphql", ".graphqls", ".gql")

# _meta relation groups and the attribute naming the other table
_RELATION_KINDS = {
    "belongsTo": ("belongs_to", "referencesTable"),
    "hasOne": ("has_one", "referencedByTable"),
    "hasMany": ("has_many", "referencedByTable"),
    "manyToMany": ("many_to_many", "rightTable"),
}


def _collect_schema_files(path: str) -> list[str]:
    """Collect all SDL files from a file or directory path."""
    files = []
    if os.path.isfile(path):
        if path.endswith(SDL_SUFFIXES):
            files.append(path)
    else:
        for root, _, filenames in os.walk(path):
            for filename in filenames:
                if filename.endswith(SDL_SUFFIXES):
                    files.append(os.path.join(root, filename))
    return sorted(files)


def introspection_from_sdl(sdl: str) -> dict[str, Any]:
    """Build introspection data from SDL text."""
    try:
        schema = build_schema(sdl)
    except GraphQLError as e:
        raise SchemaLoadError(f"Invalid schema SDL: {e.message}") from e
    except TypeError as e:
        # graphql-core reports SDL validation errors as TypeError
        raise SchemaLoadError(f"Invalid schema SDL: {e}") from e
    return introspection_from_schema(schema)


def _read_json(path: str) -> Any:
    try:
        with open(path) as f:
            return json.load(f)
    except OSError as e:
        raise SchemaLoadError(f"Cannot read {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise SchemaLoadError(f"Invalid JSON in {path}: {e}") from e


def load_introspection(path: str) -> dict[str, Any]:
    """Load introspection data from a JSON dump or from SDL files."""
    if os.path.isfile(path) and path.endswith(".json"):
        payload = _read_json(path)
        if not isinstance(payload, Mapping):
            raise SchemaLoadError(f"{path} does not contain an introspection object")
        if "__schema" not in payload and "__schema" not in (payload.get("data") or {}):
            raise SchemaLoadError(f"{path} has no '__schema' entry")
        return dict(payload)

    files = _collect_schema_files(path)
    if not files:
        raise SchemaLoadError(f"No schema files found at {path}")
    parts = []
    for file_path in files:
        with open(file_path) as f:
            parts.append(f.read())
    logger.debug("Building introspection from %d SDL file(s)", len(files))
    return introspection_from_sdl("\n".join(parts))


def _query_names(raw: Mapping[str, Any] | None) -> TableQueryNames | None:
    if not raw or not raw.get("all") or not raw.get("create"):
        return None
    return TableQueryNames(
        all=raw["all"],
        one=raw.get("one"),
        create=raw["create"],
        update=raw.get("update"),
        delete=raw.get("delete"),
    )


def _relations(raw: Mapping[str, Any] | None) -> tuple[TableRelation, ...]:
    relations = []
    for group, (kind, table_attr) in _RELATION_KINDS.items():
        for rel in (raw or {}).get(group) or ():
            other = rel.get(table_attr)
            if isinstance(other, Mapping):
                other = other.get("name")
            if not other:
                continue
            relations.append(
                TableRelation(
                    kind=kind,
                    field_name=rel.get("fieldName"),
                    table=other,
                    keys=tuple(k["name"] for k in rel.get("keys") or () if k.get("name")),
                )
            )
    return tuple(relations)


def parse_table(raw: Mapping[str, Any]) -> Table:
    """Parse one ``_meta.tables`` entry."""
    if not raw.get("name"):
        raise SchemaLoadError("table metadata entry without a name")
    fields = []
    for f in raw.get("fields") or ():
        field_type = f.get("type") or {}
        fields.append(TableField(name=f["name"], gql_type=field_type.get("gqlType", "String"), is_array=bool(field_type.get("isArray"))))
    inflection = raw.get("inflection") or {}
    return Table(
        name=raw["name"],
        fields=tuple(fields),
        relations=_relations(raw.get("relations")),
        query=_query_names(raw.get("query")),
        singular_name=inflection.get("tableFieldName"),
        plural_name=inflection.get("allRows"),
    )


def parse_tables(payload: Any) -> list[Table]:
    """Parse table metadata: a list of tables, ``{"tables": [...]}`` or ``{"_meta": {"tables": [...]}}``."""
    if isinstance(payload, Mapping):
        if "data" in payload:
            payload = payload["data"]
        if "_meta" in payload:
            payload = payload["_meta"]
        payload = payload.get("tables", [])
    if not isinstance(payload, list):
        raise SchemaLoadError("table metadata must be a list of tables")
    return [parse_table(raw) for raw in payload]


def load_table_meta(path: str) -> list[Table]:
    return parse_tables(_read_json(path))


def schema_fingerprint(introspection: Mapping[str, Any], tables: Any = None) -> str:
    """Content hash used by watchers to decide whether to regenerate."""
    canonical = json.dumps({"schema": introspection, "tables": tables}, sort_keys=True, default=str, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
