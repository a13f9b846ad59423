"""Tests for the command-line interface."""

import json

import pytest
from click.testing import CliRunner

from gql_cachegen.cli import main

SDL = """
type Query {
  databases: [Database!]!
  tables: [Table!]!
  me: String
}

type Mutation {
  createDatabase(name: String!): Database
  createTable(databaseId: ID!): Table
}

type Database { id: ID! }
type Table { id: ID! databaseId: ID! }
"""

META = {
    "data": {
        "_meta": {
            "tables": [
                {"name": "Database", "query": {"all": "databases", "create": "createDatabase"}},
                {"name": "Table", "query": {"all": "tables", "create": "createTable"}},
            ]
        }
    }
}

CONFIG = {"queryKeys": {"relationships": {"table": {"parent": "database", "foreignKey": "databaseId"}}}}


@pytest.fixture
def files(tmp_path):
    schema = tmp_path / "schema.graphql"
    schema.write_text(SDL)
    meta = tmp_path / "meta.json"
    meta.write_text(json.dumps(META))
    config = tmp_path / "cachegen.json"
    config.write_text(json.dumps(CONFIG))
    return tmp_path, str(schema), str(meta), str(config)


class TestInspect:
    """Tests for the inspect command."""

    def test_writes_output_file(self, files):
        tmp_path, schema, meta, config = files
        output = tmp_path / "out" / "keys.json"
        result = CliRunner().invoke(main, ["inspect", "-s", schema, "-t", meta, "-c", config, "-o", str(output)])
        assert result.exit_code == 0, result.output
        assert "Done!" in result.output

        data = json.loads(output.read_text())
        assert data["customOperations"] == ["me"]
        assert data["queryKeys"]["Table"]["name"] == "tableKeys"
        assert data["scopes"]["Table"]["fields"][0]["foreign_key"] == "databaseId"

    def test_verbose(self, files):
        tmp_path, schema, meta, config = files
        output = tmp_path / "keys.json"
        result = CliRunner().invoke(main, ["inspect", "-s", schema, "-t", meta, "-c", config, "-o", str(output), "-v"])
        assert result.exit_code == 0, result.output
        assert "Relationships: 1" in result.output

    def test_invalid_config(self, files):
        tmp_path, schema, meta, _ = files
        bad = tmp_path / "bad.json"
        bad.write_text('{"queryKeys": {"relationships": {"table": {"parent": "database"}}}}')
        result = CliRunner().invoke(main, ["inspect", "-s", schema, "-t", meta, "-c", str(bad)])
        assert result.exit_code == 1
        assert "Invalid config" in result.output

    def test_cycle_is_reported(self, files):
        tmp_path, schema, meta, _ = files
        cyclic = tmp_path / "cyclic.json"
        cyclic.write_text(json.dumps({
            "queryKeys": {
                "relationships": {
                    "table": {"parent": "database", "foreignKey": "databaseId"},
                    "database": {"parent": "table", "foreignKey": "tableId"},
                }
            }
        }))
        result = CliRunner().invoke(main, ["inspect", "-s", schema, "-t", meta, "-c", str(cyclic)])
        assert result.exit_code == 1
        assert "Cyclic relationship" in result.output

    def test_bad_schema(self, files):
        tmp_path, _, meta, _ = files
        broken = tmp_path / "broken.graphql"
        broken.write_text("type Query {")
        result = CliRunner().invoke(main, ["inspect", "-s", str(broken), "-t", meta])
        assert result.exit_code == 1
        assert "Invalid schema SDL" in result.output
