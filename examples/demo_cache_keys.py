#!/usr/bin/env python3
"""Demonstration of derived cache keys and invalidation helpers.

This script shows how to:
1. Build introspection data from SDL
2. Declare entity relationships
3. Derive query keys, cascade invalidation and mutation keys

Note: Nothing here talks to a server; the SDL and table metadata are inline.
"""

from gql_cachegen.core import (
    CodegenConfig,
    generate_definitions,
)
from gql_cachegen.core.loader import introspection_from_sdl

SDL = """
type Query {
  organizations: [Organization!]!
  databases: [Database!]!
  tables: [Table!]!
  currentUser: String
}

type Mutation {
  createOrganization(name: String!): Organization
  createDatabase(organizationId: ID!): Database
  createTable(databaseId: ID!): Table
  deleteTableByName(name: String!): Table
  login(email: String!): Boolean
}

type Organization { id: ID! }
type Database { id: ID! organizationId: ID! }
type Table { id: ID! databaseId: ID! }
"""

TABLES = [
    {"name": "Organization", "query": {"all": "organizations", "create": "createOrganization"}},
    {"name": "Database", "query": {"all": "databases", "create": "createDatabase"}},
    {"name": "Table", "query": {"all": "tables", "create": "createTable"}},
]

CONFIG = {
    "queryKeys": {
        "relationships": {
            "database": {"parent": "organization", "foreignKey": "organizationId"},
            "table": {"parent": "database", "foreignKey": "databaseId"},
        }
    }
}


def main():
    print("=== Cache Key Derivation Demo ===\n")

    print("1. Building introspection from SDL...")
    introspection = introspection_from_sdl(SDL)

    print("2. Deriving definitions...")
    result = generate_definitions(introspection, TABLES, CodegenConfig.model_validate(CONFIG))
    for name, count in result.summary().items():
        print(f"   {name}: {count}")

    print("\n3. Query keys for Table:")
    table_keys = result.key_factories["Table"]
    print(f"   all:                    {table_keys.all_key()}")
    print(f"   byDatabase('db-1'):     {table_keys.build('byDatabase', 'db-1')}")
    print(f"   lists(databaseId=db-1): {table_keys.lists_key({'databaseId': 'db-1'})}")
    print(f"   lists(organization):    {table_keys.lists_key({'organizationId': 'org-1'})}")
    print(f"   detail('t-1'):          {table_keys.detail_key('t-1')}")

    print("\n4. Invalidating an organization with its children:")
    for key in result.invalidations["Organization"].resolve_cascade("org-1", result.key_factories):
        print(f"   {key}")

    print("\n5. Mutation keys:")
    print(f"   {result.mutation_keys['Table'].build('create', 'db-1')}")
    print(f"   {result.custom_mutation_keys.build('login', 'alice')}")

    print("\n=== Demo Complete ===")


if __name__ == "__main__":
    main()
