"""Partition root operations into table CRUD operations and custom operations.

A query is a table operation when its name is one of the tables' canonical
query names. A mutation is a table operation when its name is one of the
canonical mutation names, or when it is an alternate-constraint form such as
``updateUserByEmail`` / ``deleteUserByEmail``: the schema generates one of
those per unique key, so they cannot be enumerated from the canonical names.
Everything else is custom.
"""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field

from .ir import IROperation, Table

logger = logging.getLogger(__name__)


@dataclass
class TableOperationNames:
    """Name sets and constraint matchers covering table CRUD operations."""
    queries: set[str] = field(default_factory=set)
    mutations: set[str] = field(default_factory=set)
    mutation_patterns: list[re.Pattern] = field(default_factory=list)

    def covers_query(self, name: str) -> bool:
        return name in self.queries

    def covers_mutation(self, name: str) -> bool:
        if name in self.mutations:
            return True
        return any(p.match(name) for p in self.mutation_patterns)


@dataclass
class OperationPartition:
    """Result of classifying a schema's root operations."""
    table_operations: list[IROperation] = field(default_factory=list)
    custom_operations: list[IROperation] = field(default_factory=list)
    covered_names: set[str] = field(default_factory=set)

    @property
    def custom_queries(self) -> list[IROperation]:
        return [op for op in self.custom_operations if op.operation_type == "query"]

    @property
    def custom_mutations(self) -> list[IROperation]:
        return [op for op in self.custom_operations if op.operation_type == "mutation"]


def constraint_mutation_pattern(type_name: str) -> re.Pattern:
    """Matcher for ``update<Type>By<Constraint>`` and ``delete<Type>By<Constraint>``."""
    return re.compile(rf"^(?:update|delete){re.escape(type_name)}By[A-Z][A-Za-z0-9_]*$")


def get_table_operation_names(tables: Iterable[Table]) -> TableOperationNames:
    """Collect the exact CRUD names and constraint matchers for all tables."""
    names = TableOperationNames()
    for table in tables:
        names.mutation_patterns.append(constraint_mutation_pattern(table.name))
        if table.query is None:
            continue
        names.queries.add(table.query.all)
        if table.query.one:
            names.queries.add(table.query.one)
        names.mutations.add(table.query.create)
        if table.query.update:
            names.mutations.add(table.query.update)
        if table.query.delete:
            names.mutations.add(table.query.delete)
    return names


def is_table_operation(operation: IROperation, names: TableOperationNames) -> bool:
    """Check if an operation is covered by a table's CRUD operations."""
    if operation.operation_type == "query":
        return names.covers_query(operation.name)
    return names.covers_mutation(operation.name)


def get_custom_operations(operations: Iterable[IROperation], names: TableOperationNames) -> list[IROperation]:
    """Return the operations no table covers."""
    return [op for op in operations if not is_table_operation(op, names)]


def classify_operations(tables: Iterable[Table], operations: Iterable[IROperation]) -> OperationPartition:
    """Split operations into table-covered and custom, preserving order."""
    names = get_table_operation_names(tables)
    partition = OperationPartition()
    for op in operations:
        if is_table_operation(op, names):
            partition.table_operations.append(op)
            partition.covered_names.add(op.name)
        else:
            partition.custom_operations.append(op)
    logger.debug(
        "Classified operations: %d table, %d custom",
        len(partition.table_operations),
        len(partition.custom_operations),
    )
    return partition
