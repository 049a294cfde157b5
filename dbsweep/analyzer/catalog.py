"""Fold discovered operations and SQL queries into table and view entities."""
from typing import Dict, Iterable, List, Set, Tuple

from .models import DatabaseOperation, SQLQuery, TableEntity, UNKNOWN_TABLE
from .sql_classifier import extract_view_name


def collect_view_names(queries: Iterable[SQLQuery]) -> Set[str]:
    """Names that must never become tables.

    Every CREATE VIEW target plus every view name a query already lists.
    """
    view_names = set()
    for query in queries:
        if 'CREATE VIEW' in query.query.upper():
            view_name = extract_view_name(query.query)
            if view_name != UNKNOWN_TABLE:
                view_names.add(view_name)
        for view_name in query.views:
            if view_name != UNKNOWN_TABLE:
                view_names.add(view_name)
    return view_names


class CatalogBuilder:
    """Build the table and view catalog of one run.

    The view-exclusion set is computed before any table is created, so a
    name seen in CREATE VIEW stays out of the table map no matter where
    table-style operations on it appear.
    """

    def build(self, operations: List[DatabaseOperation],
              queries: List[SQLQuery]) -> Tuple[List[TableEntity], List[TableEntity]]:
        """Return (tables, views) in first-seen order."""
        view_names = collect_view_names(queries)
        tables = self.extract_tables(operations, queries, view_names)
        views = self.extract_views(queries)
        return tables, views

    def extract_tables(self, operations: List[DatabaseOperation], queries: List[SQLQuery],
                       view_names: Set[str]) -> List[TableEntity]:
        """Extract tables from operations, then from query table references.

        Operation-derived tables own their operations. Tables first seen in
        a query reference are created with an empty operation list.

        Args:
            operations: All operations of the run
            queries: All SQL queries of the run
            view_names: Names excluded from the table map

        Returns:
            List of table entities
        """
        table_map: Dict[str, TableEntity] = {}

        for operation in operations:
            if operation.table == UNKNOWN_TABLE or operation.table in view_names:
                continue

            if operation.table not in table_map:
                table_map[operation.table] = TableEntity(
                    name=operation.table,
                    type='table',
                    file_path=operation.file_path,
                    line=operation.line,
                    column=operation.column,
                )
            table_map[operation.table].operations.append(operation)

        for query in queries:
            for table_name in query.tables:
                if table_name == UNKNOWN_TABLE or table_name in view_names:
                    continue
                if table_name not in table_map:
                    table_map[table_name] = TableEntity(
                        name=table_name,
                        type='table',
                        file_path=query.file_path,
                        line=query.line,
                        column=query.column,
                    )

        return list(table_map.values())

    def extract_views(self, queries: List[SQLQuery]) -> List[TableEntity]:
        """Extract views from CREATE VIEW statements and query view references."""
        view_map: Dict[str, TableEntity] = {}

        for query in queries:
            names = []
            if 'CREATE VIEW' in query.query.upper():
                names.append(extract_view_name(query.query))
            names.extend(query.views)

            for view_name in names:
                if view_name == UNKNOWN_TABLE or view_name in view_map:
                    continue
                view_map[view_name] = TableEntity(
                    name=view_name,
                    type='view',
                    file_path=query.file_path,
                    line=query.line,
                    column=query.column,
                )

        return list(view_map.values())
