"""Database operation extraction from parsed syntax trees.

Two independent strategies turn a visited node into a candidate operation:
fluent-call chain resolution for query-builder/ORM calls, and raw SQL
pulled out of string and template literals. Every extractor returns None
when the node carries no operation.
"""
from dataclasses import dataclass
from typing import List, Optional, Union
from tree_sitter import Node

from .context import AnalysisContext
from .models import DatabaseOperation, SQLQuery, UNKNOWN_TABLE
from .sql_classifier import classify_sql, looks_like_sql
from .syntax import (
    GRAMMARS,
    CallSite,
    NodeShape,
    call_arguments,
    is_literal,
    is_self_receiver,
    literal_text,
    node_text,
    shape_of,
)


# Method names of query-builder/ORM chains and the statement they stand for
FLUENT_METHOD_KINDS = {
    'select': 'SELECT',
    'from': 'SELECT',
    'join': 'SELECT',
    'findall': 'SELECT',
    'insert': 'INSERT',
    'create': 'INSERT',
    'update': 'UPDATE',
    'delete': 'DELETE',
    'del': 'DELETE',
    'destroy': 'DELETE',
    'upsert': 'UPSERT',
    'drop': 'SELECT',  # Recognised, but reported with the default kind
}

# Plain function calls recognised as database access: query(), execute(), ...
DIRECT_CALL_KINDS = {
    'query': 'SELECT',
    'execute': 'SELECT',
    'select': 'SELECT',
    'insert': 'INSERT',
    'update': 'UPDATE',
    'delete': 'DELETE',
}

# Methods whose own first argument names the table: .from('orders')
TABLE_NAMING_METHODS = {'from', 'join'}

RAW_SQL_METHODS = {'raw', 'query'}


@dataclass(frozen=True)
class ResolvedTable:
    """Chain root call named its table: knex('users')."""
    name: str


@dataclass(frozen=True)
class ResolvedModelSelf:
    """Chain ended at a self/this receiver (ORM model method)."""
    node: Node


@dataclass(frozen=True)
class Unresolved:
    """Chain ended without naming a table."""
    reason: str = ""


ChainResolution = Union[ResolvedTable, ResolvedModelSelf, Unresolved]


class OperationExtractor:
    """Extract database operations and SQL queries from syntax nodes."""

    def __init__(self, language: str, context: Optional[AnalysisContext] = None):
        """Initialize extractor for given language.

        Args:
            language: One of 'python', 'javascript', 'typescript', 'tsx'
            context: Run context (model-name resolver, chain depth bound)
        """
        if language not in GRAMMARS:
            raise ValueError(f"Unsupported language: {language}")
        self.language = language
        self.grammar = GRAMMARS[language]
        self.context = context or AnalysisContext()

    # --- Fluent chains ---

    def fluent_kind(self, site: CallSite) -> Optional[str]:
        """Operation kind for a recognised database call, else None."""
        if not site.name:
            return None
        if site.callee_kind == 'member':
            return FLUENT_METHOD_KINDS.get(site.name.lower())
        if site.callee_kind == 'identifier':
            return DIRECT_CALL_KINDS.get(site.name.lower())
        return None

    def is_chain_intermediate(self, site: CallSite) -> bool:
        """True if this call is the receiver of another recognised database call.

        In db.select().from('orders') only the outer .from() is reported.
        """
        parent = site.node.parent
        if parent is None or parent.type != self.grammar.member_type:
            return False
        receiver = parent.child_by_field_name('object')
        if receiver is None or receiver.id != site.node.id:
            return False

        outer = parent.parent
        if outer is None or outer.type != self.grammar.call_type:
            return False
        callee = outer.child_by_field_name('function')
        if callee is None or callee.id != parent.id:
            return False

        property_node = parent.child_by_field_name(self.grammar.member_property_field)
        if property_node is None:
            return False
        return node_text(property_node).lower() in FLUENT_METHOD_KINDS

    def names_own_table(self, site: CallSite) -> bool:
        """True for .from('orders') / .join('customers') style calls.

        These stay reported inside a longer chain: each names a different table.
        """
        return (site.callee_kind == 'member'
                and site.name.lower() in TABLE_NAMING_METHODS
                and self.table_argument(site.arguments) is not None)

    def resolve_table_chain(self, receiver: Optional[Node]) -> ChainResolution:
        """Walk up a call's receiver chain to the node that names the table.

        Unwraps member accesses (to their object) and chained method calls
        (to their callee's object) until reaching the chain root. The walk
        is bounded by the context's max_chain_depth.

        Args:
            receiver: Object of the member expression being called

        Returns:
            ResolvedTable, ResolvedModelSelf or Unresolved
        """
        current = receiver
        for _ in range(self.context.max_chain_depth):
            if current is None:
                return Unresolved("empty receiver")

            if current.type == self.grammar.member_type:
                current = current.child_by_field_name('object')
                continue

            if current.type == self.grammar.call_type:
                callee = current.child_by_field_name('function')
                if callee is not None and callee.type == self.grammar.member_type:
                    current = callee.child_by_field_name('object')
                    continue
                # Chain root: knex('users')
                table = self.table_argument(call_arguments(current))
                if table:
                    return ResolvedTable(table)
                return Unresolved("root call without table argument")

            if is_self_receiver(current, self.grammar):
                return ResolvedModelSelf(current)

            return Unresolved(f"chain ends at {current.type}")

        return Unresolved("chain depth limit reached")

    def table_argument(self, arguments: List[Node]) -> Optional[str]:
        """First argument as a table name if it is a plain string or identifier.

        Strings containing whitespace are statements, not names: query('SELECT ...').
        """
        if not arguments:
            return None
        first = arguments[0]
        if shape_of(first, self.grammar) == NodeShape.PLAIN_LITERAL:
            text = literal_text(first, self.grammar)
            if not text or any(ch.isspace() for ch in text):
                return None
            return text
        if first.type == 'identifier':
            return node_text(first)
        return None

    def extract_fluent_operation(self, site: CallSite, file_path: str) -> Optional[DatabaseOperation]:
        """Turn a query-builder/ORM call into an operation.

        Args:
            site: Call to inspect
            file_path: Source file path

        Returns:
            DatabaseOperation, or None if the call is not a database call
        """
        kind = self.fluent_kind(site)
        if kind is None:
            return None
        if self.is_chain_intermediate(site) and not self.names_own_table(site):
            return None

        if site.callee_kind == 'member':
            resolution = self.resolve_table_chain(site.receiver)
        else:
            resolution = Unresolved("direct call")

        table = None
        if isinstance(resolution, ResolvedTable):
            table = resolution.name
        elif isinstance(resolution, ResolvedModelSelf):
            table = self.context.model_name_resolver(resolution.node)
        elif site.callee_kind == 'identifier' or site.name.lower() in TABLE_NAMING_METHODS:
            table = self.table_argument(site.arguments)

        return DatabaseOperation(
            kind=kind,
            table=table or UNKNOWN_TABLE,
            file_path=file_path,
            line=site.line,
            column=site.column,
        )

    # --- Raw SQL ---

    def extract_raw_sql(self, site: CallSite, file_path: str) -> Optional[SQLQuery]:
        """Classify the SQL passed to a .raw()/.query() call."""
        if site.callee_kind != 'member' or site.name not in RAW_SQL_METHODS:
            return None
        if not site.arguments or not is_literal(site.arguments[0], self.grammar):
            return None

        sql = literal_text(site.arguments[0], self.grammar)
        if not sql:
            return None

        return self._build_query(sql, file_path, site.line, site.column)

    def extract_literal_sql(self, node: Node, file_path: str) -> Optional[SQLQuery]:
        """Classify a string or template literal that looks like SQL."""
        sql = literal_text(node, self.grammar)
        if not sql or not looks_like_sql(sql):
            return None
        return self._build_query(sql, file_path, node.start_point[0] + 1, node.start_point[1])

    def _build_query(self, sql: str, file_path: str, line: int, column: int) -> SQLQuery:
        kind, table = classify_sql(sql)
        return SQLQuery(
            query=sql,
            kind=kind,
            tables=[table],
            views=[],
            file_path=file_path,
            line=line,
            column=column,
        )


def operation_from_query(query: SQLQuery) -> DatabaseOperation:
    """Project a SQL query onto the operation it performs."""
    return DatabaseOperation(
        kind=query.kind,
        table=query.tables[0] if query.tables else UNKNOWN_TABLE,
        file_path=query.file_path,
        line=query.line,
        column=query.column,
    )
