"""Keyword and regex heuristics for recognising SQL text.

Matching is intentionally loose: a substring test decides whether a string
is SQL at all, and one regex per statement kind pulls out the target table.
Nothing here validates SQL grammar.
"""
import re
from typing import Callable, Dict, Tuple

from .models import UNKNOWN_TABLE


SQL_KEYWORDS = ['SELECT', 'INSERT', 'UPDATE', 'DELETE', 'CREATE', 'ALTER', 'DROP', 'FROM', 'WHERE', 'JOIN']

_FROM_PATTERN = re.compile(r'FROM\s+(\w+)', re.IGNORECASE)
_INTO_PATTERN = re.compile(r'INTO\s+(\w+)', re.IGNORECASE)
_UPDATE_PATTERN = re.compile(r'UPDATE\s+(\w+)', re.IGNORECASE)
_CREATE_PATTERN = re.compile(r'CREATE\s+(?:TABLE|VIEW)\s+(\w+)', re.IGNORECASE)
_ALTER_PATTERN = re.compile(r'ALTER\s+(?:TABLE|VIEW)\s+(\w+)', re.IGNORECASE)
_DROP_PATTERN = re.compile(r'DROP\s+(?:TABLE|VIEW)\s+(\w+)', re.IGNORECASE)
_CREATE_VIEW_PATTERN = re.compile(r'CREATE\s+VIEW\s+(\w+)', re.IGNORECASE)


def looks_like_sql(text: str) -> bool:
    """Return True if any SQL keyword occurs anywhere in the text.

    Substring test, not a token match: identifiers such as ``updated_at``
    also qualify.
    """
    upper = text.upper()
    return any(keyword in upper for keyword in SQL_KEYWORDS)


def _first_match(pattern: re.Pattern, sql: str) -> str:
    match = pattern.search(sql)
    return match.group(1) if match else UNKNOWN_TABLE


def extract_table_from_select(sql: str) -> str:
    return _first_match(_FROM_PATTERN, sql)


def extract_table_from_insert(sql: str) -> str:
    return _first_match(_INTO_PATTERN, sql)


def extract_table_from_update(sql: str) -> str:
    return _first_match(_UPDATE_PATTERN, sql)


def extract_table_from_delete(sql: str) -> str:
    return _first_match(_FROM_PATTERN, sql)


def extract_table_from_create(sql: str) -> str:
    return _first_match(_CREATE_PATTERN, sql)


def extract_table_from_alter(sql: str) -> str:
    return _first_match(_ALTER_PATTERN, sql)


def extract_table_from_drop(sql: str) -> str:
    return _first_match(_DROP_PATTERN, sql)


def extract_view_name(sql: str) -> str:
    """Return the view created by a ``CREATE VIEW`` statement, or 'unknown'."""
    return _first_match(_CREATE_VIEW_PATTERN, sql)


# Prefix checks run in this order; the first hit decides the statement kind
STATEMENT_EXTRACTORS: Dict[str, Callable[[str], str]] = {
    'SELECT': extract_table_from_select,
    'INSERT': extract_table_from_insert,
    'UPDATE': extract_table_from_update,
    'DELETE': extract_table_from_delete,
    'CREATE': extract_table_from_create,
    'ALTER': extract_table_from_alter,
    'DROP': extract_table_from_drop,
}


def classify_sql(sql: str) -> Tuple[str, str]:
    """Determine statement kind and target table of a SQL string.

    Args:
        sql: Raw SQL text (original case is kept for table extraction)

    Returns:
        (operation_kind, table_name). Text that starts with no known
        statement keyword falls back to ('SELECT', 'unknown').
    """
    upper = sql.upper().strip()

    for kind, extract_table in STATEMENT_EXTRACTORS.items():
        if upper.startswith(kind):
            return kind, extract_table(sql)

    return 'SELECT', UNKNOWN_TABLE
