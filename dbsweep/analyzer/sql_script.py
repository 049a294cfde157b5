"""Standalone SQL script handling (.sql files).

Scripts are split on statement terminators and classified statement by
statement; no syntax tree is involved.
"""
from typing import List

from .context import AnalysisContext
from .models import DatabaseOperation, FileInfo, FileScanResult, SQLQuery, UNKNOWN_TABLE
from .sql_classifier import classify_sql


def is_sql_script(path: str) -> bool:
    return path.lower().endswith('.sql')


def split_statements(content: str) -> List[str]:
    """Split script text on ';', dropping blank statements."""
    return [statement.strip() for statement in content.split(';') if statement.strip()]


def is_fallback_noise(kind: str, table: str) -> bool:
    """A SELECT with no table is what classify_sql returns for non-SQL text."""
    return kind == 'SELECT' and table == UNKNOWN_TABLE


def parse_sql_script(file: FileInfo) -> List[SQLQuery]:
    """Classify each statement of a SQL script.

    Line numbers are statement ordinals (1-based), not source lines.

    Args:
        file: SQL script file

    Returns:
        One SQLQuery per kept statement
    """
    queries = []
    if not file.content:
        return queries

    for index, statement in enumerate(split_statements(file.content)):
        kind, table = classify_sql(statement)
        if is_fallback_noise(kind, table):
            continue
        queries.append(SQLQuery(
            query=statement,
            kind=kind,
            tables=[table],
            views=[],
            file_path=file.path,
            line=index + 1,  # Approximate line number
            column=1,
        ))

    return queries


def analyze_sql_script(file: FileInfo, context: AnalysisContext) -> FileScanResult:
    """Operations and queries of a SQL script, isolated from other files' failures."""
    result = FileScanResult()
    try:
        result.queries = parse_sql_script(file)
        result.operations = [
            DatabaseOperation(
                kind=query.kind,
                table=query.tables[0],
                file_path=query.file_path,
                line=query.line,
                column=query.column,
            )
            for query in result.queries
        ]
        for _ in result.operations:
            context.next_operation_id()
    except Exception as error:
        context.log_error(f"Error parsing raw SQL file: {file.path}", {
            'error': str(error)
        })

    return result
