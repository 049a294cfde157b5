"""File-level traversal: one pass over a parsed file, dispatching nodes to extractors."""
import re
from typing import Dict, Optional, Set

from .context import AnalysisContext
from .extractor import OperationExtractor, operation_from_query
from .models import DatabaseOperation, FileInfo, FileScanResult, SQLQuery
from .parser import LanguageParser
from .sql_script import analyze_sql_script, is_sql_script
from .syntax import GRAMMARS, NodeShape, call_site, shape_of, traverse


_SOURCE_EXT = r'\.(py|pyi|js|jsx|mjs|cjs|ts|tsx|mts|cts)$'

# Paths that are database code by convention
DATABASE_PATH_PATTERNS = [
    re.compile(r'(^|/)models?' + _SOURCE_EXT),
    re.compile(r'(^|/)schema' + _SOURCE_EXT),
    re.compile(r'(^|/)migrations?' + _SOURCE_EXT),
    re.compile(r'(^|/)seeds?' + _SOURCE_EXT),
    re.compile(r'(^|/)database' + _SOURCE_EXT),
    re.compile(r'(^|/)db' + _SOURCE_EXT),
    re.compile(r'(^|/)sql' + _SOURCE_EXT),
    re.compile(r'\.sql$', re.IGNORECASE),
    re.compile(r'/models?/'),
    re.compile(r'/schema/'),
    re.compile(r'/migrations?/'),
    re.compile(r'/database/'),
    re.compile(r'/db/'),
]

# SQL keywords and database library names, matched case-insensitively
DATABASE_CONTENT_KEYWORDS = [
    'SELECT', 'INSERT', 'UPDATE', 'DELETE', 'CREATE', 'ALTER', 'DROP',
    'knex', 'sequelize', 'mongoose', 'prisma', 'typeorm',
    'sqlalchemy', 'django.db', 'peewee', 'sql',
    'database', 'table', 'view', 'schema', 'migration',
]


def is_database_file(file: Optional[FileInfo]) -> bool:
    """Decide whether a file is worth scanning for database access.

    Args:
        file: File record (may be None)

    Returns:
        True if the path matches a database convention or the content
        mentions SQL keywords or a database library
    """
    if file is None or not file.path:
        return False

    path = '/' + file.path.replace('\\', '/').lstrip('/')
    if any(pattern.search(path) for pattern in DATABASE_PATH_PATTERNS):
        return True

    upper_content = (file.content or '').upper()
    return any(keyword.upper() in upper_content for keyword in DATABASE_CONTENT_KEYWORDS)


class _FileFindings:
    """Collects results for one file, dropping duplicates by (kind, table, line)."""

    def __init__(self, context: AnalysisContext):
        self.context = context
        self.result = FileScanResult()
        self._seen_operations: Set[tuple] = set()
        self._seen_queries: Set[tuple] = set()

    def add_operation(self, operation: Optional[DatabaseOperation]):
        if operation is None or operation.dedup_key in self._seen_operations:
            return
        self._seen_operations.add(operation.dedup_key)
        self.result.operations.append(operation)
        self.context.next_operation_id()

    def add_query(self, query: Optional[SQLQuery]):
        if query is None:
            return
        self.add_operation(operation_from_query(query))
        if query.dedup_key in self._seen_queries:
            return
        self._seen_queries.add(query.dedup_key)
        self.result.queries.append(query)


class DatabaseFileTraversal:
    """Visit each parsed file once and gather its database operations.

    Failures are file-scoped: a parse or extraction error is logged and the
    file contributes whatever was collected before the error.
    """

    def __init__(self, context: Optional[AnalysisContext] = None):
        self.context = context or AnalysisContext()
        self._parsers: Dict[str, LanguageParser] = {}

    def analyze_file(self, file: FileInfo) -> FileScanResult:
        """Analyze a single file for database operations and SQL queries.

        Args:
            file: File to analyze

        Returns:
            FileScanResult (empty for absent content or unsupported files)
        """
        if not file.content:
            return FileScanResult()

        if is_sql_script(file.path):
            return analyze_sql_script(file, self.context)

        language = LanguageParser.language_for_path(file.path)
        if language is None:
            self.context.log_info(f"Skipping file without a supported parser: {file.path}")
            return FileScanResult()

        findings = _FileFindings(self.context)
        try:
            parser = self._get_parser(language)
            tree = parser.parse_source(file.content.encode('utf-8'), file.path)
            self._collect(tree.root_node, language, file.path, findings)
        except Exception as error:
            self.context.log_error(f"Error analyzing database file: {file.path}", {
                'error': str(error)
            })

        return findings.result

    def _get_parser(self, language: str) -> LanguageParser:
        if language not in self._parsers:
            self._parsers[language] = LanguageParser(language)
        return self._parsers[language]

    def _collect(self, root, language: str, file_path: str, findings: _FileFindings):
        """Single pre-order pass dispatching on node shape."""
        grammar = GRAMMARS[language]
        extractor = OperationExtractor(language, self.context)

        for node in traverse(root):
            shape = shape_of(node, grammar)

            if shape is NodeShape.CALL:
                site = call_site(node, grammar)
                findings.add_operation(extractor.extract_fluent_operation(site, file_path))
                findings.add_query(extractor.extract_raw_sql(site, file_path))
            elif shape is NodeShape.INTERPOLATED_LITERAL or shape is NodeShape.PLAIN_LITERAL:
                findings.add_query(extractor.extract_literal_sql(node, file_path))
            elif shape is NodeShape.OTHER:
                continue
            else:
                raise ValueError(f"Unhandled node shape: {shape}")
