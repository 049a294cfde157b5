"""Data model for database entity analysis."""
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional


UNKNOWN_TABLE = "unknown"

# Statement kinds an operation can carry
OPERATION_KINDS = ('SELECT', 'INSERT', 'UPDATE', 'DELETE', 'UPSERT', 'CREATE', 'ALTER', 'DROP')

ModelNameResolver = Callable[[Any], Optional[str]]


@dataclass
class FileInfo:
    """A source file handed over by the file-loading layer."""
    path: str
    content: Optional[str] = None


@dataclass
class DatabaseOperation:
    """One discovered database access."""
    kind: str  # SELECT, INSERT, UPDATE, DELETE, UPSERT, CREATE, ALTER, DROP
    table: str
    file_path: str
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def dedup_key(self) -> tuple:
        return (self.kind, self.table, self.line)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'operation': self.kind,
            'table': self.table,
            'type': self.kind,
            'file': self.file_path,
            'line': self.line,
            'column': self.column,
        }


@dataclass
class SQLQuery:
    """A SQL statement found as literal text in the code."""
    query: str
    kind: str
    tables: List[str]
    views: List[str]
    file_path: str
    line: Optional[int] = None
    column: Optional[int] = None

    @property
    def dedup_key(self) -> tuple:
        return (self.kind, self.tables[0] if self.tables else UNKNOWN_TABLE, self.line)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'query': self.query,
            'type': self.kind,
            'tables': list(self.tables),
            'views': list(self.views),
            'file': self.file_path,
            'line': self.line,
            'column': self.column,
        }


@dataclass
class FileScanResult:
    """Operations and queries found in one file."""
    operations: List[DatabaseOperation] = field(default_factory=list)
    queries: List[SQLQuery] = field(default_factory=list)


@dataclass
class TableEntity:
    """A catalogued table or view with the operations that touch it."""
    name: str
    type: str  # 'table' or 'view'
    file_path: str
    line: Optional[int] = None
    column: Optional[int] = None
    operations: List[DatabaseOperation] = field(default_factory=list)
    live_code_score: int = 100  # Optimistic until usage classification runs
    schema: Optional[str] = None
    columns: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'type': self.type,
            'file': self.file_path,
            'line': self.line,
            'column': self.column,
            'operations': [op.to_dict() for op in self.operations],
            'liveCodeScore': self.live_code_score,
            'schema': self.schema,
            'columns': self.columns,
        }


@dataclass
class DatabaseAnalysis:
    """Aggregate result of one analysis run."""
    tables: List[TableEntity] = field(default_factory=list)
    views: List[TableEntity] = field(default_factory=list)
    operations: List[DatabaseOperation] = field(default_factory=list)
    used_tables: List[TableEntity] = field(default_factory=list)
    unused_tables: List[TableEntity] = field(default_factory=list)
    used_views: List[TableEntity] = field(default_factory=list)
    unused_views: List[TableEntity] = field(default_factory=list)
    total_operations: int = 0
    dead_code_percentage: float = 0.0
    queries: List[SQLQuery] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """Render with the camelCase keys the graph renderer expects."""
        return {
            'tables': [t.to_dict() for t in self.tables],
            'views': [v.to_dict() for v in self.views],
            'operations': [op.to_dict() for op in self.operations],
            'usedTables': [t.name for t in self.used_tables],
            'unusedTables': [t.name for t in self.unused_tables],
            'usedViews': [v.name for v in self.used_views],
            'unusedViews': [v.name for v in self.unused_views],
            'totalOperations': self.total_operations,
            'deadCodePercentage': self.dead_code_percentage,
        }


@dataclass
class GraphNode:
    """Generic graph node consumed by the downstream renderer."""
    id: str
    label: str
    node_type: str
    node_category: str
    datatype: str
    live_code_score: int
    file: str
    line: Optional[int]
    column: Optional[int]
    code_ownership: str
    properties: Dict[str, Any]

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'label': self.label,
            'nodeType': self.node_type,
            'nodeCategory': self.node_category,
            'datatype': self.datatype,
            'liveCodeScore': self.live_code_score,
            'file': self.file,
            'line': self.line,
            'column': self.column,
            'codeOwnership': self.code_ownership,
            'properties': self.properties,
        }


@dataclass
class DatabaseReport:
    """Classified analysis together with its graph nodes."""
    analysis: DatabaseAnalysis
    nodes: List[GraphNode]


class AnalysisError(Exception):
    """Run-scoped failure raised out of the analysis orchestration."""

    def __init__(self, message: str, type: str = 'validation', stack: Optional[str] = None):
        super().__init__(message)
        self.type = type
        self.message = message
        self.stack = stack


class SourceParseError(Exception):
    """A source file could not be parsed into a clean syntax tree."""

    def __init__(self, file_path: str, line: Optional[int] = None):
        location = f"{file_path}:{line}" if line is not None else file_path
        super().__init__(f"Syntax error in {location}")
        self.file_path = file_path
        self.line = line
