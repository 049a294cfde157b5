"""Database analyzer: discovers tables and views touched by a codebase.

Pipeline: file list -> per-file traversal (or SQL script split) ->
operations + queries -> catalog -> usage classification -> graph nodes.
"""
import traceback
from typing import Iterable, List, Optional

from .catalog import CatalogBuilder
from .context import AnalysisContext
from .models import (
    AnalysisError,
    DatabaseAnalysis,
    DatabaseOperation,
    DatabaseReport,
    FileInfo,
    GraphNode,
    SQLQuery,
)
from .node_mapper import map_entities_to_nodes
from .traversal import DatabaseFileTraversal, is_database_file
from .usage import UsageClassifier, dead_code_percentage, partition_by_score


class DatabaseAnalyzer:
    """Analyze database operations, tables and views in a set of files."""

    def __init__(self, context: Optional[AnalysisContext] = None):
        """Initialize analyzer.

        Args:
            context: Per-run context; a fresh silent one is created if omitted
        """
        self.context = context or AnalysisContext()
        self.traversal = DatabaseFileTraversal(self.context)
        self.catalog_builder = CatalogBuilder()
        self.usage_classifier = UsageClassifier()

    def analyze_database_operations(self, files: Iterable[Optional[FileInfo]]) -> DatabaseAnalysis:
        """Identify SQL queries, table operations and database entities.

        Entities start with the optimistic score of 100; run
        identify_used_unused_entities to classify them.

        Args:
            files: Files to analyze (None entries are skipped)

        Returns:
            DatabaseAnalysis

        Raises:
            AnalysisError: If aggregation fails (whole run is aborted)
        """
        try:
            files = list(files)
            self.context.log_info('Starting database operations analysis', {
                'fileCount': len(files)
            })

            operations: List[DatabaseOperation] = []
            queries: List[SQLQuery] = []

            for file in files:
                if file is None or not is_database_file(file):
                    continue
                result = self.traversal.analyze_file(file)
                operations.extend(result.operations)
                queries.extend(result.queries)

            tables, views = self.catalog_builder.build(operations, queries)

            used_tables, unused_tables = partition_by_score(tables)
            used_views, unused_views = partition_by_score(views)

            analysis = DatabaseAnalysis(
                tables=tables,
                views=views,
                operations=operations,
                used_tables=used_tables,
                unused_tables=unused_tables,
                used_views=used_views,
                unused_views=unused_views,
                total_operations=len(operations),
                dead_code_percentage=dead_code_percentage(
                    len(unused_tables) + len(unused_views), len(tables) + len(views)
                ),
                queries=queries,
            )

            self.context.log_info('Database operations analysis completed', {
                'totalTables': len(tables),
                'totalViews': len(views),
                'totalOperations': analysis.total_operations,
                'usedTables': len(used_tables),
                'unusedTables': len(unused_tables),
                'usedViews': len(used_views),
                'unusedViews': len(unused_views),
                'deadCodePercentage': f"{analysis.dead_code_percentage:.2f}",
            })

            return analysis

        except Exception as error:
            raise self._analysis_error(error) from error

    def identify_used_unused_entities(self, analysis: DatabaseAnalysis,
                                      usage_operations: Iterable[DatabaseOperation]) -> DatabaseAnalysis:
        """Classify entities as live or dead against observed usage.

        Raises:
            AnalysisError: If the usage evidence cannot be applied
        """
        try:
            return self.usage_classifier.classify(analysis, usage_operations)
        except Exception as error:
            raise self._analysis_error(error) from error

    def map_database_entities_to_nodes(self, analysis: DatabaseAnalysis) -> List[GraphNode]:
        """Map tables and views to generic graph nodes."""
        try:
            return map_entities_to_nodes(analysis)
        except Exception as error:
            raise self._analysis_error(error) from error

    def run(self, files: Iterable[Optional[FileInfo]],
            usage_operations: Iterable[DatabaseOperation] = ()) -> DatabaseReport:
        """Analyze, classify and map in one call.

        Args:
            files: Files to analyze
            usage_operations: Usage evidence; empty marks every entity dead

        Returns:
            DatabaseReport with the classified analysis and its graph nodes

        Raises:
            AnalysisError: If any step fails
        """
        analysis = self.analyze_database_operations(files)
        analysis = self.identify_used_unused_entities(analysis, usage_operations)
        return DatabaseReport(analysis=analysis, nodes=self.map_database_entities_to_nodes(analysis))

    def _analysis_error(self, error: Exception) -> AnalysisError:
        """Log a run-scoped failure and wrap it; call from inside the except block."""
        message = f"Failed to analyze database operations: {error}"
        stack = traceback.format_exc()
        self.context.log_error(message, {'error': stack})
        return AnalysisError(message, type='validation', stack=stack)
