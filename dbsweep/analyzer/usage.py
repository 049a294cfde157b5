"""Live/dead classification of catalogued tables and views."""
from dataclasses import replace
from typing import Iterable, List, Tuple

from .models import DatabaseAnalysis, DatabaseOperation, TableEntity


LIVE_SCORE = 100
DEAD_SCORE = 0


def dead_code_percentage(unused: int, total: int) -> float:
    """Share of unused entities in percent, 0 for an empty catalog."""
    if total == 0:
        return 0.0
    return (unused / total) * 100


def partition_by_score(entities: List[TableEntity]) -> Tuple[List[TableEntity], List[TableEntity]]:
    """Split entities into (used, unused) by their current score."""
    used = [entity for entity in entities if entity.live_code_score > 0]
    unused = [entity for entity in entities if entity.live_code_score == 0]
    return used, unused


class UsageClassifier:
    """Score entities against operations observed elsewhere in the codebase.

    Scores are overwritten, never merged: an entity is live (100) if any
    observed operation names it exactly, dead (0) otherwise.
    """

    def classify(self, analysis: DatabaseAnalysis,
                 usage_operations: Iterable[DatabaseOperation]) -> DatabaseAnalysis:
        """Return the analysis with fresh scores, partitions and dead-code share.

        Args:
            analysis: Catalog to classify (entity scores are updated in place)
            usage_operations: Operations evidencing reachable usage

        Returns:
            Updated DatabaseAnalysis
        """
        used_names = {operation.table for operation in usage_operations}

        for entity in analysis.tables + analysis.views:
            entity.live_code_score = LIVE_SCORE if entity.name in used_names else DEAD_SCORE

        used_tables, unused_tables = partition_by_score(analysis.tables)
        used_views, unused_views = partition_by_score(analysis.views)

        total = len(analysis.tables) + len(analysis.views)
        percentage = dead_code_percentage(len(unused_tables) + len(unused_views), total)

        return replace(
            analysis,
            used_tables=used_tables,
            unused_tables=unused_tables,
            used_views=used_views,
            unused_views=unused_views,
            dead_code_percentage=round(percentage, 2),
        )
