"""JSON report export and usage-evidence loading."""
import json
from pathlib import Path
from typing import Any, Dict, List

from .models import OPERATION_KINDS, DatabaseAnalysis, DatabaseOperation, GraphNode


def build_recommendations(analysis: DatabaseAnalysis) -> List[str]:
    """Human-readable cleanup suggestions for a classified analysis."""
    recommendations = []

    if analysis.unused_tables:
        recommendations.append(
            f"Review {len(analysis.unused_tables)} unused table(s) for removal: "
            + ", ".join(t.name for t in analysis.unused_tables)
        )
    if analysis.unused_views:
        recommendations.append(
            f"Review {len(analysis.unused_views)} unused view(s) for removal: "
            + ", ".join(v.name for v in analysis.unused_views)
        )
    if analysis.dead_code_percentage > 50:
        recommendations.append(
            "More than half of the catalogued entities are unused; "
            "check that usage evidence covers the whole application"
        )
    if not recommendations:
        recommendations.append("No unused database entities detected")

    return recommendations


def analysis_to_dict(analysis: DatabaseAnalysis, nodes: List[GraphNode]) -> Dict[str, Any]:
    """Assemble the JSON-serializable report document."""
    return {
        'summary': {
            'totalTables': len(analysis.tables),
            'totalViews': len(analysis.views),
            'totalOperations': analysis.total_operations,
            'totalQueries': len(analysis.queries),
            'deadCodePercentage': analysis.dead_code_percentage,
        },
        'analysis': analysis.to_dict(),
        'queries': [q.to_dict() for q in analysis.queries],
        'nodes': [n.to_dict() for n in nodes],
        'recommendations': build_recommendations(analysis),
    }


def write_json_report(output_path: str | Path, analysis: DatabaseAnalysis, nodes: List[GraphNode]) -> Path:
    """Write the report as indented JSON.

    Returns:
        Path the report was written to
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(analysis_to_dict(analysis, nodes), indent=2), encoding='utf-8')
    return output_path


def load_usage_operations(path: str | Path) -> List[DatabaseOperation]:
    """Load observed usage evidence from a JSON file.

    Accepts a list of objects, or an object with an ``operations`` list.
    Each entry needs ``table`` and either ``operation`` or ``kind``;
    ``file`` and ``line`` are optional.

    Raises:
        ValueError: If the document shape is not recognized or an entry
            names an unknown operation kind
    """
    data = json.loads(Path(path).read_text(encoding='utf-8'))
    if isinstance(data, dict):
        data = data.get('operations')
    if not isinstance(data, list):
        raise ValueError(f"Usage file {path} must contain a list of operations")

    operations = []
    for index, entry in enumerate(data):
        if not isinstance(entry, dict) or 'table' not in entry:
            raise ValueError(f"Usage entry {index} in {path} has no table")
        kind = str(entry.get('operation') or entry.get('kind') or 'SELECT').upper()
        if kind not in OPERATION_KINDS:
            raise ValueError(f"Usage entry {index} in {path} has unknown operation {kind!r}")
        operations.append(DatabaseOperation(
            kind=kind,
            table=str(entry['table']),
            file_path=entry.get('file', str(path)),
            line=entry.get('line'),
            column=entry.get('column'),
        ))
    return operations
