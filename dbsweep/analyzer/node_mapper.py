"""Project catalog entities onto the generic graph-node schema."""
from typing import List

from .models import DatabaseAnalysis, GraphNode, TableEntity


NODE_CATEGORY = 'database'
CODE_OWNERSHIP = 'internal'  # Schema entities are always first-party


def entity_to_node(entity: TableEntity) -> GraphNode:
    """Map one table or view to a graph node."""
    properties = {
        'type': entity.type,
        'operations': [operation.kind for operation in entity.operations],
        'isDeadCode': entity.live_code_score == 0,
        'schema': entity.schema,
    }
    if entity.type == 'table':
        properties['columns'] = entity.columns

    return GraphNode(
        id=f"{entity.type}_{entity.name}",
        label=entity.name,
        node_type=entity.type,
        node_category=NODE_CATEGORY,
        datatype=entity.type,
        live_code_score=entity.live_code_score,
        file=entity.file_path,
        line=entity.line,
        column=entity.column,
        code_ownership=CODE_OWNERSHIP,
        properties=properties,
    )


def map_entities_to_nodes(analysis: DatabaseAnalysis) -> List[GraphNode]:
    """Tables first, then views, each in catalog order."""
    return [entity_to_node(entity) for entity in analysis.tables + analysis.views]
