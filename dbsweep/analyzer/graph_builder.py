"""Database dependency graph built with NetworkX.

Source files point at the tables and views they touch; edges carry the
kind of access.
"""
import json
from pathlib import Path
from typing import List
import networkx as nx

from .models import DatabaseAnalysis, GraphNode


def relationship_for(kind: str) -> str:
    """Edge label for an operation kind."""
    kind = kind.upper()
    if kind == 'SELECT':
        return 'reads'
    if kind in ('INSERT', 'UPDATE', 'DELETE', 'UPSERT'):
        return 'writes to'
    return 'uses'


def build_database_graph(analysis: DatabaseAnalysis, nodes: List[GraphNode]) -> nx.MultiDiGraph:
    """Build directed graph where edge (file, entity) means "file accesses entity".

    Args:
        analysis: Catalog with its operations
        nodes: Graph nodes from the node mapper

    Returns:
        NetworkX MultiDiGraph (one edge per catalogued operation)
    """
    graph = nx.MultiDiGraph()

    for node in nodes:
        graph.add_node(node.id, **node.to_dict())

    for entity in analysis.tables + analysis.views:
        entity_id = f"{entity.type}_{entity.name}"
        for operation in entity.operations:
            if operation.file_path not in graph:
                graph.add_node(operation.file_path, label=operation.file_path, nodeType='file')
            graph.add_edge(
                operation.file_path,
                entity_id,
                relationship=relationship_for(operation.kind),
                operation=operation.kind,
                table=operation.table,
                line=operation.line,
            )

    return graph


def _graphml_safe(value):
    if value is None:
        return ''
    if isinstance(value, (str, int, float, bool)):
        return value
    return json.dumps(value, default=str)


def write_graphml(graph: nx.MultiDiGraph, output_path: str | Path):
    """Write graph as GraphML, stringifying attributes GraphML cannot hold."""
    export = nx.MultiDiGraph()
    for node_id, data in graph.nodes(data=True):
        export.add_node(node_id, **{key: _graphml_safe(value) for key, value in data.items()})
    for source, target, data in graph.edges(data=True):
        export.add_edge(source, target, **{key: _graphml_safe(value) for key, value in data.items()})
    nx.write_graphml(export, str(output_path))
