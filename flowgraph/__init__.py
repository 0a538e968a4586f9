"""Flowgraph: workflow graph validation engine.

Checks that the directed graph of a visual workflow is acyclic, reports
the cycles it contains and computes a deterministic execution order.

Example:
    >>> from flowgraph import get_topological_order, is_valid_dag
    >>> nodes = ["A", "B", "C"]
    >>> edges = [{"source": "A", "target": "B"}, {"source": "B", "target": "C"}]
    >>> is_valid_dag(nodes, edges)
    True
    >>> get_topological_order(nodes, edges).order
    ['A', 'B', 'C']
"""

from flowgraph.services.workflow import (
    CycleDetectedError,
    DAGValidationError,
    DAGValidator,
    Graph,
    GraphAlgorithms,
    GraphTooLargeError,
    InvalidNodeReferenceError,
    TopologicalOrderResult,
    build_adjacency_list,
    build_in_degree_map,
    detect_cycles,
    get_topological_order,
    is_valid_dag,
)

__version__ = "0.1.0"

__all__ = [
    "CycleDetectedError",
    "DAGValidationError",
    "DAGValidator",
    "Graph",
    "GraphAlgorithms",
    "GraphTooLargeError",
    "InvalidNodeReferenceError",
    "TopologicalOrderResult",
    "__version__",
    "build_adjacency_list",
    "build_in_degree_map",
    "detect_cycles",
    "get_topological_order",
    "is_valid_dag",
]
