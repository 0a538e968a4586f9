"""Workflow graph validation package.

This package provides DAG validation for workflow graphs built in the
visual editor.

Components:
- Graph: Insertion-ordered directed graph and index builders
- GraphAlgorithms: Cycle enumeration, topological sort and reachability
- DAGValidator: Validation service producing reports for the editor
- DAG Exceptions: Custom exception hierarchy for validation

Example:
    >>> from flowgraph.services.workflow import DAGValidator
    >>> validator = DAGValidator()
    >>> result = validator.validate(nodes, edges)
    >>> result.summary()
    'Workflow is valid'
"""

from flowgraph.services.workflow.algorithms import (
    DAGAlgorithms,
    GraphAlgorithms,
    TopologicalOrderResult,
    detect_cycles,
    get_topological_order,
)
from flowgraph.services.workflow.exceptions import (
    CycleDetectedError,
    DAGValidationError,
    GraphTooLargeError,
    InvalidNodeReferenceError,
    format_cycle,
)
from flowgraph.services.workflow.graph import (
    AdjacencyList,
    Graph,
    InDegreeMap,
    build_adjacency_list,
    build_in_degree_map,
)
from flowgraph.services.workflow.validator import DAGValidator, is_valid_dag

__all__ = [
    # Data structures
    "AdjacencyList",
    "Graph",
    "InDegreeMap",
    "build_adjacency_list",
    "build_in_degree_map",
    # Algorithms
    "DAGAlgorithms",
    "GraphAlgorithms",
    "TopologicalOrderResult",
    "detect_cycles",
    "get_topological_order",
    "is_valid_dag",
    # Validator
    "DAGValidator",
    # DAG Exceptions
    "CycleDetectedError",
    "DAGValidationError",
    "GraphTooLargeError",
    "InvalidNodeReferenceError",
    "format_cycle",
]
