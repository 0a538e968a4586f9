"""DAG validation custom exceptions.

This module defines the exceptions raised by the workflow graph layer.
All of them inherit from DAGValidationError, which carries a
machine-readable error code and a details dictionary alongside the
human-readable message.

Cyclic graphs are normally reported through result objects; the
exceptions below are raised only for malformed input (unknown node
references) and by the exception-style conveniences of DAGValidator.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from flowgraph.core.exceptions import AppError


def format_cycle(cycle_path: Sequence[str]) -> str:
    """Render a cycle path as ``"A -> B -> C -> A"``."""
    return " -> ".join(str(node_id) for node_id in cycle_path)


class DAGValidationError(AppError):
    """Base exception for DAG validation errors.

    Attributes:
        message: Human-readable error message.
        error_code: Machine-readable error code.
        details: Additional error context as dictionary.
    """

    def __init__(
        self,
        message: str,
        error_code: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.details = details or {}


class CycleDetectedError(DAGValidationError):
    """Raised when a cycle is detected in the graph.

    Attributes:
        cycle_path: List of node IDs forming the cycle, first == last.
    """

    def __init__(self, cycle_path: Sequence[str]) -> None:
        super().__init__(
            message=f"Cycle detected: {format_cycle(cycle_path)}",
            error_code="CYCLE_DETECTED",
            details={"cycle_path": list(cycle_path)},
        )
        self.cycle_path = list(cycle_path)


class InvalidNodeReferenceError(DAGValidationError):
    """Raised when an edge references a node that was not declared.

    Attributes:
        missing_nodes: Unknown node IDs in first-appearance order.
    """

    def __init__(self, node_ids: Sequence[str]) -> None:
        missing = ", ".join(node_ids)
        super().__init__(
            message=f"Edges reference undeclared nodes: {missing}",
            error_code="NODE_NOT_FOUND",
            details={"missing_nodes": list(node_ids)},
        )
        self.missing_nodes = list(node_ids)


class GraphTooLargeError(DAGValidationError):
    """Raised when graph exceeds size limits.

    Attributes:
        current: Current count.
        limit: Maximum allowed limit.
        metric: Type of metric (nodes, edges).
    """

    def __init__(self, current: int, limit: int, metric: str = "nodes") -> None:
        super().__init__(
            message=f"Graph too large: {current} {metric} (limit: {limit})",
            error_code="GRAPH_TOO_LARGE",
            details={"current": current, "limit": limit, "metric": metric},
        )
        self.current = current
        self.limit = limit
        self.metric = metric


__all__ = [
    "CycleDetectedError",
    "DAGValidationError",
    "GraphTooLargeError",
    "InvalidNodeReferenceError",
    "format_cycle",
]
