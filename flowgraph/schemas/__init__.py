"""Pydantic schemas for workflow graphs and validation results."""

from flowgraph.schemas.base import BaseSchema
from flowgraph.schemas.validation import (
    CycleCheckResult,
    TopologyLevel,
    TopologyResult,
    ValidationError,
    ValidationErrorCode,
    ValidationLevel,
    ValidationOptions,
    ValidationResult,
    ValidationWarning,
)
from flowgraph.schemas.workflow import WorkflowEdge, WorkflowGraph, WorkflowNode

__all__ = [
    "BaseSchema",
    "CycleCheckResult",
    "TopologyLevel",
    "TopologyResult",
    "ValidationError",
    "ValidationErrorCode",
    "ValidationLevel",
    "ValidationOptions",
    "ValidationResult",
    "ValidationWarning",
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
]
