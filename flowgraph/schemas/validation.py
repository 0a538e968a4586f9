"""Options and report schemas for workflow graph validation.

This module defines the option and result schemas for workflow DAG
validation. All validation results use consistent error codes and
detailed messages so the editor can highlight the offending nodes.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import ConfigDict, Field

from flowgraph.schemas.base import BaseSchema

# Upper bounds shared by ValidationOptions and the DAG_MAX_* settings
MAX_NODES_LIMIT = 10000
MAX_EDGES_LIMIT = 50000

# =============================================================================
# Validation Enums
# =============================================================================


class ValidationLevel(str, Enum):
    """How much the validator checks beyond graph structure.

    MINIMAL: Structural checks only (references, self-loops, cycles)
    STANDARD: Structural + trigger and connectivity checks (default)
    STRICT: Standard, with isolated and unreachable nodes promoted to errors
    """

    MINIMAL = "minimal"
    STANDARD = "standard"
    STRICT = "strict"


class ValidationErrorCode(str, Enum):
    """Standardized codes for all validation findings."""

    # Structural errors
    CYCLE_DETECTED = "CYCLE_DETECTED"
    SELF_LOOP_DETECTED = "SELF_LOOP_DETECTED"
    NODE_NOT_FOUND = "NODE_NOT_FOUND"
    DUPLICATE_NODE = "DUPLICATE_NODE"
    DUPLICATE_EDGE = "DUPLICATE_EDGE"

    # Trigger structure
    EMPTY_WORKFLOW = "EMPTY_WORKFLOW"
    NO_TRIGGER_NODE = "NO_TRIGGER_NODE"
    MULTIPLE_TRIGGERS = "MULTIPLE_TRIGGERS"
    TRIGGER_HAS_INCOMING = "TRIGGER_HAS_INCOMING"
    TRIGGER_NOT_CONNECTED = "TRIGGER_NOT_CONNECTED"

    # Connectivity findings
    ISOLATED_NODE = "ISOLATED_NODE"
    UNREACHABLE_NODE = "UNREACHABLE_NODE"

    # Limit errors
    GRAPH_TOO_LARGE = "GRAPH_TOO_LARGE"


# =============================================================================
# Validation Option Schemas
# =============================================================================


class ValidationOptions(BaseSchema):
    """Options for a validation run.

    Controls strictness, what the result includes and the size limits.
    """

    level: ValidationLevel = Field(
        default=ValidationLevel.STANDARD,
        description="Which checks run and whether connectivity findings block",
    )
    include_topology: bool = Field(
        default=True,
        description="Attach execution order and levels to a clean result",
    )
    include_warnings: bool = Field(
        default=True,
        description="Return warnings alongside errors",
    )
    max_nodes: int = Field(
        default=500,
        ge=1,
        le=MAX_NODES_LIMIT,
        description="Largest accepted number of distinct nodes",
    )
    max_edges: int = Field(
        default=2000,
        ge=0,
        le=MAX_EDGES_LIMIT,
        description="Largest accepted number of edges",
    )
    allow_dangling: bool = Field(
        default=False,
        description="Treat edge endpoints missing from the node list as implicit nodes",
    )


# =============================================================================
# Validation Result Schemas
# =============================================================================


class ValidationError(BaseSchema):
    """Single blocking validation error."""

    code: ValidationErrorCode = Field(
        ...,
        description="Stable code for programmatic handling",
    )
    message: str = Field(
        ...,
        description="Message shown in the editor",
    )
    node_ids: list[str] = Field(
        default_factory=list,
        description="Nodes to highlight, cycle paths in walk order",
    )
    edge_ids: list[str] = Field(
        default_factory=list,
        description="Edges to highlight",
    )
    suggestion: str | None = Field(
        default=None,
        description="Suggested fix",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Structured extras such as cycle_path or node_positions",
    )


class ValidationWarning(BaseSchema):
    """Finding that does not block saving the workflow.

    Canvas coordinates let the editor scroll to the node.
    """

    code: ValidationErrorCode = Field(
        ...,
        description="Warning code",
    )
    message: str = Field(
        ...,
        description="Message shown in the editor",
    )
    node_id: str | None = Field(
        default=None,
        description="Node the warning is about",
    )
    suggestion: str | None = Field(
        default=None,
        description="How to resolve the finding",
    )
    position_x: float | None = Field(
        default=None,
        description="Canvas X coordinate of the node",
    )
    position_y: float | None = Field(
        default=None,
        description="Canvas Y coordinate of the node",
    )


class TopologyLevel(BaseSchema):
    """Set of nodes whose dependencies are all satisfied at the same step."""

    level: int = Field(
        ...,
        ge=0,
        description="Zero-based step index",
    )
    node_ids: list[str] = Field(
        ...,
        description="Nodes runnable at this step, in discovery order",
    )
    can_parallel: bool = Field(
        default=True,
        description="True when more than one node shares the step",
    )


class TopologyResult(BaseSchema):
    """Topological analysis result."""

    execution_order: list[str] = Field(
        ...,
        description="Deterministic linear execution order",
    )
    levels: list[TopologyLevel] = Field(
        default_factory=list,
        description="Execution steps",
    )
    total_levels: int = Field(
        ...,
        ge=0,
        description="Number of execution steps",
    )
    max_parallel_nodes: int = Field(
        ...,
        ge=0,
        description="Size of the widest step",
    )


class CycleCheckResult(BaseSchema):
    """Lightweight cycle check result for real-time UI validation."""

    has_cycle: bool = Field(
        ...,
        description="True when the graph is cyclic",
    )
    cycle_path: list[str] | None = Field(
        default=None,
        description="First cycle path if a cycle was detected",
    )
    cycle_description: str | None = Field(
        default=None,
        description="Cycle rendered as A -> B -> A",
    )


class ValidationResult(BaseSchema):
    """Complete validation result including errors, warnings and topology."""

    model_config = ConfigDict(from_attributes=True, use_enum_values=True)

    is_valid: bool = Field(
        ...,
        description="Whether the graph passed validation",
    )
    validated_at: datetime = Field(
        ...,
        description="When the report was produced (UTC)",
    )
    errors: list[ValidationError] = Field(
        default_factory=list,
        description="Findings that make the workflow invalid",
    )
    warnings: list[ValidationWarning] = Field(
        default_factory=list,
        description="Findings that do not block saving",
    )
    topology: TopologyResult | None = Field(
        default=None,
        description="Execution order analysis (valid graphs only)",
    )
    node_count: int = Field(
        default=0,
        ge=0,
        description="Number of distinct nodes",
    )
    edge_count: int = Field(
        default=0,
        ge=0,
        description="Number of edges",
    )
    validation_duration_ms: float = Field(
        default=0.0,
        ge=0.0,
        description="Wall time spent validating",
    )
    validation_level: ValidationLevel = Field(
        default=ValidationLevel.STANDARD,
        description="Level the report was produced at",
    )

    def summary(self) -> str:
        """Return a short human-readable summary such as '2 errors, 1 warning'."""
        parts: list[str] = []
        if self.errors:
            count = len(self.errors)
            parts.append(f"{count} error{'s' if count > 1 else ''}")
        if self.warnings:
            count = len(self.warnings)
            parts.append(f"{count} warning{'s' if count > 1 else ''}")
        if not parts:
            return "Workflow is valid"
        return ", ".join(parts)

    def errors_for_node(self, node_id: str) -> list[ValidationError]:
        """Return the errors that mention ``node_id``."""
        return [error for error in self.errors if node_id in error.node_ids]

    def warnings_for_node(self, node_id: str) -> list[ValidationWarning]:
        """Return the warnings attached to ``node_id``."""
        return [warning for warning in self.warnings if warning.node_id == node_id]


__all__ = [
    "MAX_EDGES_LIMIT",
    "MAX_NODES_LIMIT",
    "CycleCheckResult",
    "TopologyLevel",
    "TopologyResult",
    "ValidationError",
    "ValidationErrorCode",
    "ValidationLevel",
    "ValidationOptions",
    "ValidationResult",
    "ValidationWarning",
]
