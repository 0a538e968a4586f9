"""Pydantic schemas for workflow graph snapshots.

These mirror what the visual editor hands over: nodes identified by an
opaque string id and edges joining a source id to a target id. Everything
beyond the ids is optional and only used for diagnostics (labels and
canvas positions for highlighting).
"""

from __future__ import annotations

from pydantic import Field

from flowgraph.schemas.base import BaseSchema


class WorkflowNode(BaseSchema):
    """Single node on the editor canvas."""

    id: str = Field(
        ...,
        min_length=1,
        description="Unique node identifier",
        examples=["trigger-1"],
    )
    type: str | None = Field(
        default=None,
        description="Node type as shown in the palette (e.g. 'trigger')",
    )
    label: str | None = Field(
        default=None,
        description="Display name",
    )
    position_x: float | None = Field(
        default=None,
        description="Canvas X coordinate",
    )
    position_y: float | None = Field(
        default=None,
        description="Canvas Y coordinate",
    )


class WorkflowEdge(BaseSchema):
    """Directed connection; the target runs after the source."""

    id: str | None = Field(
        default=None,
        description="Edge identifier assigned by the editor",
    )
    source: str = Field(
        ...,
        min_length=1,
        description="Source node ID",
    )
    target: str = Field(
        ...,
        min_length=1,
        description="Target node ID",
    )


class WorkflowGraph(BaseSchema):
    """Snapshot of a workflow's nodes and edges."""

    nodes: list[WorkflowNode] = Field(
        default_factory=list,
        description="Nodes in canvas order",
    )
    edges: list[WorkflowEdge] = Field(
        default_factory=list,
        description="Edges in creation order",
    )


__all__ = [
    "WorkflowEdge",
    "WorkflowGraph",
    "WorkflowNode",
]
