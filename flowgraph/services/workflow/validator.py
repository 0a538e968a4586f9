"""DAG Validation Service for workflow graphs.

This module provides the boolean validity check used wherever only a
yes/no answer is needed, and the DAGValidator service that produces a full
report for the editor: structural errors (unknown references, self-loops,
cycles), trigger and connectivity findings, and the execution order.

The service is stateless. It holds settings only, builds a fresh Graph on
every call and never caches results, so one instance can serve
concurrent callers.
"""

from __future__ import annotations

import time
from collections.abc import Iterable, Mapping
from datetime import UTC, datetime
from typing import Any

from flowgraph.core.config import Settings, get_settings
from flowgraph.core.logging import get_logger
from flowgraph.schemas.validation import (
    CycleCheckResult,
    TopologyLevel,
    TopologyResult,
    ValidationError as ValidationErrorDTO,
    ValidationErrorCode,
    ValidationLevel,
    ValidationOptions,
    ValidationResult,
    ValidationWarning,
)
from flowgraph.services.workflow.algorithms import GraphAlgorithms, detect_cycles
from flowgraph.services.workflow.exceptions import (
    CycleDetectedError,
    GraphTooLargeError,
    format_cycle,
)
from flowgraph.services.workflow.graph import Graph, edge_endpoints, node_id_of

logger = get_logger(__name__)

TRIGGER_NODE_TYPE = "trigger"


def is_valid_dag(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    *,
    allow_dangling: bool = False,
) -> bool:
    """Return True when the workflow graph has no cycles.

    Computed from detect_cycles(), independently of the topological sort;
    both always agree.

    Raises:
        InvalidNodeReferenceError: If an edge names an undeclared node and
            ``allow_dangling`` is False.
    """
    return len(detect_cycles(nodes, edges, allow_dangling=allow_dangling)) == 0


class DAGValidator:
    """Standalone DAG Validation Service.

    Example:
        >>> validator = DAGValidator()
        >>> result = validator.validate(nodes, edges)
        >>> if result.is_valid:
        ...     print(result.topology.execution_order)
    """

    def __init__(self, settings: Settings | None = None) -> None:
        """Initialize the validator.

        Args:
            settings: Settings supplying default limits. Defaults to the
                cached application settings.
        """
        self.settings = settings or get_settings()

    def default_options(self) -> ValidationOptions:
        """Build validation options from the configured defaults."""
        return ValidationOptions(
            level=ValidationLevel(self.settings.DAG_DEFAULT_LEVEL),
            max_nodes=self.settings.DAG_MAX_NODES,
            max_edges=self.settings.DAG_MAX_EDGES,
            allow_dangling=self.settings.DAG_ALLOW_DANGLING_EDGES,
        )

    def validate(
        self,
        nodes: Iterable[Any],
        edges: Iterable[Any],
        options: ValidationOptions | None = None,
    ) -> ValidationResult:
        """Validate an entire workflow graph.

        Unlike the core algorithms this never raises for graph problems:
        unknown node references, cycles and size violations all become
        entries in ``errors``.

        Args:
            nodes: Workflow nodes in canvas order.
            edges: Workflow edges in creation order.
            options: Optional validation settings.

        Returns:
            ValidationResult with errors, warnings and, for a valid graph
            when requested, the topology.
        """
        if options is None:
            options = self.default_options()

        start = time.perf_counter()
        node_list = list(nodes)
        edge_list = list(edges)
        errors: list[ValidationErrorDTO] = []
        warnings: list[ValidationWarning] = []

        node_ids = [node_id_of(node) for node in node_list]
        endpoints = [edge_endpoints(edge) for edge in edge_list]

        self._validate_size_limits(node_ids, endpoints, options, errors)
        self._validate_references(node_ids, endpoints, options, errors)

        # Unknown references were reported above; build with them as
        # implicit nodes so cycle detection still covers the whole graph.
        graph = Graph.from_workflow(node_ids, endpoints, allow_dangling=True)

        self._validate_structural(graph, node_list, node_ids, edge_list, errors)

        level = ValidationLevel(options.level)
        if level in (ValidationLevel.STANDARD, ValidationLevel.STRICT):
            triggers = _trigger_ids(node_list)
            # Undeclared endpoints already carry NODE_NOT_FOUND
            implicit: set[str] = (
                set() if options.allow_dangling else set(graph.nodes) - set(node_ids)
            )
            self._validate_triggers(graph, node_list, triggers, errors, warnings)
            self._validate_connectivity(
                graph, node_list, triggers, implicit, level, errors, warnings
            )

        topology: TopologyResult | None = None
        if options.include_topology and not errors:
            topology = self._generate_topology(graph)

        if not options.include_warnings:
            warnings = []

        duration_ms = (time.perf_counter() - start) * 1000

        result = ValidationResult(
            is_valid=len(errors) == 0,
            validated_at=datetime.now(UTC),
            errors=errors,
            warnings=warnings,
            topology=topology,
            node_count=graph.node_count,
            edge_count=graph.edge_count,
            validation_duration_ms=duration_ms,
            validation_level=level,
        )

        log = logger.debug if result.is_valid else logger.info
        log(
            f"Workflow graph validated: {result.summary()}",
            extra={
                "context": {
                    "node_count": result.node_count,
                    "edge_count": result.edge_count,
                    "error_codes": [error.code for error in errors],
                    "duration_ms": round(duration_ms, 3),
                }
            },
        )
        return result

    def check_cycle(
        self,
        nodes: Iterable[Any],
        edges: Iterable[Any],
        proposed_edges: Iterable[Any] | None = None,
    ) -> CycleCheckResult:
        """Check for cycles with optional proposed edges.

        Lightweight check for UI real-time validation. Proposed edges are
        added after the existing ones, and their endpoints may be new nodes.

        Args:
            nodes: Workflow nodes.
            edges: Existing workflow edges.
            proposed_edges: Optional edges to add before checking.

        Returns:
            CycleCheckResult describing the first cycle, if any.
        """
        graph = Graph.from_workflow(
            nodes, edges, allow_dangling=self.settings.DAG_ALLOW_DANGLING_EDGES
        )
        for edge in proposed_edges or ():
            source, target = edge_endpoints(edge)
            graph.add_edge(source, target)

        cycle_path = GraphAlgorithms.detect_cycle(graph)
        if cycle_path:
            return CycleCheckResult(
                has_cycle=True,
                cycle_path=cycle_path,
                cycle_description=f"Cycle detected: {format_cycle(cycle_path)}",
            )
        return CycleCheckResult(has_cycle=False)

    def validate_edge_addition(
        self,
        nodes: Iterable[Any],
        edges: Iterable[Any],
        source: str,
        target: str,
    ) -> ValidationResult:
        """Validate adding a new edge before it is committed.

        Checks, in order: self-loop, unknown endpoints, whether the edge
        would close a cycle, and whether the same connection already exists.

        Args:
            nodes: Workflow nodes.
            edges: Existing workflow edges.
            source: Source node ID of the proposed edge.
            target: Target node ID of the proposed edge.

        Returns:
            ValidationResult with any errors found.
        """
        node_list = list(nodes)
        edge_list = list(edges)
        errors: list[ValidationErrorDTO] = []
        positions = self._node_positions(node_list)

        if source == target:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.SELF_LOOP_DETECTED,
                    message="Node cannot connect to itself",
                    node_ids=[source],
                    suggestion="Connect the node to a different node",
                    details={"node_positions": _pick(positions, [source])},
                )
            )
            return self._edge_result(errors, node_list, edge_list)

        node_ids = [node_id_of(node) for node in node_list]
        declared = set(node_ids)
        missing = [node_id for node_id in (source, target) if node_id not in declared]
        if missing:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.NODE_NOT_FOUND,
                    message="Referenced nodes not found",
                    node_ids=missing,
                    details={"missing_nodes": missing},
                )
            )
            return self._edge_result(errors, node_list, edge_list)

        graph = Graph.from_workflow(node_ids, edge_list, allow_dangling=True)

        cycle_path = GraphAlgorithms.detect_cycle_with_proposed_edge(
            graph, source, target
        )
        if cycle_path:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.CYCLE_DETECTED,
                    message=(
                        f"Adding this edge would create a cycle: {format_cycle(cycle_path)}"
                    ),
                    node_ids=cycle_path,
                    suggestion="Connect to a node that does not lead back here",
                    details={
                        "cycle_path": cycle_path,
                        "node_positions": _pick(positions, cycle_path),
                    },
                )
            )

        if graph.has_edge(source, target):
            existing = [
                edge_id
                for edge in edge_list
                if edge_endpoints(edge) == (source, target)
                and (edge_id := _edge_id_of(edge)) is not None
            ]
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.DUPLICATE_EDGE,
                    message="An edge with this connection already exists",
                    edge_ids=existing,
                    details={"source": source, "target": target},
                )
            )

        return self._edge_result(errors, node_list, edge_list)

    def get_execution_order(
        self,
        nodes: Iterable[Any],
        edges: Iterable[Any],
    ) -> list[str]:
        """Return the execution order, raising instead of returning a failure.

        Raises:
            CycleDetectedError: If the graph contains a cycle.
            InvalidNodeReferenceError: If an edge names an undeclared node
                and dangling edges are not allowed by settings.
        """
        graph = Graph.from_workflow(
            nodes, edges, allow_dangling=self.settings.DAG_ALLOW_DANGLING_EDGES
        )
        result = GraphAlgorithms.topological_order(graph)
        if not result.success:
            cycle = GraphAlgorithms.detect_cycle(graph) or []
            logger.warning(
                result.error,
                extra={"context": {"cycle_path": cycle}},
            )
            raise CycleDetectedError(cycle)
        return result.order

    def ensure_within_limits(
        self,
        nodes: Iterable[Any],
        edges: Iterable[Any],
        options: ValidationOptions | None = None,
    ) -> None:
        """Raise if the graph exceeds the node or edge limit.

        Nodes are counted by distinct id.

        Raises:
            GraphTooLargeError: On the first limit exceeded (nodes first).
        """
        if options is None:
            options = self.default_options()

        node_count = len(dict.fromkeys(node_id_of(node) for node in nodes))
        if node_count > options.max_nodes:
            raise GraphTooLargeError(node_count, options.max_nodes, "nodes")

        edge_count = sum(1 for _ in edges)
        if edge_count > options.max_edges:
            raise GraphTooLargeError(edge_count, options.max_edges, "edges")

    # ==========================================================================
    # Private Helper Methods
    # ==========================================================================

    def _validate_size_limits(
        self,
        node_ids: list[str],
        endpoints: list[tuple[str, str]],
        options: ValidationOptions,
        errors: list[ValidationErrorDTO],
    ) -> None:
        """Validate graph size against configured limits."""
        node_count = len(dict.fromkeys(node_ids))
        if node_count > options.max_nodes:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.GRAPH_TOO_LARGE,
                    message="Workflow exceeds maximum node limit",
                    details={
                        "current": node_count,
                        "limit": options.max_nodes,
                        "metric": "nodes",
                    },
                )
            )

        if len(endpoints) > options.max_edges:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.GRAPH_TOO_LARGE,
                    message="Workflow exceeds maximum edge limit",
                    details={
                        "current": len(endpoints),
                        "limit": options.max_edges,
                        "metric": "edges",
                    },
                )
            )

    def _validate_references(
        self,
        node_ids: list[str],
        endpoints: list[tuple[str, str]],
        options: ValidationOptions,
        errors: list[ValidationErrorDTO],
    ) -> None:
        """Report edges whose endpoints are not declared nodes."""
        if options.allow_dangling:
            return

        declared = set(node_ids)
        for source, target in endpoints:
            for role, endpoint in (("source", source), ("target", target)):
                if endpoint not in declared:
                    errors.append(
                        ValidationErrorDTO(
                            code=ValidationErrorCode.NODE_NOT_FOUND,
                            message=f"Edge references non-existent {role} node: {endpoint}",
                            node_ids=[endpoint],
                            suggestion="Remove or reconnect this edge",
                            details={"source": source, "target": target, "role": role},
                        )
                    )

    def _validate_structural(
        self,
        graph: Graph[str],
        node_list: list[Any],
        node_ids: list[str],
        edge_list: list[Any],
        errors: list[ValidationErrorDTO],
    ) -> None:
        """Validate structural integrity (duplicate ids, self-loops, cycles)."""
        positions = self._node_positions(node_list)

        seen: set[str] = set()
        reported: set[str] = set()
        for node_id in node_ids:
            if node_id in seen and node_id not in reported:
                reported.add(node_id)
                errors.append(
                    ValidationErrorDTO(
                        code=ValidationErrorCode.DUPLICATE_NODE,
                        message=f"Duplicate node ID detected: {node_id}",
                        node_ids=[node_id],
                        suggestion="Reload the workflow; node IDs must be unique",
                    )
                )
            seen.add(node_id)

        for edge in edge_list:
            source, target = edge_endpoints(edge)
            if source == target:
                edge_id = _edge_id_of(edge)
                errors.append(
                    ValidationErrorDTO(
                        code=ValidationErrorCode.SELF_LOOP_DETECTED,
                        message="Node cannot connect to itself",
                        node_ids=[source],
                        edge_ids=[edge_id] if edge_id is not None else [],
                        suggestion="Remove the self-referencing connection",
                        details={"node_positions": _pick(positions, [source])},
                    )
                )

        for cycle in GraphAlgorithms.detect_cycles(graph):
            if len(cycle) == 2:
                # Self-loops are reported above
                continue
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.CYCLE_DETECTED,
                    message=f"Cycle detected: {format_cycle(cycle)}",
                    node_ids=cycle,
                    suggestion="Remove one of the connections to break the cycle",
                    details={
                        "cycle_path": cycle,
                        "node_positions": _pick(positions, cycle),
                    },
                )
            )

    def _validate_triggers(
        self,
        graph: Graph[str],
        node_list: list[Any],
        triggers: list[str],
        errors: list[ValidationErrorDTO],
        warnings: list[ValidationWarning],
    ) -> None:
        """Validate that the workflow has a start point.

        An empty workflow or one without a trigger is an error. Several
        triggers, a trigger with incoming connections and a trigger that
        leads nowhere are warnings.
        """
        if not node_list:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.EMPTY_WORKFLOW,
                    message="Workflow is empty",
                    suggestion="Add at least one trigger node to start your workflow",
                )
            )
            return

        if not triggers:
            errors.append(
                ValidationErrorDTO(
                    code=ValidationErrorCode.NO_TRIGGER_NODE,
                    message="Workflow must have at least one trigger node",
                    suggestion="Add a webhook, schedule or manual trigger node",
                )
            )
            return

        if len(triggers) > 1:
            warnings.append(
                ValidationWarning(
                    code=ValidationErrorCode.MULTIPLE_TRIGGERS,
                    message=f"Workflow has {len(triggers)} trigger nodes",
                    suggestion="Consider a single trigger for clarity",
                )
            )

        positions = self._node_positions(node_list)
        for node_id in triggers:
            if graph.get_in_degree(node_id) > 0:
                warnings.append(
                    ValidationWarning(
                        code=ValidationErrorCode.TRIGGER_HAS_INCOMING,
                        message="Trigger nodes should not have incoming connections",
                        node_id=node_id,
                        suggestion="Triggers start workflows; remove incoming connections",
                        **_position_fields(positions, node_id),
                    )
                )
            if graph.get_out_degree(node_id) == 0:
                warnings.append(
                    ValidationWarning(
                        code=ValidationErrorCode.TRIGGER_NOT_CONNECTED,
                        message="Trigger is not connected to any other node",
                        node_id=node_id,
                        suggestion="Connect this trigger to an action or control node",
                        **_position_fields(positions, node_id),
                    )
                )

    def _validate_connectivity(
        self,
        graph: Graph[str],
        node_list: list[Any],
        triggers: list[str],
        implicit: set[str],
        level: ValidationLevel,
        errors: list[ValidationErrorDTO],
        warnings: list[ValidationWarning],
    ) -> None:
        """Report duplicate edges, isolated nodes and unreachable nodes.

        Findings are warnings, except at STRICT level where isolated and
        unreachable nodes become errors. Triggers are left to
        _validate_triggers, and ``implicit`` nodes are skipped.
        """
        positions = self._node_positions(node_list)
        strict = level == ValidationLevel.STRICT
        skipped = implicit | set(triggers)

        for source, target, count in GraphAlgorithms.find_duplicate_edges(graph):
            warnings.append(
                ValidationWarning(
                    code=ValidationErrorCode.DUPLICATE_EDGE,
                    message=f"Duplicate connection from {source} to {target} ({count}x)",
                    node_id=source,
                    suggestion="Remove the duplicate connection",
                    **_position_fields(positions, source),
                )
            )

        isolated = [
            node_id
            for node_id in GraphAlgorithms.find_isolated_nodes(graph)
            if node_id not in skipped
        ]
        for node_id in isolated:
            message = "Node is not connected to the workflow"
            suggestion = "Connect this node to a trigger or another node"
            if strict:
                errors.append(
                    ValidationErrorDTO(
                        code=ValidationErrorCode.ISOLATED_NODE,
                        message=message,
                        node_ids=[node_id],
                        suggestion=suggestion,
                    )
                )
            else:
                warnings.append(
                    ValidationWarning(
                        code=ValidationErrorCode.ISOLATED_NODE,
                        message=message,
                        node_id=node_id,
                        suggestion=suggestion,
                        **_position_fields(positions, node_id),
                    )
                )

        if not triggers:
            return

        already_flagged = skipped | set(isolated)
        for node_id in GraphAlgorithms.find_unreachable_from(graph, triggers):
            if node_id in already_flagged:
                continue
            message = "Node is unreachable from any trigger"
            suggestion = "Connect this node to the main workflow path"
            if strict:
                errors.append(
                    ValidationErrorDTO(
                        code=ValidationErrorCode.UNREACHABLE_NODE,
                        message=message,
                        node_ids=[node_id],
                        suggestion=suggestion,
                        details={"trigger_node_ids": triggers},
                    )
                )
            else:
                warnings.append(
                    ValidationWarning(
                        code=ValidationErrorCode.UNREACHABLE_NODE,
                        message=message,
                        node_id=node_id,
                        suggestion=suggestion,
                        **_position_fields(positions, node_id),
                    )
                )

    def _generate_topology(self, graph: Graph[str]) -> TopologyResult:
        """Generate topology analysis from an acyclic graph."""
        order = GraphAlgorithms.topological_order(graph)
        levels_data = GraphAlgorithms.topological_sort_levels(graph) or []

        levels = [
            TopologyLevel(
                level=i,
                node_ids=level_nodes,
                can_parallel=len(level_nodes) > 1,
            )
            for i, level_nodes in enumerate(levels_data)
        ]

        return TopologyResult(
            execution_order=order.order,
            levels=levels,
            total_levels=len(levels),
            max_parallel_nodes=max((len(level) for level in levels_data), default=0),
        )

    def _edge_result(
        self,
        errors: list[ValidationErrorDTO],
        node_list: list[Any],
        edge_list: list[Any],
    ) -> ValidationResult:
        return ValidationResult(
            is_valid=len(errors) == 0,
            validated_at=datetime.now(UTC),
            errors=errors,
            node_count=len(dict.fromkeys(node_id_of(node) for node in node_list)),
            edge_count=len(edge_list),
            validation_level=ValidationLevel.MINIMAL,
        )

    @staticmethod
    def _node_positions(node_list: list[Any]) -> dict[str, dict[str, float]]:
        """Map node id to canvas coordinates for nodes that carry them."""
        positions: dict[str, dict[str, float]] = {}
        for node in node_list:
            x = _attribute(node, "position_x")
            y = _attribute(node, "position_y")
            if x is not None and y is not None:
                positions[node_id_of(node)] = {"x": float(x), "y": float(y)}
        return positions


def _trigger_ids(node_list: list[Any]) -> list[str]:
    """Distinct ids of trigger-typed nodes, in declaration order."""
    return list(
        dict.fromkeys(
            node_id_of(node)
            for node in node_list
            if _attribute(node, "type") == TRIGGER_NODE_TYPE
        )
    )


def _attribute(item: Any, name: str) -> Any:
    """Read an optional field from a schema, object or mapping."""
    if isinstance(item, str):
        return None
    if isinstance(item, Mapping):
        return item.get(name)
    return getattr(item, name, None)


def _edge_id_of(edge: Any) -> str | None:
    return _attribute(edge, "id") if not isinstance(edge, (tuple, list)) else None


def _pick(
    positions: dict[str, dict[str, float]],
    node_ids: Iterable[str],
) -> dict[str, dict[str, float]]:
    return {node_id: positions[node_id] for node_id in node_ids if node_id in positions}


def _position_fields(
    positions: dict[str, dict[str, float]],
    node_id: str,
) -> dict[str, float | None]:
    position = positions.get(node_id)
    if position is None:
        return {"position_x": None, "position_y": None}
    return {"position_x": position["x"], "position_y": position["y"]}


__all__ = [
    "DAGValidator",
    "is_valid_dag",
]
