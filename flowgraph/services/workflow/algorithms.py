"""Graph algorithms for DAG validation and topology analysis.

This module provides the workflow graph algorithms:
- Cycle enumeration using DFS with path tracking
- Topological sort using Kahn's algorithm
- Level-based topological sort for parallel execution
- Proposed-edge cycle check for real-time editing
- Isolated node, unreachable node and duplicate edge detection

Every algorithm is a pure function of its input. Traversal order follows
node declaration order and edge order only, so identical input always
yields identical output.

Time Complexity:
- Cycle detection: O(V + E), plus O(V) per reported cycle for the slice
- Topological sort: O(V + E)
- Reachability: O(V + E)

Space Complexity: O(V + E) for all algorithms.
"""

from __future__ import annotations

from collections import deque
from collections.abc import Hashable, Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any, Generic, TypeAlias, TypeVar

from flowgraph.services.workflow.exceptions import format_cycle
from flowgraph.services.workflow.graph import Graph

NodeId = TypeVar("NodeId", bound=Hashable)

CyclePath: TypeAlias = list[str]

GENERIC_CYCLE_ERROR = "Graph contains cycles"


@dataclass
class TopologicalOrderResult:
    """Result of a topological sort.

    Attributes:
        success: True when the graph is acyclic.
        order: Every node id exactly once, each edge pointing forward.
            Empty on failure.
        error: Cycle diagnostic such as ``"Cycle detected: A -> B -> A"``
            on failure, None on success.
    """

    success: bool
    order: list[str] = field(default_factory=list)
    error: str | None = None


class GraphAlgorithms(Generic[NodeId]):
    """Collection of graph algorithms for DAG validation.

    All methods are static and operate on a Graph built for the current
    call.

    Example:
        >>> graph = Graph.from_workflow(["a", "b"], [("a", "b"), ("b", "a")])
        >>> GraphAlgorithms.detect_cycles(graph)
        [['a', 'b', 'a']]
    """

    @staticmethod
    def detect_cycles(graph: Graph[NodeId]) -> list[list[NodeId]]:
        """Enumerate cycles using DFS with path tracking.

        A traversal starts from every node not yet visited, in declaration
        order. Each back-edge to a node still on the current path yields
        one cycle: the path from that ancestor to the current node, closed
        by the ancestor again. Overlapping cycles are all reported.

        The DFS keeps an explicit stack of ``(node, successor iterator)``
        frames instead of recursing, so long chains do not hit the
        interpreter's recursion limit. Visit and backtrack order are those
        of the recursive formulation.

        Args:
            graph: The graph to check for cycles.

        Returns:
            One path per back-edge, in discovery order. Empty if acyclic.

        Time Complexity: O(V + E)
        Space Complexity: O(V)

        Example:
            >>> graph = Graph.from_workflow("abc", [("a", "b"), ("b", "c"), ("c", "a")])
            >>> GraphAlgorithms.detect_cycles(graph)
            [['a', 'b', 'c', 'a']]
        """
        visited: set[NodeId] = set()
        in_path: set[NodeId] = set()
        path: list[NodeId] = []
        cycles: list[list[NodeId]] = []

        for start in graph.nodes:
            if start in visited:
                continue

            visited.add(start)
            in_path.add(start)
            path.append(start)
            stack: list[tuple[NodeId, Iterator[NodeId]]] = [
                (start, iter(graph.get_successors(start)))
            ]

            while stack:
                node, successors = stack[-1]
                for successor in successors:
                    if successor not in visited:
                        visited.add(successor)
                        in_path.add(successor)
                        path.append(successor)
                        stack.append((successor, iter(graph.get_successors(successor))))
                        break
                    if successor in in_path:
                        # Back-edge: close the loop at the ancestor
                        cycle_start = path.index(successor)
                        cycles.append([*path[cycle_start:], successor])
                else:
                    stack.pop()
                    path.pop()
                    in_path.remove(node)

        return cycles

    @staticmethod
    def detect_cycle(graph: Graph[NodeId]) -> list[NodeId] | None:
        """Return the first cycle found, or None for an acyclic graph."""
        cycles = GraphAlgorithms.detect_cycles(graph)
        return cycles[0] if cycles else None

    @staticmethod
    def topological_order(graph: Graph[NodeId]) -> TopologicalOrderResult:
        """Kahn's algorithm producing a single deterministic order.

        The queue is seeded with zero in-degree nodes in declaration order.
        Nodes freed while processing a node are enqueued in that node's
        edge order, which decides ties between independent branches.

        Args:
            graph: The graph to sort.

        Returns:
            TopologicalOrderResult. On a cyclic graph ``order`` is empty and
            ``error`` names the first cycle found by detect_cycles().

        Time Complexity: O(V + E)
        Space Complexity: O(V)

        Example:
            >>> graph = Graph.from_workflow("abcd", [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
            >>> GraphAlgorithms.topological_order(graph).order
            ['a', 'b', 'c', 'd']
        """
        in_degree = graph.in_degree_map()
        queue: deque[NodeId] = deque(
            node for node in graph.nodes if in_degree[node] == 0
        )
        order: list[NodeId] = []

        while queue:
            node = queue.popleft()
            order.append(node)

            for successor in graph.get_successors(node):
                in_degree[successor] -= 1
                if in_degree[successor] == 0:
                    queue.append(successor)

        if len(order) < graph.node_count:
            cycle = GraphAlgorithms.detect_cycle(graph)
            if cycle:
                error = f"Cycle detected: {format_cycle(cycle)}"
            else:
                error = GENERIC_CYCLE_ERROR
            return TopologicalOrderResult(success=False, order=[], error=error)

        return TopologicalOrderResult(success=True, order=order)

    @staticmethod
    def topological_sort_levels(graph: Graph[NodeId]) -> list[list[NodeId]] | None:
        """Kahn's algorithm for level-based topological sort.

        Groups nodes by execution level where nodes at the same level
        can execute in parallel.

        Args:
            graph: The graph to sort.

        Returns:
            List of levels, where each level is a list of node IDs.
            Returns None if graph contains a cycle.

        Example:
            >>> graph = Graph.from_workflow("abcd", [("a", "b"), ("a", "c"), ("b", "d"), ("c", "d")])
            >>> GraphAlgorithms.topological_sort_levels(graph)
            [['a'], ['b', 'c'], ['d']]
        """
        in_degree = graph.in_degree_map()
        current: list[NodeId] = [node for node in graph.nodes if in_degree[node] == 0]
        levels: list[list[NodeId]] = []
        processed = 0

        while current:
            levels.append(current)
            processed += len(current)
            next_level: list[NodeId] = []

            for node in current:
                for successor in graph.get_successors(node):
                    in_degree[successor] -= 1
                    if in_degree[successor] == 0:
                        next_level.append(successor)

            current = next_level

        if processed < graph.node_count:
            return None
        return levels

    @staticmethod
    def detect_cycle_with_proposed_edge(
        graph: Graph[NodeId],
        source: NodeId,
        target: NodeId,
    ) -> list[NodeId] | None:
        """Check if adding an edge would create a cycle.

        Instead of checking the entire graph, only checks whether target
        can already reach source.

        Args:
            graph: The current graph structure.
            source: Source node of the proposed edge.
            target: Target node of the proposed edge.

        Returns:
            The cycle the edge would close, starting and ending at source,
            or None if the edge is safe.

        Time Complexity: O(V + E) worst case
        Space Complexity: O(V)

        Example:
            >>> graph = Graph.from_workflow("abc", [("a", "b"), ("b", "c")])
            >>> GraphAlgorithms.detect_cycle_with_proposed_edge(graph, "c", "a")
            ['c', 'a', 'b', 'c']
        """
        parents: dict[NodeId, NodeId | None] = {target: None}
        queue: deque[NodeId] = deque([target])

        while queue:
            current = queue.popleft()

            if current == source:
                # Walk parents back to target, then prepend the proposed edge
                reversed_path: list[NodeId] = []
                node: NodeId | None = source
                while node is not None:
                    reversed_path.append(node)
                    node = parents[node]
                reversed_path.reverse()
                return [source, *reversed_path]

            for neighbor in graph.get_successors(current):
                if neighbor not in parents:
                    parents[neighbor] = current
                    queue.append(neighbor)

        return None

    @staticmethod
    def find_unreachable_from(
        graph: Graph[NodeId],
        start_nodes: Iterable[NodeId],
    ) -> list[NodeId]:
        """Find nodes not reachable from any start node using BFS.

        Args:
            graph: The graph to analyze.
            start_nodes: Starting nodes (typically trigger nodes).

        Returns:
            Unreachable node IDs in declaration order. Every node when no
            start node is given.
        """
        reachable: set[NodeId] = set()
        queue: deque[NodeId] = deque(start_nodes)

        while queue:
            current = queue.popleft()
            if current in reachable:
                continue

            reachable.add(current)

            for successor in graph.get_successors(current):
                if successor not in reachable:
                    queue.append(successor)

        return [node for node in graph.nodes if node not in reachable]

    @staticmethod
    def find_isolated_nodes(graph: Graph[NodeId]) -> list[NodeId]:
        """Find nodes with no incoming or outgoing edges.

        Single-node workflows are not considered isolated.

        Returns:
            Isolated node IDs in declaration order.
        """
        if graph.node_count <= 1:
            return []

        return [
            node
            for node in graph.nodes
            if graph.get_in_degree(node) == 0 and graph.get_out_degree(node) == 0
        ]

    @staticmethod
    def find_duplicate_edges(graph: Graph[NodeId]) -> list[tuple[NodeId, NodeId, int]]:
        """Find repeated ``(source, target)`` connections.

        Returns:
            ``(source, target, count)`` for every pair supplied more than
            once, ordered by source declaration then first occurrence.
        """
        duplicates: list[tuple[NodeId, NodeId, int]] = []

        for source in graph.nodes:
            counts: dict[NodeId, int] = {}
            for target in graph.get_successors(source):
                counts[target] = counts.get(target, 0) + 1
            duplicates.extend(
                (source, target, count) for target, count in counts.items() if count > 1
            )

        return duplicates


# =============================================================================
# Workflow entry points
# =============================================================================


def detect_cycles(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    *,
    allow_dangling: bool = False,
) -> list[CyclePath]:
    """Enumerate every cycle in a workflow graph.

    Args:
        nodes: Workflow nodes (ids, schemas, objects or mappings).
        edges: Workflow edges (schemas, objects, mappings or pairs).
        allow_dangling: Treat undeclared edge endpoints as implicit nodes
            instead of rejecting them.

    Returns:
        One closed path per back-edge, e.g. ``[["A", "B", "C", "A"]]``.
        Empty for acyclic and empty graphs.

    Raises:
        InvalidNodeReferenceError: If an edge names an undeclared node and
            ``allow_dangling`` is False.
    """
    graph = Graph.from_workflow(nodes, edges, allow_dangling=allow_dangling)
    return GraphAlgorithms.detect_cycles(graph)


def get_topological_order(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    *,
    allow_dangling: bool = False,
) -> TopologicalOrderResult:
    """Compute a deterministic execution order for a workflow graph.

    Returns:
        ``TopologicalOrderResult(success=True, order=[...])`` for a DAG,
        otherwise ``success=False``, an empty order and an error such as
        ``"Cycle detected: A -> B -> C -> A"``.

    Raises:
        InvalidNodeReferenceError: If an edge names an undeclared node and
            ``allow_dangling`` is False.
    """
    graph = Graph.from_workflow(nodes, edges, allow_dangling=allow_dangling)
    return GraphAlgorithms.topological_order(graph)


# Type alias for convenience
DAGAlgorithms = GraphAlgorithms


__all__ = [
    "GENERIC_CYCLE_ERROR",
    "CyclePath",
    "DAGAlgorithms",
    "GraphAlgorithms",
    "TopologicalOrderResult",
    "detect_cycles",
    "get_topological_order",
]
