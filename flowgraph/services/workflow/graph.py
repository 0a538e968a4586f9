"""Directed graph data structure for DAG operations.

This module provides the ordered directed graph used by every workflow
graph algorithm, together with the index builders that turn the editor's
node and edge collections into an adjacency list and an in-degree map.

Ordering guarantees:
- Nodes keep the order in which they were declared.
- Successor lists keep the order in which edges were supplied.
- Duplicate edges are kept, never collapsed.

Nothing here is cached: a Graph is built fresh for each call and thrown
away afterwards.

Time Complexity:
- Node/Edge addition: O(1)
- Building from a workflow: O(V + E)

Space Complexity: O(V + E)
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Mapping
from typing import Any, Generic, TypeAlias, TypeVar

from flowgraph.services.workflow.exceptions import InvalidNodeReferenceError

NodeId = TypeVar("NodeId", bound=Hashable)

AdjacencyList: TypeAlias = dict[str, list[str]]
InDegreeMap: TypeAlias = dict[str, int]


# =============================================================================
# Input normalization
# =============================================================================


def node_id_of(node: Any) -> str:
    """Extract the id of a node given as a string, mapping or object.

    Raises:
        TypeError: If the node carries no id.
    """
    if isinstance(node, str):
        return node
    if isinstance(node, Mapping):
        node_id = node.get("id")
    else:
        node_id = getattr(node, "id", None)
    if node_id is None:
        raise TypeError(f"Node has no id: {node!r}")
    return node_id


def edge_endpoints(edge: Any) -> tuple[str, str]:
    """Extract ``(source, target)`` from an edge mapping, object or pair.

    Raises:
        TypeError: If the edge does not define both endpoints.
    """
    if isinstance(edge, Mapping):
        source, target = edge.get("source"), edge.get("target")
    elif isinstance(edge, (tuple, list)):
        if len(edge) != 2:
            raise TypeError(f"Edge pair must have exactly two items: {edge!r}")
        source, target = edge
    else:
        source = getattr(edge, "source", None)
        target = getattr(edge, "target", None)
    if source is None or target is None:
        raise TypeError(f"Edge must define source and target: {edge!r}")
    return source, target


# =============================================================================
# Graph
# =============================================================================


class Graph(Generic[NodeId]):
    """Insertion-ordered directed graph.

    Both forward and reverse adjacency are kept so successors, predecessors
    and in-degrees are O(1) lookups. All iteration follows insertion order,
    which makes every algorithm built on top of it deterministic.

    Type Parameters:
        NodeId: Hashable type used as node identifier (node ids are strings
            when built from a workflow).

    Example:
        >>> graph = Graph[str]()
        >>> graph.add_edge("a", "b")
        >>> graph.get_successors("a")
        ['b']
    """

    __slots__ = ("_adjacency", "_edge_count", "_nodes", "_reverse_adjacency")

    def __init__(self) -> None:
        """Initialize an empty directed graph."""
        self._nodes: dict[NodeId, None] = {}
        self._adjacency: dict[NodeId, list[NodeId]] = {}
        self._reverse_adjacency: dict[NodeId, list[NodeId]] = {}
        self._edge_count: int = 0

    @classmethod
    def from_workflow(
        cls,
        nodes: Iterable[Any],
        edges: Iterable[Any],
        *,
        allow_dangling: bool = False,
    ) -> Graph[str]:
        """Build a graph from editor node and edge collections.

        Declared nodes come first, in input order; a repeated id keeps its
        first position. Edges are then added in input order.

        Args:
            nodes: Node ids, WorkflowNode schemas, objects with ``id`` or
                mappings with an ``"id"`` key.
            edges: WorkflowEdge schemas, objects or mappings with
                ``source``/``target``, or ``(source, target)`` pairs.
            allow_dangling: When False, edges naming an undeclared node are
                rejected. When True, each undeclared id becomes an implicit
                node appended after the declared ones.

        Returns:
            A new Graph holding the workflow structure.

        Raises:
            InvalidNodeReferenceError: If an edge names an undeclared node
                and ``allow_dangling`` is False.
            TypeError: If a node or edge is malformed.
        """
        graph: Graph[str] = Graph()
        for node in nodes:
            graph.add_node(node_id_of(node))

        endpoints = [edge_endpoints(edge) for edge in edges]

        if not allow_dangling:
            missing: dict[str, None] = {}
            for source, target in endpoints:
                for endpoint in (source, target):
                    if endpoint not in graph._nodes:
                        missing[endpoint] = None
            if missing:
                raise InvalidNodeReferenceError(list(missing))

        for source, target in endpoints:
            graph.add_edge(source, target)

        return graph

    @property
    def nodes(self) -> list[NodeId]:
        """Get all node ids in insertion order."""
        return list(self._nodes)

    @property
    def node_count(self) -> int:
        """Get the number of nodes in the graph."""
        return len(self._nodes)

    @property
    def edge_count(self) -> int:
        """Get the number of edges in the graph, duplicates included."""
        return self._edge_count

    def add_node(self, node_id: NodeId) -> None:
        """Add a node to the graph.

        If the node already exists, this is a no-op.
        """
        if node_id not in self._nodes:
            self._nodes[node_id] = None
            self._adjacency[node_id] = []
            self._reverse_adjacency[node_id] = []

    def add_edge(self, source: NodeId, target: NodeId) -> None:
        """Add a directed edge from source to target.

        Both nodes are added to the graph if they don't exist.
        Duplicate edges are kept.
        """
        self.add_node(source)
        self.add_node(target)
        self._adjacency[source].append(target)
        self._reverse_adjacency[target].append(source)
        self._edge_count += 1

    def has_edge(self, source: NodeId, target: NodeId) -> bool:
        """Check if an edge exists from source to target."""
        return target in self._adjacency.get(source, ())

    def get_successors(self, node_id: NodeId) -> list[NodeId]:
        """Get successor nodes in edge order.

        Args:
            node_id: The node ID.

        Returns:
            List of successor node IDs, one entry per edge. Empty list if
            the node has no successors or is unknown.
        """
        return list(self._adjacency.get(node_id, ()))

    def get_predecessors(self, node_id: NodeId) -> list[NodeId]:
        """Get predecessor nodes in edge order.

        Args:
            node_id: The node ID.

        Returns:
            List of predecessor node IDs, one entry per edge.
        """
        return list(self._reverse_adjacency.get(node_id, ()))

    def get_in_degree(self, node_id: NodeId) -> int:
        """Get the number of incoming edges for a node."""
        return len(self._reverse_adjacency.get(node_id, ()))

    def get_out_degree(self, node_id: NodeId) -> int:
        """Get the number of outgoing edges for a node."""
        return len(self._adjacency.get(node_id, ()))

    def adjacency_list(self) -> dict[NodeId, list[NodeId]]:
        """Return a fresh adjacency list with an entry for every node."""
        return {node: list(successors) for node, successors in self._adjacency.items()}

    def in_degree_map(self) -> dict[NodeId, int]:
        """Return a fresh in-degree map with an entry for every node."""
        return {
            node: len(predecessors)
            for node, predecessors in self._reverse_adjacency.items()
        }

    def copy(self) -> Graph[NodeId]:
        """Create a copy with independent adjacency lists."""
        new_graph: Graph[NodeId] = Graph()
        new_graph._nodes = self._nodes.copy()
        new_graph._adjacency = {k: v.copy() for k, v in self._adjacency.items()}
        new_graph._reverse_adjacency = {
            k: v.copy() for k, v in self._reverse_adjacency.items()
        }
        new_graph._edge_count = self._edge_count
        return new_graph

    def __contains__(self, node_id: object) -> bool:
        """Check if a node exists in the graph."""
        return node_id in self._nodes

    def __len__(self) -> int:
        """Get the number of nodes in the graph."""
        return len(self._nodes)

    def __repr__(self) -> str:
        """Return string representation of the graph."""
        return f"Graph(nodes={self.node_count}, edges={self.edge_count})"


# =============================================================================
# Index builders
# =============================================================================


def build_adjacency_list(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    *,
    allow_dangling: bool = False,
) -> AdjacencyList:
    """Build the successor lists for a workflow.

    Every node gets an entry, isolated ones included. For each edge, in
    input order, the target is appended to the source's list; duplicate
    edges produce duplicate entries.

    Example:
        >>> build_adjacency_list(["A", "B", "C"], [("A", "B"), ("A", "C")])
        {'A': ['B', 'C'], 'B': [], 'C': []}
    """
    return Graph.from_workflow(
        nodes, edges, allow_dangling=allow_dangling
    ).adjacency_list()


def build_in_degree_map(
    nodes: Iterable[Any],
    edges: Iterable[Any],
    *,
    allow_dangling: bool = False,
) -> InDegreeMap:
    """Count incoming edges per node, defaulting to 0.

    Example:
        >>> build_in_degree_map(["A", "B"], [("A", "B"), ("A", "B")])
        {'A': 0, 'B': 2}
    """
    return Graph.from_workflow(
        nodes, edges, allow_dangling=allow_dangling
    ).in_degree_map()


__all__ = [
    "AdjacencyList",
    "Graph",
    "InDegreeMap",
    "build_adjacency_list",
    "build_in_degree_map",
    "edge_endpoints",
    "node_id_of",
]
