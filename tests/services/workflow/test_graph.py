"""Tests for the Graph data structure and index builders.

Test Coverage Strategy:
- Node and edge operations
- Insertion order guarantees
- Input normalization (ids, mappings, schemas, pairs)
- Undeclared node references
"""

from types import SimpleNamespace

import pytest

from flowgraph.schemas.workflow import WorkflowEdge, WorkflowNode
from flowgraph.services.workflow.exceptions import InvalidNodeReferenceError
from flowgraph.services.workflow.graph import (
    Graph,
    build_adjacency_list,
    build_in_degree_map,
    edge_endpoints,
    node_id_of,
)

# =============================================================================
# GRAPH OPERATIONS
# =============================================================================


class TestGraphOperations:
    """Test node and edge operations on Graph."""

    def test_empty_graph(self) -> None:
        """Test a new graph has no nodes or edges."""
        graph = Graph[str]()

        assert graph.nodes == []
        assert graph.node_count == 0
        assert graph.edge_count == 0
        assert len(graph) == 0

    def test_add_node_idempotent(self) -> None:
        """Test that adding a node twice keeps one entry."""
        graph = Graph[str]()
        graph.add_node("a")
        graph.add_node("a")

        assert graph.nodes == ["a"]

    def test_add_edge_adds_nodes(self) -> None:
        """Test that add_edge creates missing endpoints."""
        graph = Graph[str]()
        graph.add_edge("a", "b")

        assert "a" in graph
        assert "b" in graph
        assert graph.has_edge("a", "b")
        assert not graph.has_edge("b", "a")

    def test_duplicate_edges_kept(self) -> None:
        """Test that parallel edges are counted separately."""
        graph = Graph[str]()
        graph.add_edge("a", "b")
        graph.add_edge("a", "b")

        assert graph.edge_count == 2
        assert graph.get_successors("a") == ["b", "b"]
        assert graph.get_in_degree("b") == 2

    def test_successors_and_predecessors(self) -> None:
        """Test successor and predecessor lookups keep edge order."""
        graph = Graph[str]()
        graph.add_edge("a", "c")
        graph.add_edge("a", "b")
        graph.add_edge("b", "c")

        assert graph.get_successors("a") == ["c", "b"]
        assert graph.get_predecessors("c") == ["a", "b"]
        assert graph.get_out_degree("a") == 2
        assert graph.get_in_degree("a") == 0

    def test_unknown_node_lookups(self) -> None:
        """Test lookups on unknown nodes return empty values."""
        graph = Graph[str]()

        assert graph.get_successors("x") == []
        assert graph.get_predecessors("x") == []
        assert graph.get_in_degree("x") == 0
        assert graph.has_edge("x", "y") is False

    def test_successors_returns_copy(self) -> None:
        """Test that mutating a returned list leaves the graph intact."""
        graph = Graph[str]()
        graph.add_edge("a", "b")

        graph.get_successors("a").append("z")

        assert graph.get_successors("a") == ["b"]

    def test_copy_is_independent(self) -> None:
        """Test that copy() does not share adjacency lists."""
        graph = Graph[str]()
        graph.add_edge("a", "b")

        clone = graph.copy()
        clone.add_edge("b", "c")

        assert graph.nodes == ["a", "b"]
        assert graph.edge_count == 1
        assert clone.nodes == ["a", "b", "c"]
        assert clone.edge_count == 2

    def test_repr(self) -> None:
        """Test the string representation."""
        graph = Graph[str]()
        graph.add_edge("a", "b")

        assert repr(graph) == "Graph(nodes=2, edges=1)"


# =============================================================================
# BUILDING FROM A WORKFLOW
# =============================================================================


class TestFromWorkflow:
    """Test Graph.from_workflow input handling."""

    def test_declaration_order(self) -> None:
        """Test that nodes keep declaration order regardless of edges."""
        graph = Graph.from_workflow(["C", "A", "B"], [("A", "B"), ("B", "C")])

        assert graph.nodes == ["C", "A", "B"]

    def test_duplicate_node_ids_collapse(self) -> None:
        """Test that a repeated id keeps its first position."""
        graph = Graph.from_workflow(["A", "B", "A"], [])

        assert graph.nodes == ["A", "B"]
        assert graph.node_count == 2

    def test_accepts_schemas(self, editor_workflow) -> None:
        """Test building from WorkflowNode and WorkflowEdge schemas."""
        nodes, edges = editor_workflow

        graph = Graph.from_workflow(nodes, edges)

        assert graph.nodes == ["trigger", "fetch", "analyze", "notify"]
        assert graph.get_successors("fetch") == ["analyze", "notify"]

    def test_accepts_mappings_and_objects(self) -> None:
        """Test building from dictionaries and attribute objects."""
        nodes = [{"id": "A"}, SimpleNamespace(id="B")]
        edges = [{"source": "A", "target": "B"}, SimpleNamespace(source="B", target="A")]

        graph = Graph.from_workflow(nodes, edges)

        assert graph.adjacency_list() == {"A": ["B"], "B": ["A"]}

    def test_undeclared_nodes_rejected(self) -> None:
        """Test that edges naming unknown nodes raise by default."""
        with pytest.raises(InvalidNodeReferenceError) as exc_info:
            Graph.from_workflow(["A"], [("A", "X"), ("Y", "X"), ("A", "Z")])

        assert exc_info.value.missing_nodes == ["X", "Y", "Z"]

    def test_undeclared_nodes_allowed(self) -> None:
        """Test that allowed dangling ids become trailing implicit nodes."""
        graph = Graph.from_workflow(
            ["A"], [("A", "X"), ("Y", "A")], allow_dangling=True
        )

        assert graph.nodes == ["A", "X", "Y"]
        assert graph.get_successors("Y") == ["A"]


class TestNormalization:
    """Test node and edge normalization helpers."""

    def test_node_id_of(self) -> None:
        """Test id extraction from every supported shape."""
        assert node_id_of("A") == "A"
        assert node_id_of({"id": "B"}) == "B"
        assert node_id_of(WorkflowNode(id="C")) == "C"

    def test_node_without_id(self) -> None:
        """Test that a node without id raises TypeError."""
        with pytest.raises(TypeError, match="Node has no id"):
            node_id_of({"label": "nameless"})

    def test_edge_endpoints(self) -> None:
        """Test endpoint extraction from every supported shape."""
        assert edge_endpoints(("A", "B")) == ("A", "B")
        assert edge_endpoints(["A", "B"]) == ("A", "B")
        assert edge_endpoints({"source": "A", "target": "B"}) == ("A", "B")
        assert edge_endpoints(WorkflowEdge(source="A", target="B")) == ("A", "B")

    @pytest.mark.parametrize(
        "edge",
        [("A",), ("A", "B", "C"), {"source": "A"}, SimpleNamespace(target="B")],
    )
    def test_malformed_edges(self, edge) -> None:
        """Test that malformed edges raise TypeError."""
        with pytest.raises(TypeError):
            edge_endpoints(edge)


# =============================================================================
# INDEX BUILDERS
# =============================================================================


class TestIndexBuilders:
    """Test build_adjacency_list and build_in_degree_map."""

    def test_adjacency_list(self, diamond_workflow) -> None:
        """Test successor lists follow edge order."""
        nodes, edges = diamond_workflow

        assert build_adjacency_list(nodes, edges) == {
            "A": ["B", "C"],
            "B": ["D"],
            "C": ["D"],
            "D": [],
        }

    def test_in_degree_map(self, diamond_workflow) -> None:
        """Test incoming edge counts."""
        nodes, edges = diamond_workflow

        assert build_in_degree_map(nodes, edges) == {"A": 0, "B": 1, "C": 1, "D": 2}

    def test_isolated_nodes_have_entries(self) -> None:
        """Test that every node gets an entry in both maps."""
        assert build_adjacency_list(["A", "B"], []) == {"A": [], "B": []}
        assert build_in_degree_map(["A", "B"], []) == {"A": 0, "B": 0}

    def test_empty_input(self) -> None:
        """Test that empty input gives empty maps."""
        assert build_adjacency_list([], []) == {}
        assert build_in_degree_map([], []) == {}

    def test_duplicate_edges_counted(self) -> None:
        """Test that duplicate edges produce duplicate entries."""
        assert build_adjacency_list(["A", "B"], [("A", "B")] * 2) == {
            "A": ["B", "B"],
            "B": [],
        }
        assert build_in_degree_map(["A", "B"], [("A", "B")] * 2) == {"A": 0, "B": 2}

    def test_dangling_rejected(self) -> None:
        """Test that the builders reject undeclared ids by default."""
        with pytest.raises(InvalidNodeReferenceError):
            build_in_degree_map(["A"], [("A", "B")])
