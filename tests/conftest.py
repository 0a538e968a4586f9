"""pytest configuration and shared fixtures.

This module registers the custom markers and provides workflow graph
fixtures in the shapes the editor hands over: plain id lists, edge pairs,
mappings and WorkflowNode/WorkflowEdge schemas.
"""

import pytest

from flowgraph.core.config import Settings
from flowgraph.schemas.workflow import WorkflowEdge, WorkflowNode
from flowgraph.services.workflow.validator import DAGValidator

# =============================================================================
# PYTEST CONFIGURATION
# =============================================================================


def pytest_configure(config):
    """Configure pytest with custom markers."""
    config.addinivalue_line(
        "markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')"
    )
    config.addinivalue_line(
        "markers", "property: marks hypothesis property-based tests"
    )


# =============================================================================
# SETTINGS & SERVICE FIXTURES
# =============================================================================


@pytest.fixture
def test_settings() -> Settings:
    """Settings with the default limits, independent of any .env file."""
    return Settings(
        _env_file=None,
        DAG_MAX_NODES=500,
        DAG_MAX_EDGES=2000,
        DAG_ALLOW_DANGLING_EDGES=False,
        DAG_DEFAULT_LEVEL="standard",
    )


@pytest.fixture
def validator(test_settings: Settings) -> DAGValidator:
    """DAGValidator bound to the test settings."""
    return DAGValidator(settings=test_settings)


# =============================================================================
# WORKFLOW FIXTURES
# =============================================================================


@pytest.fixture
def chain_workflow() -> tuple[list[str], list[tuple[str, str]]]:
    """Simple chain: A -> B -> C."""
    return ["A", "B", "C"], [("A", "B"), ("B", "C")]


@pytest.fixture
def diamond_workflow() -> tuple[list[str], list[tuple[str, str]]]:
    """Diamond: A -> B, A -> C, B -> D, C -> D."""
    return ["A", "B", "C", "D"], [("A", "B"), ("A", "C"), ("B", "D"), ("C", "D")]


@pytest.fixture
def cyclic_workflow() -> tuple[list[str], list[tuple[str, str]]]:
    """Three-node cycle: A -> B -> C -> A."""
    return ["A", "B", "C"], [("A", "B"), ("B", "C"), ("C", "A")]


@pytest.fixture
def disconnected_workflow() -> tuple[list[str], list[tuple[str, str]]]:
    """Two independent chains: A -> B and C -> D."""
    return ["A", "B", "C", "D"], [("A", "B"), ("C", "D")]


@pytest.fixture
def editor_workflow() -> tuple[list[WorkflowNode], list[WorkflowEdge]]:
    """Trigger-driven workflow as sent by the editor.

    trigger -> fetch -> (analyze, notify); analyze -> notify.
    """
    nodes = [
        WorkflowNode(id="trigger", type="trigger", label="Schedule", position_x=0, position_y=0),
        WorkflowNode(id="fetch", type="tool", label="Fetch prices", position_x=200, position_y=0),
        WorkflowNode(id="analyze", type="agent", label="Analyze", position_x=400, position_y=-100),
        WorkflowNode(id="notify", type="tool", label="Notify", position_x=600, position_y=0),
    ]
    edges = [
        WorkflowEdge(id="e1", source="trigger", target="fetch"),
        WorkflowEdge(id="e2", source="fetch", target="analyze"),
        WorkflowEdge(id="e3", source="fetch", target="notify"),
        WorkflowEdge(id="e4", source="analyze", target="notify"),
    ]
    return nodes, edges
