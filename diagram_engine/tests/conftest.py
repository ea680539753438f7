"""Pytest configuration and fixtures."""

import pytest

from diagram_engine.engine.layout_engine import LayoutEngine
from diagram_engine.model.schema import LayoutSettings, Node, NodeVariant, PackingAlgorithm
from diagram_engine.tests.helpers import make_node


@pytest.fixture
def settings() -> LayoutSettings:
    """Default settings: grid packing, margin 1, label margin 2."""
    return LayoutSettings()


@pytest.fixture
def engine(settings: LayoutSettings) -> LayoutEngine:
    """Engine over the default settings."""
    return LayoutEngine(settings)


@pytest.fixture
def mixed_flow_settings() -> LayoutSettings:
    return LayoutSettings(algorithm=PackingAlgorithm.MIXED_FLOW)


@pytest.fixture
def chain_tree() -> list[Node]:
    """root -> a -> b, with a sibling leaf under root."""
    return [
        make_node("root", w=30, h=20),
        make_node("a", parent_id="root", x=1, y=1, w=12, h=10, variant=NodeVariant.CONTAINER),
        make_node("b", parent_id="a", x=2, y=2, w=4, h=3),
        make_node("c", parent_id="root", x=20, y=1, w=4, h=3),
    ]


@pytest.fixture
def manual_canvas() -> list[Node]:
    """A manual-positioning root 40x20 with three free-form children."""
    return [
        make_node("p", w=40, h=20, manual_positioning_enabled=True),
        make_node("s1", parent_id="p", x=30, y=5, w=4, h=3),
        make_node("s2", parent_id="p", x=30, y=10, w=4, h=3),
        make_node("o", parent_id="p", x=10, y=5, w=4, h=3),
    ]
