"""Node builders shared by the test modules."""

import random
from typing import Optional

from diagram_engine.model.schema import (
    FillStrategy,
    FlowOrientation,
    Node,
    NodeVariant,
    PackingPreferences,
)

def make_node(
    node_id: str,
    parent_id: Optional[str] = None,
    x: int = 0,
    y: int = 0,
    w: int = 4,
    h: int = 3,
    **extra,
) -> Node:
    """Build a node; the variant defaults to root/leaf from ``parent_id``."""
    extra.setdefault("variant", NodeVariant.ROOT if parent_id is None else NodeVariant.LEAF)
    return Node(id=node_id, parent_id=parent_id, x=x, y=y, w=w, h=h, **extra)


def by_id(nodes: list[Node]) -> dict[str, Node]:
    return {node.id: node for node in nodes}


def build_random_tree(seed: int, count: int = 30) -> list[Node]:
    """Seeded random tree mixing labels, preferences, manual and locked nodes."""
    rng = random.Random(seed)
    nodes = [make_node("n0", w=rng.randint(5, 20), h=rng.randint(3, 12), label="root")]
    parents = ["n0"]

    for i in range(1, count):
        parent_id = rng.choice(parents)
        is_label = rng.random() < 0.1
        preferences = None
        if rng.random() < 0.2:
            preferences = PackingPreferences(
                fill_strategy=rng.choice([None, FillStrategy.FILL_ROWS_FIRST, FillStrategy.FILL_COLUMNS_FIRST]),
                max_columns=rng.choice([None, 1, 2, 3]),
                max_rows=rng.choice([None, 1, 2, 3]),
                orientation=rng.choice([None, FlowOrientation.ROW, FlowOrientation.COLUMN]),
            )
        node = make_node(
            f"n{i}",
            parent_id=parent_id,
            x=rng.randint(-5, 60),
            y=rng.randint(-5, 60),
            w=rng.randint(1, 12),
            h=rng.randint(1, 8),
            variant=NodeVariant.LABEL if is_label else NodeVariant.LEAF,
            label=rng.choice([None, "Label"]),
            packing_preferences=preferences,
            manual_positioning_enabled=rng.random() < 0.1,
            locked_as_is=rng.random() < 0.05,
        )
        nodes.append(node)
        if not is_label:
            parents.append(node.id)

    return nodes

