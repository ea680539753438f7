"""Anchor-based alignment of a selection."""

from enum import Enum
from typing import Sequence

from diagram_engine.model.schema import Node, Point


class AlignType(str, Enum):
    """Alignment types."""

    LEFT = "left"
    CENTER = "center"
    RIGHT = "right"
    TOP = "top"
    MIDDLE = "middle"
    BOTTOM = "bottom"


def align_positions(selected: Sequence[Node], align_type: AlignType) -> dict[str, Point]:
    """Target positions that align a selection to its first node.

    The first selected node is the anchor and keeps its position. Every
    other node moves along one axis only.

    Args:
        selected: Nodes in selection order.
        align_type: Edge or center line to align on.

    Returns:
        New top-left corner per node id, anchor included.
    """
    if not selected:
        return {}

    anchor = selected[0]
    positions = {anchor.id: Point(x=anchor.x, y=anchor.y)}
    for node in selected[1:]:
        x, y = node.x, node.y
        if align_type == AlignType.LEFT:
            x = anchor.x
        elif align_type == AlignType.CENTER:
            x = anchor.x + (anchor.w - node.w) // 2
        elif align_type == AlignType.RIGHT:
            x = anchor.right - node.w
        elif align_type == AlignType.TOP:
            y = anchor.y
        elif align_type == AlignType.MIDDLE:
            y = anchor.y + (anchor.h - node.h) // 2
        elif align_type == AlignType.BOTTOM:
            y = anchor.bottom - node.h
        positions[node.id] = Point(x=x, y=y)
    return positions
