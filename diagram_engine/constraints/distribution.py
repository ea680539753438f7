"""Equal-gap distribution of a selection between its first and last nodes."""

from enum import Enum
from typing import Sequence

from diagram_engine.model.schema import Node, Point


class DistributionDirection(str, Enum):
    """Distribution axis."""

    HORIZONTAL = "horizontal"
    VERTICAL = "vertical"


def can_distribute(selected: Sequence[Node]) -> bool:
    """Distribution needs two fixed ends and at least one node between them."""
    return len(selected) >= 3


def distribute_positions(selected: Sequence[Node], direction: DistributionDirection) -> dict[str, Point]:
    """Target positions that spread the inner nodes with equal white space.

    The first and last selected nodes stay where they are and bound the
    span. The nodes between them are placed in order of their current
    position; any remainder of the integer gap goes to the leading gaps.

    Args:
        selected: Nodes in selection order.
        direction: Axis to distribute along.

    Returns:
        New top-left corner per moved node id. Empty when fewer than
        three nodes are selected.
    """
    if not can_distribute(selected):
        return {}

    horizontal = direction == DistributionDirection.HORIZONTAL
    first, last = selected[0], selected[-1]

    def start(node: Node) -> int:
        return node.x if horizontal else node.y

    def length(node: Node) -> int:
        return node.w if horizontal else node.h

    lead, tail = (first, last) if start(first) <= start(last) else (last, first)
    inner = sorted(selected[1:-1], key=start)

    white_space = start(tail) - (start(lead) + length(lead)) - sum(length(n) for n in inner)
    gap, remainder = divmod(white_space, len(inner) + 1)

    positions = {}
    cursor = start(lead) + length(lead)
    for i, node in enumerate(inner):
        cursor += gap + (1 if i < remainder else 0)
        positions[node.id] = Point(x=cursor, y=node.y) if horizontal else Point(x=node.x, y=cursor)
        cursor += length(node)
    return positions
