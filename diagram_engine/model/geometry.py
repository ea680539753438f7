"""Axis-aligned bounding-box primitives."""

from dataclasses import dataclass
from typing import Iterable, Optional

from diagram_engine.model.schema import Margins, Node


@dataclass(frozen=True)
class Rect:
    """Integer rectangle. Width or height may be non-positive for a degenerate interior."""

    x: int
    y: int
    w: int
    h: int

    @property
    def right(self) -> int:
        return self.x + self.w

    @property
    def bottom(self) -> int:
        return self.y + self.h

    @property
    def area(self) -> int:
        return max(0, self.w) * max(0, self.h)

    @classmethod
    def of(cls, node: Node) -> "Rect":
        """Bounding box of a node."""
        return cls(node.x, node.y, node.w, node.h)

    def translated(self, dx: int, dy: int) -> "Rect":
        return Rect(self.x + dx, self.y + dy, self.w, self.h)


def overlaps(a: Rect, b: Rect) -> bool:
    """Strict AABB intersection. Touching edges do not overlap."""
    return a.x < b.right and b.x < a.right and a.y < b.bottom and b.y < a.bottom


def union(rects: Iterable[Rect]) -> Optional[Rect]:
    """Smallest rectangle covering every input, or None for an empty input."""
    rects = list(rects)
    if not rects:
        return None
    left = min(r.x for r in rects)
    top = min(r.y for r in rects)
    right = max(r.right for r in rects)
    bottom = max(r.bottom for r in rects)
    return Rect(left, top, right - left, bottom - top)


def contains(outer: Rect, inner: Rect) -> bool:
    """Whether ``inner`` lies inside ``outer``. Shared edges count as inside."""
    return (
        inner.x >= outer.x
        and inner.y >= outer.y
        and inner.right <= outer.right
        and inner.bottom <= outer.bottom
    )


def contains_point(rect: Rect, px: float, py: float) -> bool:
    """Inclusive point-in-rectangle test."""
    return rect.x <= px <= rect.right and rect.y <= py <= rect.bottom


def inset_interior(container: Node, margins: Margins) -> Rect:
    """Interior a container offers its children, in absolute grid units.

    Args:
        container: The containing node.
        margins: Active margin settings.

    Returns:
        The margin-adjusted interior. Label space is reserved only when the
        container shows a label.
    """
    top = margins.top_inset(container.has_visible_label)
    return Rect(
        container.x + margins.margin,
        container.y + top,
        container.w - 2 * margins.margin,
        container.h - top - margins.margin,
    )
