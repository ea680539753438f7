"""
base_strategy.py — Abstract base class for packing strategies.

All packing strategies inherit from BaseLayoutStrategy and implement
the arrange() method. arrange() lays the items out relative to (0, 0)
with a one-margin gap between siblings; pack() then offsets that
arrangement into a container's interior.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import ClassVar, List, Optional, Sequence

from diagram_engine.model.schema import Margins, PackingAlgorithm, PackingPreferences, Size
from diagram_engine.model.units import MIN_HEIGHT, MIN_WIDTH


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class PackItem:
    """One sibling to pack, at the size it must be given."""
    id: str
    w: int
    h: int

    @property
    def area(self) -> int:
        return self.w * self.h


@dataclass(frozen=True)
class Placement:
    """
    Computed position for a single item.

    Coordinates are relative to the arrangement origin until pack()
    moves them into the container frame.
    """
    id: str
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

    def shifted(self, dx: int, dy: int) -> "Placement":
        return Placement(self.id, self.x + dx, self.y + dy, self.w, self.h)


@dataclass
class Arrangement:
    """
    Result from strategy computation.

    width/height is the extent of the content, gaps included.
    """
    placements: List[Placement] = field(default_factory=list)
    width: int = 0
    height: int = 0

    # Name of the candidate layout that produced it (mixed-flow, grid)
    candidate: str = ""

    @property
    def bounding_area(self) -> int:
        return self.width * self.height

    @property
    def wasted_area(self) -> float:
        """(bounding box area - sum of item areas) / bounding box area."""
        return wasted_area(self)

    @property
    def aspect_penalty(self) -> float:
        """Distance of the aspect ratio from 1:1, on a log scale."""
        if self.width <= 0 or self.height <= 0:
            return 0.0
        return abs(math.log(self.width / self.height))

    def get_placement(self, item_id: str) -> Optional[Placement]:
        """Find a placement by item id."""
        for placement in self.placements:
            if placement.id == item_id:
                return placement
        return None


@dataclass(frozen=True)
class PackContext:
    """
    Everything a strategy may consult besides the items themselves.

    available is the container's outer size; None means an unbounded
    provisional area, used when computing minimum sizes.
    """
    margins: Margins = field(default_factory=Margins)
    labelled: bool = False
    preferences: Optional[PackingPreferences] = None
    depth: int = 0
    available: Optional[Size] = None

    @property
    def gap(self) -> int:
        return self.margins.margin

    @property
    def left_inset(self) -> int:
        return self.margins.margin

    @property
    def top_inset(self) -> int:
        return self.margins.top_inset(self.labelled)

    @property
    def interior_width(self) -> Optional[int]:
        if self.available is None:
            return None
        return self.available.w - 2 * self.margins.margin

    @property
    def interior_height(self) -> Optional[int]:
        if self.available is None:
            return None
        return self.available.h - self.top_inset - self.margins.margin

    def fits(self, width: int, height: int) -> bool:
        """Whether content of this extent fits the interior."""
        if self.available is None:
            return True
        return width <= self.interior_width and height <= self.interior_height


def wasted_area(arrangement: Arrangement) -> float:
    """Share of the bounding box not covered by items."""
    bounding = arrangement.bounding_area
    if bounding <= 0:
        return 0.0
    used = sum(p.w * p.h for p in arrangement.placements)
    return (bounding - used) / bounding


# =============================================================================
# BASE STRATEGY
# =============================================================================

class BaseLayoutStrategy(ABC):
    """
    Abstract base class for packing strategies.

    Strategies are stateless: the same items and context always give
    the same arrangement, which keeps relayout idempotent.
    """

    algorithm: ClassVar[PackingAlgorithm]

    # Whether leftover interior space centers the arrangement
    centers_content: ClassVar[bool] = True

    @abstractmethod
    def arrange(self, items: Sequence[PackItem], context: PackContext) -> Arrangement:
        """
        Lay out items relative to (0, 0).

        Args:
            items: Siblings in input order, at their required sizes
            context: Margins, preferences, depth and available area

        Returns:
            Arrangement with placements and content extent
        """
        pass

    # =========================================================================
    # HELPER METHODS (Available to all strategies)
    # =========================================================================

    def pack(self, items: Sequence[PackItem], context: PackContext) -> Arrangement:
        """
        Arrange items and move them into the container's interior.

        Placements come back relative to the container's top-left corner.
        Leftover space is split with floor division so positions stay on
        the grid. Items are never placed outside the interior when it has
        room for them.
        """
        arrangement = self.arrange(items, context)
        origin_x = context.left_inset
        origin_y = context.top_inset

        if context.available is not None and self.centers_content:
            origin_x += max(0, (context.interior_width - arrangement.width) // 2)
            origin_y += max(0, (context.interior_height - arrangement.height) // 2)

        placements = [p.shifted(origin_x, origin_y) for p in arrangement.placements]
        if context.available is not None:
            placements = [self._clamp_into_interior(p, context) for p in placements]

        return Arrangement(
            placements=placements,
            width=arrangement.width,
            height=arrangement.height,
            candidate=arrangement.candidate,
        )

    def minimum_size(self, items: Sequence[PackItem], context: PackContext) -> Size:
        """
        Smallest container that hosts the items under this strategy.

        Runs arrange() against an unbounded area and adds the margins.
        """
        unbounded = PackContext(
            margins=context.margins,
            labelled=context.labelled,
            preferences=context.preferences,
            depth=context.depth,
        )
        arrangement = self.arrange(items, unbounded)
        return Size(
            w=max(MIN_WIDTH, arrangement.width + 2 * context.margins.margin),
            h=max(MIN_HEIGHT, arrangement.height + context.top_inset + context.margins.margin),
        )

    def _clamp_into_interior(self, placement: Placement, context: PackContext) -> Placement:
        """Keep a placement inside [inset, available - margin] on both axes."""
        left = context.left_inset
        top = context.top_inset
        right = context.available.w - context.margins.margin
        bottom = context.available.h - context.margins.margin

        x = max(left, min(placement.x, right - placement.w))
        y = max(top, min(placement.y, bottom - placement.h))
        if x == placement.x and y == placement.y:
            return placement
        return Placement(placement.id, x, y, placement.w, placement.h)

    @staticmethod
    def _line_extent(items: Sequence[PackItem], gap: int, horizontal: bool) -> tuple:
        """(length along the line, thickness across it) for one line of items."""
        if not items:
            return (0, 0)
        if horizontal:
            return (sum(i.w for i in items) + gap * (len(items) - 1), max(i.h for i in items))
        return (sum(i.h for i in items) + gap * (len(items) - 1), max(i.w for i in items))

    def _stack_lines(
        self,
        lines: Sequence[Sequence[PackItem]],
        gap: int,
        horizontal: bool,
        candidate: str = "",
    ) -> Arrangement:
        """
        Place lines of items next to each other.

        horizontal=True lays each line left to right and stacks lines
        top to bottom; False lays each line top to bottom and stacks
        lines left to right. Items are aligned to the line's start.
        """
        placements: List[Placement] = []
        cursor_across = 0
        max_length = 0

        for line in lines:
            if not line:
                continue
            length, thickness = self._line_extent(line, gap, horizontal)
            cursor_along = 0
            for item in line:
                if horizontal:
                    placements.append(Placement(item.id, cursor_along, cursor_across, item.w, item.h))
                    cursor_along += item.w + gap
                else:
                    placements.append(Placement(item.id, cursor_across, cursor_along, item.w, item.h))
                    cursor_along += item.h + gap
            max_length = max(max_length, length)
            cursor_across += thickness + gap

        total_across = max(0, cursor_across - gap)
        if horizontal:
            return Arrangement(placements, max_length, total_across, candidate)
        return Arrangement(placements, total_across, max_length, candidate)
