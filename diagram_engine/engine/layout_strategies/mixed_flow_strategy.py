"""
mixed_flow_strategy.py — Space-efficiency driven packing strategy.

Used for: siblings of very unequal sizes, e.g. one large container next
to several small leaves, where a pure row or column wastes most of its
bounding box.

Pattern: evaluate four candidate layouts and keep the one with the
least wasted area:

- single row
- single column
- two columns, split so the column heights balance
- two rows, split so the row widths balance

Ties on wasted area go to the candidate whose aspect ratio is closest
to 1:1, then to the earlier candidate in the list above.
"""

import logging
from typing import List, Sequence, Tuple

from .base_strategy import Arrangement, BaseLayoutStrategy, PackContext, PackItem
from diagram_engine.model.schema import PackingAlgorithm

logger = logging.getLogger(__name__)


def balanced_split(items: Sequence[PackItem], horizontal: bool) -> Tuple[List[PackItem], List[PackItem]]:
    """
    Partition items into two groups with near-equal summed extents.

    Greedy: visit items largest first along the primary axis (width when
    horizontal, height otherwise) and drop each into the currently
    smaller bucket, the first bucket on ties. Each bucket keeps the
    input order of its items.
    """
    def extent(item: PackItem) -> int:
        return item.w if horizontal else item.h

    order = sorted(range(len(items)), key=lambda i: -extent(items[i]))
    totals = [0, 0]
    buckets: List[List[int]] = [[], []]
    for index in order:
        target = 0 if totals[0] <= totals[1] else 1
        buckets[target].append(index)
        totals[target] += extent(items[index])

    return (
        [items[i] for i in sorted(buckets[0])],
        [items[i] for i in sorted(buckets[1])],
    )


class MixedFlowStrategy(BaseLayoutStrategy):
    """
    Mixed-flow packing strategy.

    Key features:
    - Candidate evaluation by wasted area
    - Greedy balanced two-way splits
    - Only candidates that fit a bounded area compete, when any fit
    """

    algorithm = PackingAlgorithm.MIXED_FLOW

    def arrange(self, items: Sequence[PackItem], context: PackContext) -> Arrangement:
        """Compute positions for the best candidate layout."""
        if not items:
            return Arrangement(candidate="empty")

        candidates = self.candidates(items, context)
        fitting = [c for c in candidates if context.fits(c.width, c.height)]
        pool = fitting or candidates

        best = min(
            enumerate(pool),
            key=lambda pair: (round(pair[1].wasted_area, 9), round(pair[1].aspect_penalty, 9), pair[0]),
        )[1]
        logger.debug(
            f"Mixed-flow chose {best.candidate} for {len(items)} items "
            f"({best.width}x{best.height}, waste {best.wasted_area:.1%})"
        )
        return best

    def candidates(self, items: Sequence[PackItem], context: PackContext) -> List[Arrangement]:
        """All candidate arrangements, in tie-break order."""
        gap = context.gap
        result = [
            self._stack_lines([list(items)], gap, horizontal=True, candidate="single-row"),
            self._stack_lines([list(items)], gap, horizontal=False, candidate="single-column"),
        ]
        if len(items) > 2:
            columns = balanced_split(items, horizontal=False)
            rows = balanced_split(items, horizontal=True)
            result.append(self._stack_lines(columns, gap, horizontal=False, candidate="two-column"))
            result.append(self._stack_lines(rows, gap, horizontal=True, candidate="two-row"))
        return result
