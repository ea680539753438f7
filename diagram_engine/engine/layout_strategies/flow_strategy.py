"""
flow_strategy.py — Single-axis flow packing strategy.

Pattern: children laid out along one axis in input order, wrapping to
a new line only when a max column/row count is configured. The axis
alternates with hierarchy depth so nested levels read naturally:
even depths flow as rows, odd depths as columns.
"""

from typing import List, Sequence

from .base_strategy import Arrangement, BaseLayoutStrategy, PackContext, PackItem
from diagram_engine.model.schema import FlowOrientation, PackingAlgorithm


class FlowStrategy(BaseLayoutStrategy):
    """
    Flow packing strategy.

    Key features:
    - Orientation from the container's preference, else from its depth
    - Wrapping at max_columns (rows) or max_rows (columns)
    - Packs from the top-left of the interior
    """

    algorithm = PackingAlgorithm.FLOW
    centers_content = False

    def arrange(self, items: Sequence[PackItem], context: PackContext) -> Arrangement:
        """Compute positions for flow layout."""
        if not items:
            return Arrangement(candidate="flow")

        orientation = self.resolve_orientation(context)
        horizontal = orientation == FlowOrientation.ROW

        limit = None
        if context.preferences is not None:
            limit = context.preferences.max_columns if horizontal else context.preferences.max_rows

        lines = self._wrap(items, limit)
        return self._stack_lines(lines, context.gap, horizontal, candidate=f"flow {orientation.value}")

    @staticmethod
    def resolve_orientation(context: PackContext) -> FlowOrientation:
        """Per-container override first, otherwise alternate by depth."""
        if context.preferences is not None and context.preferences.orientation is not None:
            return context.preferences.orientation
        return FlowOrientation.ROW if context.depth % 2 == 0 else FlowOrientation.COLUMN

    @staticmethod
    def _wrap(items: Sequence[PackItem], limit) -> List[List[PackItem]]:
        if not limit:
            return [list(items)]
        return [list(items[start:start + limit]) for start in range(0, len(items), limit)]
