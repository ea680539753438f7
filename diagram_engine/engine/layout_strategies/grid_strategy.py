"""
grid_strategy.py — Grid-based packing strategy.

Pattern: children arranged row-major in uniform cells. Every cell is as
wide as the widest child and as tall as the tallest one; each child is
centered in its cell.
"""

import math
from typing import List, Optional, Sequence, Tuple

from .base_strategy import (
    Arrangement,
    BaseLayoutStrategy,
    PackContext,
    PackItem,
    Placement,
)
from diagram_engine.model.schema import FillStrategy, PackingAlgorithm, PackingPreferences


class GridStrategy(BaseLayoutStrategy):
    """
    Grid packing strategy.

    Key features:
    - Column count balanced against the available aspect ratio
    - Fill-rows-first / fill-columns-first preference overrides
    - Identical-width columns and identical-height rows
    - Deterministic row-major ordering by input order
    """

    algorithm = PackingAlgorithm.GRID

    def arrange(self, items: Sequence[PackItem], context: PackContext) -> Arrangement:
        """Compute cell positions for grid layout."""
        if not items:
            return Arrangement(candidate="grid 0x0")

        count = len(items)
        gap = context.gap
        cell_w = max(i.w for i in items)
        cell_h = max(i.h for i in items)

        cols, rows = self.calculate_grid_dimensions(count, context.preferences)
        if (context.preferences is None or not context.preferences.forces_grid) and context.available is not None:
            cols, rows = self._fit_to_area(count, cell_w, cell_h, gap, context, default=(cols, rows))

        placements: List[Placement] = []
        for index, item in enumerate(items):
            col = index % cols
            row = index // cols
            cell_x = col * (cell_w + gap)
            cell_y = row * (cell_h + gap)
            placements.append(Placement(
                id=item.id,
                x=cell_x + (cell_w - item.w) // 2,
                y=cell_y + (cell_h - item.h) // 2,
                w=item.w,
                h=item.h,
            ))

        width, height = self._grid_extent(cols, rows, cell_w, cell_h, gap)
        return Arrangement(placements, width, height, candidate=f"grid {cols}x{rows}")

    def calculate_grid_dimensions(
        self,
        count: int,
        preferences: Optional[PackingPreferences] = None,
    ) -> Tuple[int, int]:
        """
        Column and row counts before any area fitting.

        Without preferences the grid is as square as possible. A fill
        strategy pins one of the two counts from max_columns/max_rows.
        """
        if count <= 0:
            return (0, 0)

        if preferences is not None and preferences.fill_strategy == FillStrategy.FILL_ROWS_FIRST:
            if preferences.max_columns:
                cols = min(preferences.max_columns, count)
            else:
                cols = math.ceil(math.sqrt(count))
            return (cols, math.ceil(count / cols))

        if preferences is not None and preferences.fill_strategy == FillStrategy.FILL_COLUMNS_FIRST:
            if preferences.max_rows:
                rows = min(preferences.max_rows, count)
            else:
                rows = math.ceil(math.sqrt(count))
            return (math.ceil(count / rows), rows)

        cols = math.ceil(math.sqrt(count))
        return (cols, math.ceil(count / cols))

    def _fit_to_area(
        self,
        count: int,
        cell_w: int,
        cell_h: int,
        gap: int,
        context: PackContext,
        default: Tuple[int, int],
    ) -> Tuple[int, int]:
        """
        Pick the column count whose grid best matches the interior's shape.

        Only grids that fit are considered; if none fits, the default
        dimensions are kept and the container is expected to grow.
        """
        inner_w = context.interior_width
        inner_h = context.interior_height
        if inner_w <= 0 or inner_h <= 0:
            return default

        target = math.log(inner_w / inner_h)
        best = None
        best_key = None
        for cols in range(1, count + 1):
            rows = math.ceil(count / cols)
            width, height = self._grid_extent(cols, rows, cell_w, cell_h, gap)
            if width > inner_w or height > inner_h:
                continue
            key = (
                round(abs(math.log(width / height) - target), 9),
                abs(cols - default[0]),
                cols,
            )
            if best_key is None or key < best_key:
                best, best_key = (cols, rows), key

        return best if best is not None else default

    @staticmethod
    def _grid_extent(cols: int, rows: int, cell_w: int, cell_h: int, gap: int) -> Tuple[int, int]:
        if cols <= 0 or rows <= 0:
            return (0, 0)
        return (cols * cell_w + (cols - 1) * gap, rows * cell_h + (rows - 1) * gap)
