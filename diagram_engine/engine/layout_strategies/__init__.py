"""
layout_strategies — Pluggable child packing strategies.

This package contains the three interchangeable packing algorithms:

- GridStrategy: uniform cells, row-major
- FlowStrategy: single-axis flow, alternating by depth
- MixedFlowStrategy: best of row/column/two-way splits by wasted area

Each strategy implements the BaseLayoutStrategy interface and is
selected by the PackingAlgorithm setting.
"""

from typing import Optional, Union

from .base_strategy import (
    Arrangement,
    BaseLayoutStrategy,
    PackContext,
    PackItem,
    Placement,
    wasted_area,
)
from .flow_strategy import FlowStrategy
from .grid_strategy import GridStrategy
from .mixed_flow_strategy import MixedFlowStrategy, balanced_split
from diagram_engine.model.schema import PackingAlgorithm, PackingPreferences

__all__ = [
    'Arrangement',
    'BaseLayoutStrategy',
    'PackContext',
    'PackItem',
    'Placement',
    'wasted_area',
    'FlowStrategy',
    'GridStrategy',
    'MixedFlowStrategy',
    'balanced_split',
    'get_strategy',
    'resolve_strategy',
    'STRATEGIES',
]


# Strategy registry for lookup by algorithm
STRATEGIES = {
    PackingAlgorithm.GRID: GridStrategy,
    PackingAlgorithm.FLOW: FlowStrategy,
    PackingAlgorithm.MIXED_FLOW: MixedFlowStrategy,
}

_unregistered = set(PackingAlgorithm) - set(STRATEGIES)
if _unregistered:
    raise ImportError(f"No packing strategy registered for: {sorted(a.value for a in _unregistered)}")


def get_strategy(algorithm: Union[str, PackingAlgorithm]) -> BaseLayoutStrategy:
    """Get a strategy instance by algorithm name."""
    try:
        key = PackingAlgorithm(algorithm.lower() if isinstance(algorithm, str) else algorithm)
    except ValueError:
        raise ValueError(
            f"Unknown packing algorithm: {algorithm}. Available: {[a.value for a in STRATEGIES]}"
        ) from None
    return STRATEGIES[key]()


def resolve_strategy(
    algorithm: PackingAlgorithm,
    preferences: Optional[PackingPreferences] = None,
) -> BaseLayoutStrategy:
    """Strategy for one container; a fill strategy preference forces grid."""
    if preferences is not None and preferences.forces_grid:
        return GridStrategy()
    return get_strategy(algorithm)
