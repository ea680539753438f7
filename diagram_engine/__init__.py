"""diagram_engine - hierarchical box-in-box layout and constraint engine.

The engine is a pure function of a flat node list plus one mutation request.
Every operation takes an immutable snapshot and returns a new one.
"""

from diagram_engine.engine.layout_engine import LayoutEngine
from diagram_engine.engine.results import (
    CollisionReport,
    DropTarget,
    MutationResult,
    Rejection,
    RejectionReason,
)
from diagram_engine.model.hierarchy import NodeIndex, UnreachableNodeError
from diagram_engine.model.schema import (
    Delta,
    FillStrategy,
    FixedLeafDimensions,
    FlowOrientation,
    LayoutSettings,
    Margins,
    Node,
    NodeVariant,
    PackingAlgorithm,
    PackingPreferences,
    Point,
    RemovalPolicy,
    Size,
    Viewport,
)

__version__ = "0.1.0"

__all__ = [
    "LayoutEngine",
    "CollisionReport",
    "DropTarget",
    "MutationResult",
    "Rejection",
    "RejectionReason",
    "NodeIndex",
    "UnreachableNodeError",
    "Delta",
    "FillStrategy",
    "FixedLeafDimensions",
    "FlowOrientation",
    "LayoutSettings",
    "Margins",
    "Node",
    "NodeVariant",
    "PackingAlgorithm",
    "PackingPreferences",
    "Point",
    "RemovalPolicy",
    "Size",
    "Viewport",
]
