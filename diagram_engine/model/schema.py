"""Pydantic v2 models for the diagram node list and layout settings.

A diagram is a flat list of ``Node`` records linked by ``parent_id``. All
geometry is in integer grid units, never pixels. Every model is frozen: the
engine produces new node lists with ``model_copy`` instead of mutating.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from diagram_engine.model.units import (
    DEFAULT_LABEL_MARGIN,
    DEFAULT_LEAF_SIZE,
    DEFAULT_MARGIN,
    GRID_SIZE,
)


class NodeVariant(str, Enum):
    """Role of a node in the hierarchy."""

    ROOT = "root"
    CONTAINER = "container"
    LEAF = "leaf"
    LABEL = "label"


class PackingAlgorithm(str, Enum):
    """Interchangeable child packing algorithms."""

    GRID = "grid"
    FLOW = "flow"
    MIXED_FLOW = "mixed-flow"


class FillStrategy(str, Enum):
    """Grid fill order override."""

    FILL_ROWS_FIRST = "fill-rows-first"
    FILL_COLUMNS_FIRST = "fill-columns-first"


class FlowOrientation(str, Enum):
    """Primary axis for flow packing."""

    ROW = "row"
    COLUMN = "column"


class RemovalPolicy(str, Enum):
    """What happens to the children of a removed node."""

    DELETE_SUBTREE = "delete-subtree"
    PROMOTE_CHILDREN = "promote-children"


# ============================================================================
# Value Models
# ============================================================================


class Size(BaseModel):
    """Width and height in grid units."""

    model_config = ConfigDict(frozen=True)

    w: int = Field(gt=0, description="Width in grid units")
    h: int = Field(gt=0, description="Height in grid units")


class Point(BaseModel):
    """Position in grid units."""

    model_config = ConfigDict(frozen=True)

    x: int = 0
    y: int = 0


class Delta(BaseModel):
    """Requested or applied translation in grid units."""

    model_config = ConfigDict(frozen=True)

    dx: int = 0
    dy: int = 0

    @property
    def is_zero(self) -> bool:
        return self.dx == 0 and self.dy == 0


class Viewport(BaseModel):
    """Canvas transform used to map screen pixels into grid units."""

    model_config = ConfigDict(frozen=True)

    pan_x: float = Field(default=0.0, description="Horizontal pan in pixels")
    pan_y: float = Field(default=0.0, description="Vertical pan in pixels")
    zoom: float = Field(default=1.0, gt=0, description="Zoom factor")
    grid_size: int = Field(default=GRID_SIZE, gt=0, description="Pixels per grid unit")

    def to_grid(self, px: float, py: float) -> tuple[float, float]:
        """Convert a screen-pixel pointer position to grid units."""
        return (
            (px - self.pan_x) / self.zoom / self.grid_size,
            (py - self.pan_y) / self.zoom / self.grid_size,
        )


# ============================================================================
# Settings Models
# ============================================================================


class Margins(BaseModel):
    """Container insets and sibling gap."""

    model_config = ConfigDict(frozen=True)

    margin: int = Field(default=DEFAULT_MARGIN, ge=0, description="Uniform inset and sibling gap")
    label_margin: int = Field(
        default=DEFAULT_LABEL_MARGIN, ge=0, description="Extra top inset for labelled containers"
    )

    def top_inset(self, labelled: bool) -> int:
        """Top inset for a container, with label space when it shows a label."""
        return self.margin + (self.label_margin if labelled else 0)


class FixedLeafDimensions(BaseModel):
    """Globally enforced leaf dimensions, per axis."""

    model_config = ConfigDict(frozen=True)

    enforce_width: bool = False
    enforce_height: bool = False
    width: int = Field(default=DEFAULT_LEAF_SIZE[0], gt=0)
    height: int = Field(default=DEFAULT_LEAF_SIZE[1], gt=0)

    def apply(self, w: int, h: int) -> tuple[int, int]:
        """Return ``(w, h)`` with the enforced axes replaced."""
        return (
            self.width if self.enforce_width else w,
            self.height if self.enforce_height else h,
        )


class LayoutSettings(BaseModel):
    """Global settings every layout operation runs under."""

    model_config = ConfigDict(frozen=True)

    algorithm: PackingAlgorithm = PackingAlgorithm.GRID
    margins: Margins = Field(default_factory=Margins)
    fixed_leaf_dimensions: FixedLeafDimensions = Field(default_factory=FixedLeafDimensions)
    grid_size: int = Field(default=GRID_SIZE, gt=0, description="Pixels per grid unit")


class PackingPreferences(BaseModel):
    """Per-container packing overrides."""

    model_config = ConfigDict(frozen=True)

    fill_strategy: Optional[FillStrategy] = None
    max_columns: Optional[int] = Field(default=None, ge=1)
    max_rows: Optional[int] = Field(default=None, ge=1)
    orientation: Optional[FlowOrientation] = None

    @property
    def forces_grid(self) -> bool:
        """A fill strategy pins the container to grid packing."""
        return self.fill_strategy is not None


# ============================================================================
# Node
# ============================================================================


class Node(BaseModel):
    """A rectangle in the diagram hierarchy."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1, description="Unique node id")
    parent_id: Optional[str] = Field(default=None, description="Parent node id, None for roots")
    x: int = Field(default=0, description="Left edge in grid units")
    y: int = Field(default=0, description="Top edge in grid units")
    w: int = Field(gt=0, description="Width in grid units")
    h: int = Field(gt=0, description="Height in grid units")
    variant: NodeVariant = NodeVariant.LEAF
    label: Optional[str] = Field(default=None, description="Visible label text")
    packing_preferences: Optional[PackingPreferences] = None
    manual_positioning_enabled: bool = False
    locked_as_is: bool = False

    @property
    def right(self) -> int:
        """Right edge position."""
        return self.x + self.w

    @property
    def bottom(self) -> int:
        """Bottom edge position."""
        return self.y + self.h

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    @property
    def is_label(self) -> bool:
        return self.variant == NodeVariant.LABEL

    @property
    def has_visible_label(self) -> bool:
        """Whether the node reserves label space at the top of its interior."""
        return bool(self.label) and not self.is_label

    def moved_by(self, dx: int, dy: int) -> "Node":
        """Return a copy translated by ``(dx, dy)``."""
        if dx == 0 and dy == 0:
            return self
        return self.model_copy(update={"x": self.x + dx, "y": self.y + dy})
