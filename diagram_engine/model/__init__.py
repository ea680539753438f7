"""Data model: node schema, geometry primitives and the hierarchy arena."""

from diagram_engine.model.geometry import Rect, contains, contains_point, inset_interior, overlaps, union
from diagram_engine.model.hierarchy import NodeIndex, UnreachableNodeError, derive_variant, refresh_variants
from diagram_engine.model.schema import LayoutSettings, Margins, Node, NodeVariant

__all__ = [
    "Rect",
    "contains",
    "contains_point",
    "inset_interior",
    "overlaps",
    "union",
    "NodeIndex",
    "UnreachableNodeError",
    "derive_variant",
    "refresh_variants",
    "LayoutSettings",
    "Margins",
    "Node",
    "NodeVariant",
]
