"""Hierarchy-mutation validation: reparent legality and drop-target detection."""

import logging
from typing import Optional, Tuple, Union

from diagram_engine.engine.results import DropTarget
from diagram_engine.model.geometry import Rect, contains_point
from diagram_engine.model.hierarchy import NodeSource, as_index
from diagram_engine.model.schema import Point, Viewport

logger = logging.getLogger(__name__)

Pointer = Union[Point, Tuple[float, float]]


def can_reparent(child_id: str, new_parent_id: Optional[str], nodes: NodeSource) -> bool:
    """Check whether ``child_id`` may be moved under ``new_parent_id``.

    Args:
        child_id: Node being moved.
        new_parent_id: Proposed parent, or None to promote to root.
        nodes: Node list or prepared NodeIndex.

    Returns:
        False for self-parenting, for a target inside the child's own
        subtree (a cycle), and for label targets. True otherwise,
        including promotion of a node that is already a root.

    Raises:
        UnreachableNodeError: If either id is unknown.
    """
    index = as_index(nodes)
    index.get(child_id)
    if new_parent_id is None:
        return True
    if new_parent_id == child_id:
        return False

    target = index.get(new_parent_id)
    if target.is_label:
        return False
    return not index.is_descendant(new_parent_id, child_id)


def detect_drop_targets(
    pointer: Pointer,
    dragged_id: str,
    nodes: NodeSource,
    viewport: Optional[Viewport] = None,
) -> list[DropTarget]:
    """Rank every node under the pointer as a drop target.

    The pointer is in screen pixels and is mapped into grid units through
    the viewport. Candidates exclude the dragged node and its subtree,
    are ranked deepest first (later list entries first within a depth,
    as they draw on top), and carry their can_reparent verdict. The
    canvas target (promote to root) is always last.

    Args:
        pointer: Pointer position in screen pixels, as a Point or an
            (x, y) pair of floats.
        dragged_id: Node being dragged.
        nodes: Node list or prepared NodeIndex.
        viewport: Pan, zoom and grid size. Defaults to an identity view.

    Returns:
        Ranked DropTarget list ending with the canvas target.
    """
    index = as_index(nodes)
    viewport = viewport or Viewport()
    index.get(dragged_id)
    px, py = (pointer.x, pointer.y) if isinstance(pointer, Point) else pointer
    gx, gy = viewport.to_grid(px, py)

    excluded = index.descendant_ids(dragged_id) | {dragged_id}
    hits = []
    for order, node in enumerate(index):
        if node.id in excluded:
            continue
        if contains_point(Rect.of(node), gx, gy):
            hits.append((index.depth(node.id), order, node.id))

    hits.sort(key=lambda hit: (-hit[0], -hit[1]))
    targets = [
        DropTarget(node_id=node_id, depth=depth, is_valid=can_reparent(dragged_id, node_id, index))
        for depth, _, node_id in hits
    ]
    targets.append(DropTarget(node_id=None, depth=-1, is_valid=True))
    return targets


def detect_drop_target(
    pointer: Pointer,
    dragged_id: str,
    nodes: NodeSource,
    viewport: Optional[Viewport] = None,
) -> Optional[str]:
    """Best valid drop target id, or None meaning "promote to root"."""
    for target in detect_drop_targets(pointer, dragged_id, nodes, viewport):
        if target.is_valid and not target.is_canvas:
            logger.debug(f"Drop target for {dragged_id}: {target.node_id} at depth {target.depth}")
            return target.node_id
    return None
