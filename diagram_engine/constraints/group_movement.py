"""Group-movement constraint solving.

A selection moves as a rigid body. Before a move is applied the solver
checks two constraints:

- the union box of the selection must stay inside its parent's interior
- no selected node may overlap a non-selected sibling

Boundary clamping is closed-form per axis. Sibling avoidance has no
closed form with N-way interactions, so the delta is walked back toward
zero one grid unit at a time until the swept boxes are clear. Siblings
the selection already overlaps before the move do not block it.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from itertools import groupby
from typing import Iterable, Optional, Union

from diagram_engine.constraints.selection import unique_ids, validate_selection
from diagram_engine.engine.results import CollisionReport, MutationResult, Rejection, RejectionReason
from diagram_engine.model.geometry import Rect, contains, inset_interior, overlaps, union
from diagram_engine.model.hierarchy import NodeIndex, NodeSource, as_index
from diagram_engine.model.schema import Delta, Margins, Node, Point

logger = logging.getLogger(__name__)


class Axis(str, Enum):
    """Movement axis."""

    X = "x"
    Y = "y"


@dataclass
class RelativePositions:
    """Selection offsets from the selection's top-left corner."""

    origin: Point
    offsets: dict[str, tuple[int, int]]


def _by_parent(selected: list[Node]) -> list[tuple[Optional[str], list[Node]]]:
    ordered = sorted(selected, key=lambda n: (n.parent_id is not None, n.parent_id or ""))
    return [(parent_id, list(group)) for parent_id, group in groupby(ordered, key=lambda n: n.parent_id)]


def _sibling_hits(
    index: NodeIndex,
    selected: list[Node],
    boxes: dict[str, Rect],
    ignore: Iterable[str] = (),
) -> list[str]:
    """Non-selected siblings overlapping any of the given boxes."""
    skipped = {n.id for n in selected} | set(ignore)
    hits: list[str] = []
    for node in selected:
        for sibling in index.children(node.parent_id):
            if sibling.id in skipped or sibling.id in hits:
                continue
            if overlaps(boxes[node.id], Rect.of(sibling)):
                hits.append(sibling.id)
    return hits


def detect_collisions(
    selection: Iterable[str],
    delta: Delta,
    nodes: NodeSource,
    margins: Optional[Margins] = None,
) -> CollisionReport:
    """Test a proposed group move.

    Args:
        selection: Selected node ids.
        delta: Proposed translation.
        nodes: Node list or prepared NodeIndex.
        margins: Margins that define each parent's interior.

    Returns:
        CollisionReport. Only siblings sharing a selected node's parent
        are compared; the boundary test applies to the union box of the
        selection, not to each node on its own. Roots have no boundary.
    """
    index = as_index(nodes)
    margins = margins or Margins()
    selected = index.require(unique_ids(selection))
    moved = {n.id: Rect.of(n).translated(delta.dx, delta.dy) for n in selected}

    offending = _sibling_hits(index, selected, moved)

    boundary_violated = False
    for parent_id, group in _by_parent(selected):
        if parent_id is None:
            continue
        interior = inset_interior(index.get(parent_id), margins)
        if not contains(interior, union(moved[n.id] for n in group)):
            boundary_violated = True

    return CollisionReport(
        blocked=bool(offending) or boundary_violated,
        offending_siblings=offending,
        boundary_violated=boundary_violated,
    )


def max_safe_delta(
    selection: Iterable[str],
    axis: Union[Axis, str],
    requested: int,
    nodes: NodeSource,
    margins: Optional[Margins] = None,
) -> int:
    """Largest delta along one axis, up to ``requested``, that keeps the group legal.

    Args:
        selection: Selected node ids.
        axis: "x" or "y".
        requested: Requested signed delta along the axis.
        nodes: Node list or prepared NodeIndex.
        margins: Margins that define each parent's interior.

    Returns:
        A delta with the sign of ``requested`` (or 0). The parent
        boundary is applied in closed form from the union box; sibling
        overlap then walks the delta back toward zero. A sibling already
        overlapping the selection is ignored so the group can move off it.
    """
    index = as_index(nodes)
    margins = margins or Margins()
    axis = Axis(axis)
    selected = index.require(unique_ids(selection))
    if not selected or requested == 0:
        return 0

    delta = requested
    for parent_id, group in _by_parent(selected):
        if parent_id is None:
            continue
        box = union(Rect.of(n) for n in group)
        interior = inset_interior(index.get(parent_id), margins)
        if axis == Axis.X:
            lead_room, trail_room = interior.right - box.right, interior.x - box.x
        else:
            lead_room, trail_room = interior.bottom - box.bottom, interior.y - box.y
        if delta > 0:
            delta = min(delta, max(0, lead_room))
        else:
            delta = max(delta, min(0, trail_room))

    already = overlapping_siblings(index, selected)
    step = 1 if delta > 0 else -1
    while delta != 0 and _sibling_hits(index, selected, _swept_boxes(selected, axis, delta), already):
        delta -= step

    if delta != requested:
        logger.debug(f"Clamped {axis.value} delta for {[n.id for n in selected]}: {requested} -> {delta}")
    return delta


def overlapping_siblings(index: NodeIndex, selected: list[Node]) -> list[str]:
    """Siblings the selection overlaps where it stands now."""
    return _sibling_hits(index, selected, {n.id: Rect.of(n) for n in selected})


def _swept_boxes(selected: list[Node], axis: Axis, delta: int) -> dict[str, Rect]:
    """Boxes covering each node's whole path, so a group cannot jump over a sibling."""
    boxes = {}
    for node in selected:
        start = Rect.of(node)
        end = start.translated(delta, 0) if axis == Axis.X else start.translated(0, delta)
        boxes[node.id] = union([start, end])
    return boxes


def constrain_group_delta(
    selection: Iterable[str],
    delta: Delta,
    nodes: NodeSource,
    margins: Optional[Margins] = None,
) -> Delta:
    """Clamp both axes of a delta: x first, then y from the shifted position."""
    index = as_index(nodes)
    ids = unique_ids(selection)
    dx = max_safe_delta(ids, Axis.X, delta.dx, index, margins)
    selected_ids = set(ids)
    shifted = [n.moved_by(dx, 0) if n.id in selected_ids else n for n in index.nodes]
    dy = max_safe_delta(ids, Axis.Y, delta.dy, shifted, margins)
    return Delta(dx=dx, dy=dy)


def capture_relative_positions(selection: Iterable[str], nodes: NodeSource) -> RelativePositions:
    """Record each selected node's offset from the selection's top-left corner."""
    index = as_index(nodes)
    selected = index.require(unique_ids(selection))
    origin = Point(x=min(n.x for n in selected), y=min(n.y for n in selected))
    return RelativePositions(
        origin=origin,
        offsets={n.id: (n.x - origin.x, n.y - origin.y) for n in selected},
    )


def translate_subtrees(nodes: NodeSource, shifts: dict[str, tuple[int, int]]) -> list[Node]:
    """Move each listed node and its whole subtree by its shift."""
    index = as_index(nodes)
    moves: dict[str, tuple[int, int]] = {}
    for node_id, shift in shifts.items():
        if shift == (0, 0):
            continue
        moves[node_id] = shift
        for descendant in index.descendants(node_id):
            moves[descendant.id] = shift
    return [n.moved_by(*moves[n.id]) if n.id in moves else n for n in index.nodes]


def apply_relative_positions(
    nodes: NodeSource,
    relative: RelativePositions,
    reference: Point,
) -> list[Node]:
    """Place each selected node at ``reference + offset``; descendants follow."""
    index = as_index(nodes)
    shifts = {}
    for node_id, (ox, oy) in relative.offsets.items():
        node = index.get(node_id)
        shifts[node_id] = (reference.x + ox - node.x, reference.y + oy - node.y)
    return translate_subtrees(index, shifts)


def movement_blockers(selected: list[Node], index: NodeIndex) -> list[str]:
    """Parents that forbid free movement: every non-root needs a manual parent."""
    blockers = []
    for node in selected:
        if node.parent_id is None:
            continue
        parent = index.get(node.parent_id)
        if not parent.manual_positioning_enabled and parent.id not in blockers:
            blockers.append(parent.id)
    return blockers


def _path_blockers(index: NodeIndex, selected: list[Node], delta: Delta) -> list[str]:
    """Siblings in the way of the full requested move, except ones overlapped at the start."""
    paths = {}
    for node in selected:
        start = Rect.of(node)
        paths[node.id] = union([start, start.translated(delta.dx, delta.dy)])
    return _sibling_hits(index, selected, paths, overlapping_siblings(index, selected))


def move_group(
    nodes: NodeSource,
    selection: Iterable[str],
    delta: Delta,
    margins: Optional[Margins] = None,
) -> MutationResult:
    """Move a selection as a rigid group.

    The move is refused up front when the selection is invalid or when a
    selected node's parent auto-packs its children. Every move goes
    through ``constrain_group_delta``, so a move that would leave the
    parent interior, land on a sibling or pass over one is clamped to the
    largest safe delta; it is refused only when that delta is zero.

    Args:
        nodes: Node list or prepared NodeIndex.
        selection: Selected node ids.
        delta: Requested translation.
        margins: Margins that define each parent's interior.

    Returns:
        MutationResult with the moved node list and the applied delta.
    """
    index = as_index(nodes)
    original = index.nodes

    check = validate_selection(selection, index)
    if not check.is_valid:
        logger.warning(f"Group move refused: {check.message}")
        return MutationResult.refused(
            original, RejectionReason.INVALID_SELECTION, check.message, [n.id for n in check.nodes]
        )

    blockers = movement_blockers(check.nodes, index)
    if blockers:
        message = f"Parent(s) {blockers} do not allow manual positioning"
        logger.warning(f"Group move refused: {message}")
        return MutationResult.refused(original, RejectionReason.MOVEMENT_NOT_PERMITTED, message, blockers)

    ids = [n.id for n in check.nodes]
    if delta.is_zero:
        return MutationResult(nodes=original, applied_delta=delta)

    rejection = None
    applied = constrain_group_delta(ids, delta, index, margins)
    if applied != delta:
        report = detect_collisions(ids, delta, index, margins)
        if report.boundary_violated:
            reason = RejectionReason.BOUNDARY_VIOLATION
            offenders = [check.parent_id] if check.parent_id is not None else []
            message = "Move would leave the parent interior"
        else:
            reason = RejectionReason.SIBLING_COLLISION
            offenders = _path_blockers(index, check.nodes, delta)
            message = f"Move would overlap siblings {offenders}"
        if applied.is_zero:
            logger.warning(f"Group move of {ids} refused: {message}")
            return MutationResult.refused(original, reason, message, offenders)
        rejection = Rejection(reason, f"{message}; clamped to ({applied.dx}, {applied.dy})", offenders)

    relative = capture_relative_positions(ids, index)
    reference = Point(x=relative.origin.x + applied.dx, y=relative.origin.y + applied.dy)
    return MutationResult(
        nodes=apply_relative_positions(index, relative, reference),
        rejection=rejection,
        applied_delta=applied,
    )
