"""Tests for selections and rigid group movement."""

import pytest

from diagram_engine.constraints.group_movement import (
    Axis,
    capture_relative_positions,
    constrain_group_delta,
    detect_collisions,
    max_safe_delta,
    move_group,
)
from diagram_engine.constraints.selection import validate_selection
from diagram_engine.engine.results import RejectionReason
from diagram_engine.model.hierarchy import UnreachableNodeError
from diagram_engine.model.schema import Delta, NodeVariant, Point
from diagram_engine.tests.helpers import by_id, make_node


@pytest.fixture
def two_roots() -> list:
    """Two root boxes side by side; R1 has one child."""
    return [
        make_node("R1", w=10, h=10),
        make_node("c", parent_id="R1", x=1, y=1),
        make_node("R2", x=20, w=10, h=10),
    ]


# ============================================================================
# Selection Tests
# ============================================================================


class TestSelection:
    """Tests for selection rules."""

    def test_empty_selection(self, manual_canvas) -> None:
        """An empty selection is invalid."""
        check = validate_selection([], manual_canvas)
        assert not check.is_valid
        assert check.nodes == []

    def test_single_node(self, manual_canvas) -> None:
        """One node is always valid."""
        check = validate_selection(["s1"], manual_canvas)
        assert check.is_valid
        assert check.parent_id == "p"

    def test_duplicates_dropped(self, manual_canvas) -> None:
        """Repeated ids count once, in first-seen order."""
        check = validate_selection(["s2", "s1", "s2"], manual_canvas)
        assert [n.id for n in check.nodes] == ["s2", "s1"]

    def test_mixed_parents(self, manual_canvas) -> None:
        """Nodes from different parents cannot be grouped."""
        check = validate_selection(["s1", "p"], manual_canvas)
        assert not check.is_valid
        assert "share a parent" in check.message

    def test_label_in_group(self, manual_canvas) -> None:
        """Labels cannot join a multi-node selection."""
        nodes = manual_canvas + [make_node("t", parent_id="p", x=2, y=15, variant=NodeVariant.LABEL)]
        assert validate_selection(["t"], nodes).is_valid
        assert not validate_selection(["s1", "t"], nodes).is_valid

    def test_unknown_id(self, manual_canvas) -> None:
        """Unknown ids raise."""
        with pytest.raises(UnreachableNodeError):
            validate_selection(["s1", "ghost"], manual_canvas)


# ============================================================================
# Collision Tests
# ============================================================================


class TestDetectCollisions:
    """Tests for collision reports."""

    def test_clear_move(self, manual_canvas) -> None:
        """A small move inside the interior is not blocked."""
        report = detect_collisions(["s1", "s2"], Delta(dx=2), manual_canvas)
        assert not report.blocked

    def test_sibling_hit(self, manual_canvas) -> None:
        """Landing on a sibling names it."""
        report = detect_collisions(["s1"], Delta(dx=-18), manual_canvas)
        assert report.blocked
        assert report.offending_siblings == ["o"]
        assert not report.boundary_violated

    def test_boundary_uses_union_box(self, manual_canvas) -> None:
        """The group's union box must stay inside the parent interior."""
        report = detect_collisions(["s1", "s2"], Delta(dx=10), manual_canvas)
        assert report.blocked
        assert report.boundary_violated
        assert report.offending_siblings == []

    def test_roots_have_no_boundary(self, two_roots) -> None:
        """Roots can move anywhere on the canvas."""
        report = detect_collisions(["R2"], Delta(dx=500, dy=-500), two_roots)
        assert not report.blocked


# ============================================================================
# Clamping Tests
# ============================================================================


class TestMaxSafeDelta:
    """Tests for per-axis clamping."""

    @pytest.mark.parametrize(
        "selection,axis,requested,expected",
        [
            (["s1", "s2"], Axis.X, 50, 5),
            (["s1", "s2"], Axis.X, 3, 3),
            (["s2"], Axis.X, -50, -29),
            (["s1"], Axis.X, -50, -16),
            (["s1", "s2"], Axis.Y, 50, 6),
            (["s1", "s2"], Axis.Y, -50, -4),
            (["s1"], "y", 0, 0),
        ],
    )
    def test_clamped(self, manual_canvas, selection, axis, requested, expected) -> None:
        """Boundary room first, then sibling avoidance."""
        assert max_safe_delta(selection, axis, requested, manual_canvas) == expected

    def test_cannot_jump_over_sibling(self, manual_canvas) -> None:
        """A delta landing past a sibling is still stopped in front of it."""
        assert max_safe_delta(["s1"], Axis.X, -25, manual_canvas) == -16

    def test_touching_sibling_blocks_fully(self, manual_canvas) -> None:
        """A node already touching a sibling cannot move into it."""
        nodes = [n.model_copy(update={"x": 14}) if n.id == "s1" else n for n in manual_canvas]
        assert max_safe_delta(["s1"], Axis.X, -5, nodes) == 0

    def test_roots_stop_at_sibling_roots(self, two_roots) -> None:
        """Root moves only avoid other roots."""
        assert max_safe_delta(["R1"], Axis.X, 15, two_roots) == 10

    def test_constrain_both_axes(self, manual_canvas) -> None:
        """x is clamped first, y from the shifted position."""
        assert constrain_group_delta(["s1", "s2"], Delta(dx=50, dy=50), manual_canvas) == Delta(dx=5, dy=6)


class TestRelativePositions:
    """Tests for rigid-body offsets."""

    def test_capture(self, manual_canvas) -> None:
        """Offsets are measured from the selection's top-left corner."""
        relative = capture_relative_positions(["s2", "s1"], manual_canvas)
        assert relative.origin == Point(x=30, y=5)
        assert relative.offsets == {"s2": (0, 5), "s1": (0, 0)}


# ============================================================================
# move_group Tests
# ============================================================================


class TestMoveGroup:
    """Tests for the group move operation."""

    def test_free_move(self, manual_canvas) -> None:
        """An unobstructed move is applied as requested."""
        result = move_group(manual_canvas, ["s1", "s2"], Delta(dx=-2, dy=1))
        moved = by_id(result.nodes)
        assert result.accepted and result.rejection is None
        assert (moved["s1"].x, moved["s1"].y) == (28, 6)
        assert (moved["s2"].x, moved["s2"].y) == (28, 11)

    def test_clamped_at_boundary(self, manual_canvas) -> None:
        """An overlong move stops at the interior edge and says why."""
        result = move_group(manual_canvas, ["s1", "s2"], Delta(dx=50))
        assert result.accepted
        assert result.clamped
        assert result.applied_delta == Delta(dx=5, dy=0)
        assert result.rejection.reason == RejectionReason.BOUNDARY_VIOLATION
        assert result.rejection.node_ids == ["p"]
        assert by_id(result.nodes)["s1"].x == 35

    def test_clamped_at_sibling_root(self, two_roots) -> None:
        """A root stops before another root and its subtree follows."""
        result = move_group(two_roots, ["R1"], Delta(dx=15))
        moved = by_id(result.nodes)
        assert result.applied_delta == Delta(dx=10, dy=0)
        assert result.rejection.reason == RejectionReason.SIBLING_COLLISION
        assert result.rejection.node_ids == ["R2"]
        assert moved["R1"].x == 10
        assert moved["c"].x == 11

    def test_fully_blocked(self, manual_canvas) -> None:
        """A move with no safe distance is refused and nothing changes."""
        nodes = [n.model_copy(update={"x": 14}) if n.id == "s1" else n for n in manual_canvas]
        result = move_group(nodes, ["s1"], Delta(dx=-5))
        assert not result.accepted
        assert result.rejection.reason == RejectionReason.SIBLING_COLLISION
        assert result.nodes == nodes

    def test_packed_parent_forbids_movement(self, chain_tree) -> None:
        """Children of an auto-packed container cannot be dragged."""
        result = move_group(chain_tree, ["c"], Delta(dx=1))
        assert not result.accepted
        assert result.rejection.reason == RejectionReason.MOVEMENT_NOT_PERMITTED
        assert result.rejection.node_ids == ["root"]
        assert result.nodes == chain_tree

    def test_invalid_selection(self, manual_canvas) -> None:
        """Cross-parent selections are refused."""
        result = move_group(manual_canvas, ["s1", "p"], Delta(dx=1))
        assert not result.accepted
        assert result.rejection.reason == RejectionReason.INVALID_SELECTION

    def test_zero_delta(self, manual_canvas) -> None:
        """A zero move is accepted and changes nothing."""
        result = move_group(manual_canvas, ["s1"], Delta())
        assert result.accepted
        assert result.nodes == manual_canvas

    def test_input_not_mutated(self, manual_canvas) -> None:
        """The caller's list is left alone."""
        snapshot = list(manual_canvas)
        move_group(manual_canvas, ["s1"], Delta(dx=-3))
        assert manual_canvas == snapshot

    @pytest.mark.parametrize(
        "delta",
        [Delta(dx=50), Delta(dx=-50), Delta(dy=50), Delta(dx=-7, dy=3), Delta(dx=4, dy=-9)],
    )
    def test_group_stays_rigid(self, manual_canvas, delta) -> None:
        """Relative offsets survive every move, clamped or not."""
        before = capture_relative_positions(["s1", "s2"], manual_canvas)
        result = move_group(manual_canvas, ["s1", "s2"], delta)
        after = capture_relative_positions(["s1", "s2"], result.nodes)
        assert after.offsets == before.offsets
        moved = by_id(result.nodes)
        applied = result.applied_delta or Delta()
        assert moved["s1"].x - 30 == applied.dx
        assert moved["s1"].y - 5 == applied.dy

    def test_descendants_follow(self) -> None:
        """Moving a container moves its whole subtree."""
        nodes = [
            make_node("p", w=40, h=40, manual_positioning_enabled=True),
            make_node("g", parent_id="p", x=5, y=5, w=10, h=10, variant=NodeVariant.CONTAINER),
            make_node("k", parent_id="g", x=6, y=6),
        ]
        moved = by_id(move_group(nodes, ["g"], Delta(dx=3, dy=4)).nodes)
        assert (moved["k"].x, moved["k"].y) == (9, 10)

    def test_move_stops_in_front_of_passed_sibling(self, manual_canvas) -> None:
        """A move landing past a sibling is clamped like max_safe_delta."""
        result = move_group(manual_canvas, ["s1"], Delta(dx=-25))
        assert result.accepted
        assert result.applied_delta == Delta(dx=-16, dy=0)
        assert result.rejection.reason == RejectionReason.SIBLING_COLLISION
        assert result.rejection.node_ids == ["o"]
        assert by_id(result.nodes)["s1"].x == 14


# ============================================================================
# Starting From an Overlap
# ============================================================================


@pytest.fixture
def stacked_canvas() -> list:
    """A manual parent where a already overlaps b, with c further right."""
    return [
        make_node("p", w=40, h=20, manual_positioning_enabled=True),
        make_node("a", parent_id="p", x=1, y=1, w=5, h=5),
        make_node("b", parent_id="p", x=3, y=1, w=5, h=5),
        make_node("c", parent_id="p", x=20, y=1, w=5, h=5),
    ]


class TestMoveFromOverlap:
    """A selection overlapping a sibling can still be moved off it."""

    def test_max_safe_delta_ignores_existing_overlap(self, stacked_canvas) -> None:
        """Only c limits the move; touching c is allowed."""
        assert max_safe_delta(["a"], Axis.X, 16, stacked_canvas) == 14

    def test_move_clamped_by_next_sibling(self, stacked_canvas) -> None:
        """The clamp names c, not the sibling already underneath."""
        result = move_group(stacked_canvas, ["a"], Delta(dx=16))
        assert result.accepted
        assert result.applied_delta == Delta(dx=14, dy=0)
        assert result.rejection.reason == RejectionReason.SIBLING_COLLISION
        assert result.rejection.node_ids == ["c"]
        assert by_id(result.nodes)["a"].x == 15

    def test_small_nudge_accepted(self, stacked_canvas) -> None:
        """A nudge that stays on the overlapped sibling is applied as asked."""
        result = move_group(stacked_canvas, ["a"], Delta(dx=2))
        assert result.accepted
        assert result.rejection is None
        assert by_id(result.nodes)["a"].x == 3
