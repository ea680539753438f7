"""
layout_engine.py — Mutation facade over the layout and constraint engine.

Each method takes the current node list snapshot plus one mutation
request and returns a MutationResult carrying a new snapshot. Input
lists are never modified. Geometry problems are recovered locally by
clamping or a refused no-op; unknown ids raise UnreachableNodeError.
"""

import logging
from typing import Iterable, Optional, Sequence, Union

from diagram_engine.config import get_settings
from diagram_engine.constraints.alignment import AlignType, align_positions
from diagram_engine.constraints.distribution import DistributionDirection, can_distribute, distribute_positions
from diagram_engine.constraints.group_movement import move_group, movement_blockers, translate_subtrees
from diagram_engine.constraints.hierarchy_validator import can_reparent, detect_drop_target, detect_drop_targets
from diagram_engine.constraints.selection import SelectionCheck, validate_selection
from diagram_engine.constraints.validation import ValidationResult, validate_layout
from diagram_engine.engine.propagation import fit_size, minimum_container_size, propagate_resize, relayout
from diagram_engine.engine.results import DropTarget, MutationResult, Rejection, RejectionReason
from diagram_engine.model.geometry import inset_interior
from diagram_engine.model.hierarchy import NodeIndex, refresh_variants
from diagram_engine.model.schema import (
    Delta,
    FixedLeafDimensions,
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
from diagram_engine.model.units import (
    DEFAULT_CONTAINER_SIZE,
    DEFAULT_LABEL_SIZE,
    DEFAULT_LEAF_SIZE,
    DEFAULT_ROOT_SIZE,
)

logger = logging.getLogger(__name__)


class LayoutEngine:
    """Applies mutations to node list snapshots under one set of layout settings."""

    def __init__(self, settings: Optional[LayoutSettings] = None) -> None:
        """Initialize the engine.

        Args:
            settings: Layout settings. Defaults to the environment
                configuration from get_settings().
        """
        self.settings = settings or get_settings().layout_settings()

    # =========================================================================
    # Layout
    # =========================================================================

    def relayout(self, nodes: Sequence[Node], root_ids: Optional[Iterable[str]] = None) -> MutationResult:
        """Re-derive variants, sizes and positions for the given subtrees (default: all)."""
        return MutationResult(nodes=relayout(refresh_variants(nodes), self.settings, root_ids))

    def minimum_container_size(self, nodes: Sequence[Node], node_id: str) -> Size:
        return minimum_container_size(node_id, nodes, self.settings)

    def validate(self, nodes: Sequence[Node]) -> ValidationResult:
        return validate_layout(nodes, self.settings)

    # =========================================================================
    # Structural mutations
    # =========================================================================

    def add_node(
        self,
        nodes: Sequence[Node],
        node_id: str,
        parent_id: Optional[str] = None,
        label: Optional[str] = None,
        variant: Optional[NodeVariant] = None,
    ) -> MutationResult:
        """Create a node with default geometry and lay out its new ancestors.

        Args:
            nodes: Current node list.
            node_id: Id for the new node.
            parent_id: Parent to add under, or None for a new root.
            label: Visible label text.
            variant: NodeVariant.LABEL creates a text label and
                NodeVariant.CONTAINER starts a child at the container size.
                Non-label variants are then derived from the tree.

        Returns:
            MutationResult; refused when the parent is a label.

        Raises:
            ValueError: If ``node_id`` is already taken.
            UnreachableNodeError: If ``parent_id`` is unknown.
        """
        index = NodeIndex(nodes)
        if node_id in index:
            raise ValueError(f"Duplicate node id: {node_id!r}")

        is_label = variant == NodeVariant.LABEL
        if parent_id is None:
            size = DEFAULT_LABEL_SIZE if is_label else DEFAULT_ROOT_SIZE
            roots = index.roots()
            if roots:
                x, y = roots[-1].right + self.settings.margins.margin, roots[-1].y
            else:
                x, y = 0, 0
        else:
            parent = index.get(parent_id)
            if parent.is_label:
                return self._refuse(
                    nodes,
                    RejectionReason.INVALID_HIERARCHY,
                    f"Label {parent_id} cannot hold children",
                    [parent_id],
                )
            if is_label:
                size = DEFAULT_LABEL_SIZE
            elif variant == NodeVariant.CONTAINER:
                size = DEFAULT_CONTAINER_SIZE
            else:
                size = DEFAULT_LEAF_SIZE
            interior = inset_interior(parent, self.settings.margins)
            x, y = interior.x, interior.y

        node = Node(
            id=node_id,
            parent_id=parent_id,
            x=x,
            y=y,
            w=size[0],
            h=size[1],
            variant=NodeVariant.LABEL if is_label else NodeVariant.LEAF,
            label=label,
        )
        updated = refresh_variants(list(nodes) + [node])
        logger.info(f"Added node {node_id} under {parent_id or 'canvas'}")
        return MutationResult(nodes=propagate_resize(updated, node_id, self.settings))

    def remove_node(
        self,
        nodes: Sequence[Node],
        node_id: str,
        policy: RemovalPolicy = RemovalPolicy.DELETE_SUBTREE,
    ) -> MutationResult:
        """Remove a node, deleting or promoting its children, then relayout the former parent.

        Promoted children move to the removed node's parent and keep their
        geometry until the relayout repacks them.
        """
        index = NodeIndex(nodes)
        node = index.get(node_id)
        policy = RemovalPolicy(policy)

        if policy == RemovalPolicy.DELETE_SUBTREE:
            doomed = index.descendant_ids(node_id) | {node_id}
            remaining = [n for n in nodes if n.id not in doomed]
            promoted: list[str] = []
        else:
            promoted = [c.id for c in index.children(node_id)]
            remaining = [
                n.model_copy(update={"parent_id": node.parent_id}) if n.parent_id == node_id else n
                for n in nodes
                if n.id != node_id
            ]

        remaining = refresh_variants(remaining)
        targets = [node.parent_id] if node.parent_id is not None else promoted
        logger.info(f"Removed node {node_id} ({policy.value}), {len(nodes) - len(remaining)} node(s) dropped")
        if not targets:
            return MutationResult(nodes=remaining)
        return MutationResult(nodes=relayout(remaining, self.settings, root_ids=targets))

    def resize_node(self, nodes: Sequence[Node], node_id: str, w: int, h: int) -> MutationResult:
        """Explicitly resize a node.

        Unlocked containers are clamped up to the size their children need;
        enforced leaf dimensions win over the request. Inside a locked
        parent the request is clamped to the parent's interior.
        """
        index = NodeIndex(nodes)
        node = index.get(node_id)
        if w <= 0 or h <= 0:
            return self._refuse(nodes, RejectionReason.BOUNDARY_VIOLATION, f"Size {w}x{h} is not positive", [node_id])

        rejection = None
        parent = index.parent(node_id)
        if parent is not None and parent.locked_as_is:
            interior = inset_interior(parent, self.settings.margins)
            max_w = interior.right - max(node.x, interior.x)
            max_h = interior.bottom - max(node.y, interior.y)
            if max_w <= 0 or max_h <= 0:
                return self._refuse(
                    nodes,
                    RejectionReason.BOUNDARY_VIOLATION,
                    f"Locked parent {parent.id} has no room for {node_id}",
                    [parent.id],
                )
            if w > max_w or h > max_h:
                w, h = min(w, max_w), min(h, max_h)
                rejection = Rejection(
                    RejectionReason.BOUNDARY_VIOLATION,
                    f"Resize of {node_id} clamped to {w}x{h} by locked parent {parent.id}",
                    [parent.id],
                )

        resized = [n.model_copy(update={"w": w, "h": h}) if n.id == node_id else n for n in nodes]
        return MutationResult(nodes=propagate_resize(resized, node_id, self.settings), rejection=rejection)

    def reparent(self, nodes: Sequence[Node], node_id: str, new_parent_id: Optional[str]) -> MutationResult:
        """Move a node (with its subtree) under a new parent, or promote it to root.

        The node is placed at the new parent's interior origin, or beside
        the existing children when the parent is positioned manually. Fixed
        leaf dimensions are re-applied if it is now a leaf, and both the old
        and new parent chains are laid out again.
        """
        index = NodeIndex(nodes)
        node = index.get(node_id)
        if new_parent_id is not None:
            index.get(new_parent_id)

        if node.parent_id == new_parent_id:
            return MutationResult(nodes=list(nodes))

        if not can_reparent(node_id, new_parent_id, index):
            return self._refuse(
                nodes,
                RejectionReason.INVALID_HIERARCHY,
                f"Cannot move {node_id} under {new_parent_id}",
                [node_id, new_parent_id],
            )

        updated = [n.model_copy(update={"parent_id": new_parent_id}) if n.id == node_id else n for n in nodes]
        if new_parent_id is not None:
            x, y = self._drop_position(index, new_parent_id)
            updated = translate_subtrees(updated, {node_id: (x - node.x, y - node.y)})

        updated = refresh_variants(updated)
        targets = [node_id]
        if node.parent_id is not None:
            targets.insert(0, node.parent_id)
        logger.info(f"Reparented {node_id}: {node.parent_id or 'canvas'} -> {new_parent_id or 'canvas'}")
        return MutationResult(nodes=relayout(updated, self.settings, root_ids=targets))

    def _drop_position(self, index: NodeIndex, parent_id: str) -> tuple[int, int]:
        parent = index.get(parent_id)
        interior = inset_interior(parent, self.settings.margins)
        children = index.children(parent_id)
        if not parent.manual_positioning_enabled or not children:
            return interior.x, interior.y
        # Manual parents keep child positions, so start past the rightmost child.
        return max(c.right for c in children) + self.settings.margins.margin, interior.y

    # =========================================================================
    # Settings changes (full relayout)
    # =========================================================================

    def set_packing_algorithm(
        self,
        nodes: Sequence[Node],
        algorithm: Union[str, PackingAlgorithm],
    ) -> MutationResult:
        """Switch the active algorithm. Raises ValueError for unknown names."""
        try:
            algorithm = PackingAlgorithm(algorithm.lower() if isinstance(algorithm, str) else algorithm)
        except ValueError:
            raise ValueError(
                f"Unknown packing algorithm: {algorithm}. Available: {[a.value for a in PackingAlgorithm]}"
            ) from None
        logger.info(f"Packing algorithm: {self.settings.algorithm.value} -> {algorithm.value}")
        return self._with_settings(nodes, algorithm=algorithm)

    def set_margins(self, nodes: Sequence[Node], margins: Margins) -> MutationResult:
        return self._with_settings(nodes, margins=margins)

    def set_fixed_leaf_dimensions(self, nodes: Sequence[Node], dimensions: FixedLeafDimensions) -> MutationResult:
        return self._with_settings(nodes, fixed_leaf_dimensions=dimensions)

    def _with_settings(self, nodes: Sequence[Node], **changes) -> MutationResult:
        self.settings = self.settings.model_copy(update=changes)
        return self.relayout(nodes)

    # =========================================================================
    # Per-node flags
    # =========================================================================

    def update_packing_preferences(
        self,
        nodes: Sequence[Node],
        node_id: str,
        preferences: Union[PackingPreferences, dict],
    ) -> MutationResult:
        """Merge packing preferences into a container and fit it to the result unless locked."""
        index = NodeIndex(nodes)
        node = index.get(node_id)

        if isinstance(preferences, PackingPreferences):
            changes = preferences.model_dump(exclude_unset=True)
        else:
            changes = dict(preferences)
        current = node.packing_preferences or PackingPreferences()
        merged = PackingPreferences(**{**current.model_dump(), **changes})

        updated = self._replace(nodes, node_id, packing_preferences=merged)
        if index.has_children(node_id) and not node.locked_as_is:
            size = fit_size(updated, node_id, self.settings)
            updated = self._replace(updated, node_id, w=size.w, h=size.h)
        return MutationResult(nodes=propagate_resize(updated, node_id, self.settings))

    def toggle_manual_positioning(self, nodes: Sequence[Node], node_id: str) -> MutationResult:
        """Flip manual positioning; clears the lock. Turning it off repacks the children."""
        node = NodeIndex(nodes).get(node_id)
        enabled = not node.manual_positioning_enabled
        updated = self._replace(nodes, node_id, manual_positioning_enabled=enabled, locked_as_is=False)
        logger.info(f"Manual positioning for {node_id}: {'on' if enabled else 'off'}")
        return MutationResult(nodes=propagate_resize(updated, node_id, self.settings))

    def lock_as_is(self, nodes: Sequence[Node], node_id: str) -> MutationResult:
        """Freeze a node's own geometry; its children are packed inside it as it stands."""
        NodeIndex(nodes).get(node_id)
        updated = self._replace(nodes, node_id, locked_as_is=True, manual_positioning_enabled=False)
        return MutationResult(nodes=propagate_resize(updated, node_id, self.settings))

    def fit_to_children(self, nodes: Sequence[Node], node_id: str) -> MutationResult:
        """Shrink or grow a container to exactly fit its children, clearing lock and manual mode."""
        index = NodeIndex(nodes)
        index.get(node_id)
        if not index.has_children(node_id):
            return MutationResult(nodes=list(nodes))

        updated = self._replace(nodes, node_id, locked_as_is=False, manual_positioning_enabled=False)
        size = fit_size(updated, node_id, self.settings)
        updated = self._replace(updated, node_id, w=size.w, h=size.h)
        return MutationResult(nodes=propagate_resize(updated, node_id, self.settings))

    # =========================================================================
    # Movement
    # =========================================================================

    def move_group(self, nodes: Sequence[Node], selection: Iterable[str], delta: Delta) -> MutationResult:
        return move_group(nodes, selection, delta, self.settings.margins)

    def move_node(self, nodes: Sequence[Node], node_id: str, delta: Delta) -> MutationResult:
        return move_group(nodes, [node_id], delta, self.settings.margins)

    def align(
        self,
        nodes: Sequence[Node],
        selection: Iterable[str],
        align_type: Union[str, AlignType],
    ) -> MutationResult:
        """Align a selection to its first node, inside a free-form parent."""
        index = NodeIndex(nodes)
        check = self._movable_selection(index, selection)
        if isinstance(check, MutationResult):
            return check
        positions = align_positions(check.nodes, AlignType(align_type))
        return self._apply_positions(index, check, positions)

    def distribute(
        self,
        nodes: Sequence[Node],
        selection: Iterable[str],
        direction: Union[str, DistributionDirection],
    ) -> MutationResult:
        """Spread the inner nodes of a selection with equal gaps between its first and last nodes."""
        index = NodeIndex(nodes)
        check = self._movable_selection(index, selection)
        if isinstance(check, MutationResult):
            return check
        if not can_distribute(check.nodes):
            return self._refuse(
                nodes,
                RejectionReason.INVALID_SELECTION,
                "Distribution needs at least three nodes",
                [n.id for n in check.nodes],
            )
        positions = distribute_positions(check.nodes, DistributionDirection(direction))
        return self._apply_positions(index, check, positions)

    # =========================================================================
    # Hierarchy queries
    # =========================================================================

    def can_reparent(self, nodes: Sequence[Node], node_id: str, new_parent_id: Optional[str]) -> bool:
        return can_reparent(node_id, new_parent_id, nodes)

    def detect_drop_targets(
        self,
        nodes: Sequence[Node],
        pointer,
        dragged_id: str,
        viewport: Optional[Viewport] = None,
    ) -> list[DropTarget]:
        return detect_drop_targets(pointer, dragged_id, nodes, viewport or Viewport(grid_size=self.settings.grid_size))

    def detect_drop_target(
        self,
        nodes: Sequence[Node],
        pointer,
        dragged_id: str,
        viewport: Optional[Viewport] = None,
    ) -> Optional[str]:
        return detect_drop_target(pointer, dragged_id, nodes, viewport or Viewport(grid_size=self.settings.grid_size))

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _replace(nodes: Sequence[Node], node_id: str, **changes) -> list[Node]:
        return [n.model_copy(update=changes) if n.id == node_id else n for n in nodes]

    @staticmethod
    def _refuse(
        nodes: Sequence[Node],
        reason: RejectionReason,
        message: str,
        node_ids: Sequence[Optional[str]],
    ) -> MutationResult:
        logger.warning(f"Mutation refused ({reason.value}): {message}")
        return MutationResult.refused(list(nodes), reason, message, [i for i in node_ids if i is not None])

    def _movable_selection(
        self,
        index: NodeIndex,
        selection: Iterable[str],
    ) -> Union[SelectionCheck, MutationResult]:
        """Selection check shared by align/distribute; a MutationResult means refused."""
        check = validate_selection(selection, index)
        if not check.is_valid:
            return self._refuse(
                index.nodes, RejectionReason.INVALID_SELECTION, check.message, [n.id for n in check.nodes]
            )
        blockers = movement_blockers(check.nodes, index)
        if blockers:
            return self._refuse(
                index.nodes,
                RejectionReason.MOVEMENT_NOT_PERMITTED,
                f"Parent(s) {blockers} do not allow manual positioning",
                blockers,
            )
        return check

    def _apply_positions(
        self,
        index: NodeIndex,
        check: SelectionCheck,
        positions: dict[str, Point],
    ) -> MutationResult:
        """Move nodes (and subtrees) to target positions, clamped into the parent interior."""
        interior = None
        if check.parent_id is not None:
            interior = inset_interior(index.get(check.parent_id), self.settings.margins)

        shifts = {}
        clamped = []
        for node_id, target in positions.items():
            node = index.get(node_id)
            x, y = target.x, target.y
            if interior is not None:
                x = max(interior.x, min(x, interior.right - node.w))
                y = max(interior.y, min(y, interior.bottom - node.h))
                if (x, y) != (target.x, target.y):
                    clamped.append(node_id)
            shifts[node_id] = (x - node.x, y - node.y)

        rejection = None
        if clamped:
            rejection = Rejection(
                RejectionReason.BOUNDARY_VIOLATION,
                f"Positions of {clamped} clamped into the interior of {check.parent_id}",
                clamped,
            )
        return MutationResult(nodes=translate_subtrees(index, shifts), rejection=rejection)
