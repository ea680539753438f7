"""Constraint propagation: minimum container sizes and recursive relayout.

Sizing runs bottom-up (post-order): a container's size is the larger of
its current size and what its children need. Positioning runs top-down
(pre-order): once a container's size is final its children are packed
inside it. Containers grow automatically but never shrink here.
"""

import logging
from typing import Iterable, Optional

from diagram_engine.engine.layout_strategies import PackContext, PackItem, resolve_strategy
from diagram_engine.model.hierarchy import NodeIndex, NodeSource, as_index
from diagram_engine.model.schema import LayoutSettings, Node, Size
from diagram_engine.model.units import MIN_HEIGHT, MIN_WIDTH

logger = logging.getLogger(__name__)


def _is_sized_leaf(node: Node, index: NodeIndex) -> bool:
    """Childless, non-label nodes with a parent take the fixed leaf dimensions."""
    return node.parent_id is not None and not node.is_label and not index.has_children(node.id)


class _MinimumSizer:
    """Memoized bottom-up minimum size computation over child minimums."""

    def __init__(self, index: NodeIndex, settings: LayoutSettings) -> None:
        self.index = index
        self.settings = settings
        self._memo: dict[str, tuple[int, int]] = {}

    def minimum(self, node_id: str) -> tuple[int, int]:
        if node_id in self._memo:
            return self._memo[node_id]

        node = self.index.get(node_id)
        children = self.index.children(node_id)
        if node.is_label:
            size = (node.w, node.h)
        elif not children:
            if _is_sized_leaf(node, self.index) and not node.locked_as_is:
                size = self.settings.fixed_leaf_dimensions.apply(node.w, node.h)
            else:
                size = (node.w, node.h)
        elif node.manual_positioning_enabled:
            size = _manual_extent(node, children, {c.id: self.contribution(c) for c in children}, self.settings)
        else:
            items = [PackItem(c.id, *self.contribution(c)) for c in children]
            strategy = resolve_strategy(self.settings.algorithm, node.packing_preferences)
            context = PackContext(
                margins=self.settings.margins,
                labelled=node.has_visible_label,
                preferences=node.packing_preferences,
                depth=self.index.depth(node_id),
            )
            minimum = strategy.minimum_size(items, context)
            size = (minimum.w, minimum.h)

        self._memo[node_id] = size
        return size

    def contribution(self, child: Node) -> tuple[int, int]:
        """Size a child occupies in its parent; locked children count as they are."""
        if child.locked_as_is:
            return (child.w, child.h)
        return self.minimum(child.id)


def _manual_extent(
    node: Node,
    children: list[Node],
    sizes: dict[str, tuple[int, int]],
    settings: LayoutSettings,
) -> tuple[int, int]:
    """Extent of free-form children at their stored offsets, plus one margin."""
    margin = settings.margins.margin
    width = max((c.x - node.x) + sizes[c.id][0] for c in children) + margin
    height = max((c.y - node.y) + sizes[c.id][1] for c in children) + margin
    return (max(MIN_WIDTH, width), max(MIN_HEIGHT, height))


def minimum_container_size(node_id: str, nodes: NodeSource, settings: LayoutSettings) -> Size:
    """Minimum size a node needs to legally host its children.

    Args:
        node_id: Node to size.
        nodes: Node list or prepared NodeIndex.
        settings: Active algorithm, margins and fixed leaf dimensions.

    Returns:
        For a leaf, its fixed dimensions where enforced, else its current
        size. For a container, the packed extent of its children's minimum
        sizes plus margins, floored at MIN_WIDTH x MIN_HEIGHT.
    """
    index = as_index(nodes)
    w, h = _MinimumSizer(index, settings).minimum(node_id)
    return Size(w=w, h=h)


class _Layout:
    """
    One relayout pass over a node index.

    Computed sizes and positions are collected in dictionaries; nodes
    without an entry keep their stored geometry. result() turns them
    into a new node list.
    """

    def __init__(self, index: NodeIndex, settings: LayoutSettings) -> None:
        self.index = index
        self.settings = settings
        self.sizes: dict[str, tuple[int, int]] = {}
        self.positions: dict[str, tuple[int, int]] = {}
        self._depths: dict[str, int] = {}

    def size(self, node_id: str) -> tuple[int, int]:
        if node_id in self.sizes:
            return self.sizes[node_id]
        node = self.index.get(node_id)
        return (node.w, node.h)

    def position(self, node_id: str) -> tuple[int, int]:
        if node_id in self.positions:
            return self.positions[node_id]
        node = self.index.get(node_id)
        return (node.x, node.y)

    def depth(self, node_id: str) -> int:
        if node_id not in self._depths:
            self._depths[node_id] = self.index.depth(node_id)
        return self._depths[node_id]

    # =========================================================================
    # Sizing
    # =========================================================================

    def context(self, node: Node, available: Optional[Size] = None) -> PackContext:
        return PackContext(
            margins=self.settings.margins,
            labelled=node.has_visible_label,
            preferences=node.packing_preferences,
            depth=self.depth(node.id),
            available=available,
        )

    def items(self, children: Iterable[Node]) -> list[PackItem]:
        return [PackItem(c.id, *self.size(c.id)) for c in children]

    def required_size(self, node_id: str) -> tuple[int, int]:
        """Size the node needs for its children at their current computed sizes."""
        node = self.index.get(node_id)
        children = self.index.children(node_id)
        if not children:
            return (node.w, node.h)
        if node.manual_positioning_enabled or node.is_label:
            return _manual_extent(node, children, {c.id: self.size(c.id) for c in children}, self.settings)
        strategy = resolve_strategy(self.settings.algorithm, node.packing_preferences)
        minimum = strategy.minimum_size(self.items(children), self.context(node))
        return (minimum.w, minimum.h)

    def resolve_size(self, node_id: str) -> tuple[int, int]:
        """Final size of one node given its children's computed sizes."""
        node = self.index.get(node_id)
        current = (node.w, node.h)
        if node.is_label:
            size = current
        elif not self.index.has_children(node_id):
            if _is_sized_leaf(node, self.index) and not node.locked_as_is:
                size = self.settings.fixed_leaf_dimensions.apply(*current)
            else:
                size = current
        elif node.locked_as_is:
            size = current
        else:
            required = self.required_size(node_id)
            size = (max(current[0], required[0]), max(current[1], required[1]))
        self.sizes[node_id] = size
        return size

    def size_subtree(self, node_id: str) -> tuple[int, int]:
        """Post-order sizing of a whole subtree."""
        order = [self.index.get(node_id)] + self.index.descendants(node_id)
        for node in reversed(order):
            self.resolve_size(node.id)
        return self.sizes[node_id]

    def cascade(self, node_id: str) -> str:
        """
        Re-evaluate strict ancestors after a subtree was resized.

        Stops at a locked ancestor, or at the first ancestor whose size
        already satisfies its children. Returns the id of the top-most
        node whose children must be repositioned.
        """
        top = node_id
        for ancestor in self.index.ancestors(node_id):
            top = ancestor.id
            if ancestor.locked_as_is:
                logger.debug(f"Resize cascade from {node_id} stopped at locked {ancestor.id}")
                break
            before = self.size(ancestor.id)
            if self.resolve_size(ancestor.id) == before:
                logger.debug(f"Resize cascade from {node_id} satisfied at {ancestor.id}")
                break
        return top

    # =========================================================================
    # Positioning
    # =========================================================================

    def position_subtree(self, node_id: str) -> None:
        """Pre-order positioning: each container packs its children once its own box is final."""
        order = [self.index.get(node_id)] + self.index.descendants(node_id)
        for node in order:
            self._place_children(node)

    def _place_children(self, node: Node) -> None:
        children = self.index.children(node.id)
        if not children:
            return

        x, y = self.position(node.id)
        if node.manual_positioning_enabled or node.is_label:
            # Free-form children keep their offsets from the container
            dx, dy = x - node.x, y - node.y
            for child in children:
                self.positions[child.id] = (child.x + dx, child.y + dy)
            return

        w, h = self.size(node.id)
        strategy = resolve_strategy(self.settings.algorithm, node.packing_preferences)
        arrangement = strategy.pack(self.items(children), self.context(node, Size(w=w, h=h)))
        for placement in arrangement.placements:
            self.positions[placement.id] = (x + placement.x, y + placement.y)

    def result(self) -> list[Node]:
        """New node list in the original order."""
        updated = []
        for node in self.index.nodes:
            update = {}
            w, h = self.size(node.id)
            if (w, h) != (node.w, node.h):
                update.update(w=w, h=h)
            x, y = self.position(node.id)
            if (x, y) != (node.x, node.y):
                update.update(x=x, y=y)
            updated.append(node.model_copy(update=update) if update else node)
        return updated


def relayout(
    nodes: NodeSource,
    settings: LayoutSettings,
    root_ids: Optional[Iterable[str]] = None,
) -> list[Node]:
    """Recursively re-derive sizes and positions.

    Args:
        nodes: Node list or prepared NodeIndex.
        settings: Active algorithm, margins and fixed leaf dimensions.
        root_ids: Subtrees to relayout. Defaults to every root. A non-root
            id also re-evaluates its ancestors, stopping early where they
            already fit or are locked.

    Returns:
        A new node list in the input order.
    """
    index = as_index(nodes)
    targets = list(root_ids) if root_ids is not None else [node.id for node in index.roots()]
    layout = _Layout(index, settings)

    for target in targets:
        layout.size_subtree(target)
    tops = []
    for target in targets:
        top = layout.cascade(target)
        if top not in tops:
            tops.append(top)
    for top in tops:
        layout.position_subtree(top)

    logger.debug(f"Relayout of {len(targets)} subtree(s) over {len(index)} nodes, repositioned from {tops}")
    return layout.result()


def propagate_resize(nodes: NodeSource, node_id: str, settings: LayoutSettings) -> list[Node]:
    """Relayout one changed subtree and the ancestors its new size affects."""
    return relayout(nodes, settings, root_ids=[node_id])


def fit_size(nodes: NodeSource, node_id: str, settings: LayoutSettings) -> Size:
    """Exact size that fits a container around its children at their laid-out sizes."""
    index = as_index(nodes)
    layout = _Layout(index, settings)
    for child in index.children(node_id):
        layout.size_subtree(child.id)
    w, h = layout.required_size(node_id)
    return Size(w=w, h=h)


def required_size(nodes: NodeSource, node_id: str, settings: LayoutSettings) -> Size:
    """Size a container needs for its children at their stored sizes, without relayout."""
    w, h = _Layout(as_index(nodes), settings).required_size(node_id)
    return Size(w=w, h=h)
