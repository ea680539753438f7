"""Flat node arena with parent/child lookups.

The hierarchy is never stored as nested objects. ``NodeIndex`` keys the node
list by id and derives the child lists from ``parent_id`` links, so every
descendant or ancestor query is a traversal over the arena.
"""

import logging
from typing import Iterable, Iterator, Optional, Sequence, Union

from diagram_engine.model.schema import Node, NodeVariant

logger = logging.getLogger(__name__)


class UnreachableNodeError(LookupError):
    """A mutation referenced a node id that is not in the node list."""

    def __init__(self, node_id: Optional[str]) -> None:
        super().__init__(f"Unknown node id: {node_id!r}")
        self.node_id = node_id


class NodeIndex:
    """Read-only id arena over one node list snapshot."""

    def __init__(self, nodes: Iterable[Node]) -> None:
        self._nodes: dict[str, Node] = {}
        self._children: dict[Optional[str], list[str]] = {}
        for node in nodes:
            if node.id in self._nodes:
                raise ValueError(f"Duplicate node id: {node.id!r}")
            self._nodes[node.id] = node
            self._children.setdefault(node.parent_id, []).append(node.id)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._nodes

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return iter(self._nodes.values())

    @property
    def nodes(self) -> list[Node]:
        """Nodes in their original list order."""
        return list(self._nodes.values())

    def get(self, node_id: Optional[str]) -> Node:
        """Look up a node, failing loudly on unknown ids."""
        node = self._nodes.get(node_id) if node_id is not None else None
        if node is None:
            raise UnreachableNodeError(node_id)
        return node

    def require(self, node_ids: Iterable[str]) -> list[Node]:
        """Look up several nodes, raising on the first unknown id."""
        return [self.get(node_id) for node_id in node_ids]

    def parent(self, node_id: str) -> Optional[Node]:
        """Parent node, or None for roots and dangling parent links."""
        parent_id = self.get(node_id).parent_id
        if parent_id is None:
            return None
        return self._nodes.get(parent_id)

    def children(self, node_id: Optional[str]) -> list[Node]:
        """Direct children in list order. ``None`` lists the roots."""
        return [self._nodes[child_id] for child_id in self._children.get(node_id, [])]

    def has_children(self, node_id: str) -> bool:
        return bool(self._children.get(node_id))

    def roots(self) -> list[Node]:
        return self.children(None)

    def siblings(self, node_id: str) -> list[Node]:
        """Nodes sharing the parent of ``node_id``, excluding itself."""
        node = self.get(node_id)
        return [n for n in self.children(node.parent_id) if n.id != node_id]

    def descendants(self, node_id: str) -> list[Node]:
        """All strict descendants, pre-order."""
        self.get(node_id)
        result: list[Node] = []
        stack = list(reversed(self._children.get(node_id, [])))
        seen = {node_id}
        while stack:
            current = stack.pop()
            if current in seen:
                raise ValueError(f"Cycle detected below {node_id!r}")
            seen.add(current)
            result.append(self._nodes[current])
            stack.extend(reversed(self._children.get(current, [])))
        return result

    def descendant_ids(self, node_id: str) -> set[str]:
        return {node.id for node in self.descendants(node_id)}

    def ancestors(self, node_id: str) -> list[Node]:
        """Strict ancestors, nearest first. Stops at a dangling parent link."""
        result: list[Node] = []
        seen = {node_id}
        current = self.get(node_id).parent_id
        while current is not None and current in self._nodes:
            if current in seen:
                raise ValueError(f"Cycle detected above {node_id!r}")
            seen.add(current)
            node = self._nodes[current]
            result.append(node)
            current = node.parent_id
        return result

    def depth(self, node_id: str) -> int:
        """Number of ancestors. Roots have depth 0."""
        return len(self.ancestors(node_id))

    def is_descendant(self, candidate_id: str, ancestor_id: str) -> bool:
        """Whether ``candidate_id`` lies strictly below ``ancestor_id``."""
        return any(node.id == ancestor_id for node in self.ancestors(candidate_id))


NodeSource = Union[NodeIndex, Sequence[Node]]


def as_index(nodes: NodeSource) -> NodeIndex:
    """Accept either a prepared index or a raw node list."""
    if isinstance(nodes, NodeIndex):
        return nodes
    return NodeIndex(nodes)


def derive_variant(node: Node, index: NodeIndex) -> NodeVariant:
    """Variant implied by the node's position in the tree.

    Labels are an explicit tag and are never re-derived.
    """
    if node.is_label:
        return NodeVariant.LABEL
    if node.parent_id is None:
        return NodeVariant.ROOT
    if index.has_children(node.id):
        return NodeVariant.CONTAINER
    return NodeVariant.LEAF


def refresh_variants(nodes: Sequence[Node]) -> list[Node]:
    """Return the node list with every derived variant brought up to date."""
    index = NodeIndex(nodes)
    result = []
    for node in nodes:
        variant = derive_variant(node, index)
        if variant != node.variant:
            logger.debug(f"Variant of {node.id} changed: {node.variant.value} -> {variant.value}")
            node = node.model_copy(update={"variant": variant})
        result.append(node)
    return result
