"""Multi-node selection rules."""

from dataclasses import dataclass
from typing import Iterable, Optional

from diagram_engine.model.hierarchy import NodeSource, as_index
from diagram_engine.model.schema import Node


@dataclass
class SelectionCheck:
    """Outcome of validating a selection."""

    is_valid: bool
    nodes: list[Node]
    parent_id: Optional[str] = None
    message: str = ""


def unique_ids(selection: Iterable[str]) -> list[str]:
    """Selection ids with duplicates dropped, first occurrence kept."""
    seen: set[str] = set()
    result = []
    for node_id in selection:
        if node_id not in seen:
            seen.add(node_id)
            result.append(node_id)
    return result


def validate_selection(selection: Iterable[str], nodes: NodeSource) -> SelectionCheck:
    """Validate a selection for group operations.

    Args:
        selection: Selected node ids, in selection order.
        nodes: Node list or prepared NodeIndex.

    Returns:
        SelectionCheck with the selected nodes in selection order and
        their common parent. A single node is always valid; several nodes
        must share one parent and contain no labels.

    Raises:
        UnreachableNodeError: If a selected id is unknown.
    """
    index = as_index(nodes)
    selected = index.require(unique_ids(selection))

    if not selected:
        return SelectionCheck(False, [], message="Selection is empty")

    parent_id = selected[0].parent_id
    if len(selected) == 1:
        return SelectionCheck(True, selected, parent_id)

    labels = [n.id for n in selected if n.is_label]
    if labels:
        return SelectionCheck(False, selected, parent_id, f"Labels cannot join a group selection: {labels}")

    if any(n.parent_id != parent_id for n in selected):
        return SelectionCheck(False, selected, parent_id, "Selected nodes do not share a parent")

    return SelectionCheck(True, selected, parent_id)
