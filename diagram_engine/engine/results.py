"""Result types returned by engine operations.

Expected invalid input never raises: operations return a MutationResult
that either carries the new node list or a Rejection explaining which
constraint refused (or clamped) the request.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from diagram_engine.model.schema import Delta, Node


class RejectionReason(str, Enum):
    """Why a mutation was refused or clamped."""

    INVALID_HIERARCHY = "invalid_hierarchy"
    BOUNDARY_VIOLATION = "boundary_violation"
    SIBLING_COLLISION = "sibling_collision"
    MOVEMENT_NOT_PERMITTED = "movement_not_permitted"
    INVALID_SELECTION = "invalid_selection"


@dataclass
class Rejection:
    """Details for the UI to render feedback."""

    reason: RejectionReason
    message: str
    node_ids: list[str] = field(default_factory=list)


@dataclass
class MutationResult:
    """Outcome of one engine mutation.

    ``nodes`` is always a complete node list: the new snapshot when the
    mutation was accepted, the unchanged input when it was refused. A
    clamped move is accepted and still carries the rejection that limited
    it, with the delta actually used in ``applied_delta``.
    """

    nodes: list[Node]
    accepted: bool = True
    rejection: Optional[Rejection] = None
    applied_delta: Optional[Delta] = None

    @property
    def clamped(self) -> bool:
        return self.accepted and self.rejection is not None

    @classmethod
    def refused(
        cls,
        nodes: list[Node],
        reason: RejectionReason,
        message: str,
        node_ids: Optional[list[str]] = None,
    ) -> "MutationResult":
        return cls(
            nodes=list(nodes),
            accepted=False,
            rejection=Rejection(reason, message, list(node_ids or [])),
        )


@dataclass
class CollisionReport:
    """Result of testing a group move against siblings and the parent interior."""

    blocked: bool
    offending_siblings: list[str] = field(default_factory=list)
    boundary_violated: bool = False


@dataclass
class DropTarget:
    """A candidate drop target under the pointer.

    ``node_id`` None stands for the canvas: promote the dragged node to root.
    """

    node_id: Optional[str]
    depth: int
    is_valid: bool

    @property
    def is_canvas(self) -> bool:
        return self.node_id is None
