"""Layout engine: packing strategies, constraint propagation and the mutation facade."""

from diagram_engine.engine.propagation import (
    fit_size,
    minimum_container_size,
    propagate_resize,
    relayout,
    required_size,
)
from diagram_engine.engine.results import (
    CollisionReport,
    DropTarget,
    MutationResult,
    Rejection,
    RejectionReason,
)

__all__ = [
    # Propagation
    "fit_size",
    "minimum_container_size",
    "propagate_resize",
    "relayout",
    "required_size",
    # Results
    "CollisionReport",
    "DropTarget",
    "MutationResult",
    "Rejection",
    "RejectionReason",
]
