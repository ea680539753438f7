"""Constraint module - hierarchy validation, group movement and layout checks."""

from diagram_engine.constraints.alignment import AlignType, align_positions
from diagram_engine.constraints.distribution import DistributionDirection, can_distribute, distribute_positions
from diagram_engine.constraints.group_movement import (
    Axis,
    RelativePositions,
    apply_relative_positions,
    capture_relative_positions,
    constrain_group_delta,
    detect_collisions,
    max_safe_delta,
    move_group,
)
from diagram_engine.constraints.hierarchy_validator import can_reparent, detect_drop_target, detect_drop_targets
from diagram_engine.constraints.selection import SelectionCheck, validate_selection
from diagram_engine.constraints.validation import LayoutValidator, ValidationResult, Violation, validate_layout

__all__ = [
    # Alignment
    "AlignType",
    "align_positions",
    # Distribution
    "DistributionDirection",
    "can_distribute",
    "distribute_positions",
    # Group movement
    "Axis",
    "RelativePositions",
    "apply_relative_positions",
    "capture_relative_positions",
    "constrain_group_delta",
    "detect_collisions",
    "max_safe_delta",
    "move_group",
    # Hierarchy
    "can_reparent",
    "detect_drop_target",
    "detect_drop_targets",
    # Selection
    "SelectionCheck",
    "validate_selection",
    # Validation
    "LayoutValidator",
    "ValidationResult",
    "Violation",
    "validate_layout",
]
