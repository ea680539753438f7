"""Layout validation against the hierarchy invariants."""

from dataclasses import dataclass
from typing import Sequence

from diagram_engine.engine.propagation import required_size
from diagram_engine.model.geometry import Rect, contains, inset_interior, overlaps
from diagram_engine.model.hierarchy import NodeIndex, derive_variant
from diagram_engine.model.schema import LayoutSettings, Node


@dataclass
class Violation:
    """Represents an invariant violation."""

    rule: str
    message: str
    severity: str  # "error", "warning", "info"
    node_ids: list[str]


@dataclass
class ValidationResult:
    """Result of layout validation."""

    is_valid: bool
    violations: list[Violation]
    score: float  # 0-100 quality score


class LayoutValidator:
    """Validates a node list against the layout invariants."""

    def __init__(self, settings: LayoutSettings) -> None:
        """Initialize the validator.

        Args:
            settings: Layout settings the node list was produced under.
        """
        self.settings = settings

    def validate(self, nodes: Sequence[Node]) -> ValidationResult:
        """Validate a node list.

        Args:
            nodes: The node list to validate.

        Returns:
            ValidationResult with violations and score.
        """
        index = NodeIndex(nodes)
        violations: list[Violation] = []

        violations.extend(self._check_parents(index))
        violations.extend(self._check_variants(index))
        violations.extend(self._check_containment(index))
        violations.extend(self._check_overlaps(index))
        violations.extend(self._check_min_sizes(index))

        return ValidationResult(
            is_valid=len([v for v in violations if v.severity == "error"]) == 0,
            violations=violations,
            score=self._calculate_score(violations),
        )

    def _check_parents(self, index: NodeIndex) -> list[Violation]:
        """Parent links must resolve."""
        violations = []
        for node in index:
            if node.parent_id is not None and node.parent_id not in index:
                violations.append(
                    Violation(
                        rule="dangling_parent",
                        message=f"Node {node.id} references missing parent {node.parent_id}",
                        severity="error",
                        node_ids=[node.id],
                    )
                )
        return violations

    def _check_variants(self, index: NodeIndex) -> list[Violation]:
        """Derived variants must match the tree shape."""
        violations = []
        for node in index:
            expected = derive_variant(node, index)
            if expected != node.variant:
                violations.append(
                    Violation(
                        rule="variant",
                        message=f"Node {node.id} is {node.variant.value}, expected {expected.value}",
                        severity="warning",
                        node_ids=[node.id],
                    )
                )
        return violations

    def _check_containment(self, index: NodeIndex) -> list[Violation]:
        """Children must sit inside their parent's interior.

        Manual containers are validated, not repacked: a child escaping
        one is reported as a warning rather than an error. Locked
        children are exempt.
        """
        violations = []
        for node in index:
            if node.parent_id is None or node.parent_id not in index or node.locked_as_is:
                continue
            parent = index.get(node.parent_id)
            if contains(inset_interior(parent, self.settings.margins), Rect.of(node)):
                continue
            violations.append(
                Violation(
                    rule="containment",
                    message=f"Node {node.id} extends outside the interior of {parent.id}",
                    severity="warning" if parent.manual_positioning_enabled else "error",
                    node_ids=[node.id, parent.id],
                )
            )
        return violations

    def _check_overlaps(self, index: NodeIndex) -> list[Violation]:
        """Siblings under an auto-packed parent must not overlap."""
        violations = []
        for parent in index:
            if parent.manual_positioning_enabled:
                continue
            children = index.children(parent.id)
            for i, first in enumerate(children):
                for second in children[i + 1:]:
                    if overlaps(Rect.of(first), Rect.of(second)):
                        violations.append(
                            Violation(
                                rule="overlap",
                                message=f"Siblings {first.id} and {second.id} overlap",
                                severity="error",
                                node_ids=[first.id, second.id],
                            )
                        )
        return violations

    def _check_min_sizes(self, index: NodeIndex) -> list[Violation]:
        """Unlocked containers must be large enough for their children."""
        violations = []
        for node in index:
            if node.locked_as_is or not index.has_children(node.id):
                continue
            needed = required_size(index, node.id, self.settings)
            if node.w < needed.w or node.h < needed.h:
                violations.append(
                    Violation(
                        rule="min_size",
                        message=f"Container {node.id} is {node.w}x{node.h}, needs {needed.w}x{needed.h}",
                        severity="error",
                        node_ids=[node.id],
                    )
                )
        return violations

    def _calculate_score(self, violations: list[Violation]) -> float:
        """Calculate a quality score based on violations.

        Args:
            violations: List of violations.

        Returns:
            Score from 0-100.
        """
        score = 100.0

        for violation in violations:
            if violation.severity == "error":
                score -= 20
            elif violation.severity == "warning":
                score -= 10
            elif violation.severity == "info":
                score -= 2

        return max(0, score)


def validate_layout(nodes: Sequence[Node], settings: LayoutSettings) -> ValidationResult:
    """Validate a node list under the given settings."""
    return LayoutValidator(settings).validate(nodes)
