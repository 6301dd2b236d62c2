"""
Diagram validation - Check diagrams for structural issues.

Label placement assumes a structurally valid diagram and never checks its
input; this module is where such problems are reported instead.
"""

from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

from .orientation import Orientation, get_orientation

if TYPE_CHECKING:
    from .models import Diagram


class IssueSeverity(str, Enum):
    """Severity levels for validation issues."""
    ERROR = "error"      # Invalid state, must be fixed
    WARNING = "warning"  # Potential problem, should review
    INFO = "info"        # Informational, may be intentional


@dataclass
class ValidationIssue:
    """A single validation issue found in a diagram."""
    severity: IssueSeverity
    message: str
    element_id: str | None = None

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        result = {
            "type": self.severity.value,
            "message": self.message
        }
        if self.element_id:
            result["element_id"] = self.element_id
        return result


def validate_diagram(diagram: "Diagram") -> list[ValidationIssue]:
    """
    Validate a diagram and return a list of issues.

    Checks for:
    - Empty diagram - INFO
    - Connections with fewer than two waypoints - ERROR
    - Connections referencing unknown shapes - ERROR
    - Labels referencing unknown shapes - ERROR
    - Hosts referencing unknown shapes, or the shape itself - ERROR
    - Shapes with more than one label - ERROR
    - Labels overlapping their shape (never repositioned) - WARNING

    Args:
        diagram: The diagram to validate

    Returns:
        List of ValidationIssue objects
    """
    issues: list[ValidationIssue] = []

    if not diagram.shapes:
        issues.append(ValidationIssue(
            severity=IssueSeverity.INFO,
            message="Diagram has no shapes"
        ))
        return issues

    shape_ids = {s.id for s in diagram.shapes}

    for connection in diagram.connections:
        if len(connection.waypoints) < 2:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection has {len(connection.waypoints)} waypoint(s), needs at least 2",
                element_id=connection.id
            ))
        if connection.source not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent source shape: {connection.source}",
                element_id=connection.id
            ))
        if connection.target not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Connection references non-existent target shape: {connection.target}",
                element_id=connection.id
            ))

    for label in diagram.labels:
        if label.owner not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Label references non-existent shape: {label.owner}",
                element_id=label.id
            ))

    for shape in diagram.shapes:
        if shape.host is None:
            continue
        if shape.host == shape.id:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message="Shape is attached to itself",
                element_id=shape.id
            ))
        elif shape.host not in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Shape is attached to non-existent host: {shape.host}",
                element_id=shape.id
            ))

    shapes_by_id = {s.id: s for s in diagram.shapes}
    for label in diagram.labels:
        owner = shapes_by_id.get(label.owner)
        if owner is not None and get_orientation(label, owner) == Orientation.INTERSECT:
            issues.append(ValidationIssue(
                severity=IssueSeverity.WARNING,
                message="Label overlaps its shape",
                element_id=label.id
            ))

    label_counts = Counter(label.owner for label in diagram.labels)
    for owner, count in label_counts.items():
        if count > 1 and owner in shape_ids:
            issues.append(ValidationIssue(
                severity=IssueSeverity.ERROR,
                message=f"Shape has {count} labels",
                element_id=owner
            ))

    return issues


def validation_summary(issues: list[ValidationIssue]) -> dict:
    """
    Create a summary of validation issues.

    Args:
        issues: List of validation issues

    Returns:
        Dictionary with counts by severity
    """
    return {
        "total": len(issues),
        "errors": len([i for i in issues if i.severity == IssueSeverity.ERROR]),
        "warnings": len([i for i in issues if i.severity == IssueSeverity.WARNING]),
        "info": len([i for i in issues if i.severity == IssueSeverity.INFO]),
        "valid": len([i for i in issues if i.severity == IssueSeverity.ERROR]) == 0
    }
