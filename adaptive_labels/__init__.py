"""
Adaptive Labels - Keep external labels of diagram shapes on a free side.

This package provides the placement decision (orientation classification,
conflict detection against connections, host exclusion, displacement) and,
in adaptive_labels.editor, an in-process editor model that runs it whenever
connections or labels change.
"""

from .models import (
    # Enums
    ShapeType,
    # Core models
    Point,
    Shape,
    Label,
    Connection,
    Diagram,
)

from .geometry import Bounds, as_trbl, get_mid, subtract
from .orientation import (
    Orientation,
    ALIGNMENTS,
    get_orientation,
    get_approximate_orientation,
    is_aligned,
)
from .config import PlacementConfig, DEFAULT_CONFIG
from .placement import (
    ElementRegistry,
    get_new_label_mid,
    get_label_delta,
    get_taken_alignments,
    get_optimal_position,
    evaluate_label_placement,
)
from .validation import validate_diagram, validation_summary, ValidationIssue, IssueSeverity

__all__ = [
    # Enums
    "ShapeType",
    "Orientation",
    # Models
    "Point",
    "Shape",
    "Label",
    "Connection",
    "Diagram",
    # Geometry
    "Bounds",
    "as_trbl",
    "get_mid",
    "subtract",
    # Orientation
    "ALIGNMENTS",
    "get_orientation",
    "get_approximate_orientation",
    "is_aligned",
    # Configuration
    "PlacementConfig",
    "DEFAULT_CONFIG",
    # Placement
    "ElementRegistry",
    "get_new_label_mid",
    "get_label_delta",
    "get_taken_alignments",
    "get_optimal_position",
    "evaluate_label_placement",
    # Validation
    "validate_diagram",
    "validation_summary",
    "ValidationIssue",
    "IssueSeverity",
]
