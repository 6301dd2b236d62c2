"""
Orientation classification - where one box or point lies relative to another.

A single function serves two granularities of judgement: a small padding
answers "is the label above/below/beside the shape", a larger one answers
"would this point land on or next to the host".
"""

from enum import Enum
from typing import Any, Optional

from .geometry import as_trbl


class Orientation(str, Enum):
    """Relative position of one element to a reference element."""
    TOP = "top"
    BOTTOM = "bottom"
    LEFT = "left"
    RIGHT = "right"
    TOP_LEFT = "top-left"
    TOP_RIGHT = "top-right"
    BOTTOM_LEFT = "bottom-left"
    BOTTOM_RIGHT = "bottom-right"
    INTERSECT = "intersect"


# Default priority order; also the only orientations a label can be moved to
ALIGNMENTS = (
    Orientation.TOP,
    Orientation.BOTTOM,
    Orientation.LEFT,
    Orientation.RIGHT,
)


def get_orientation(rect: Any, reference: Any, padding: float = 0) -> Orientation:
    """
    Classify the position of ``rect`` relative to ``reference``.

    Both arguments may be boxes (``x``, ``y``, ``width``, ``height``) or
    points. ``rect`` is only on a side when it clears the reference by at
    least ``padding``; clearing on both axes yields a diagonal, clearing on
    neither yields ``INTERSECT``.

    Args:
        rect: The element being classified
        reference: The element it is classified against
        padding: Slack required before a side counts

    Returns:
        The orientation of ``rect`` as seen from ``reference``
    """
    r = as_trbl(rect)
    ref = as_trbl(reference)

    top = r.bottom + padding <= ref.top
    right = r.left - padding >= ref.right
    bottom = r.top - padding >= ref.bottom
    left = r.right + padding <= ref.left

    vertical: Optional[str] = "top" if top else ("bottom" if bottom else None)
    horizontal: Optional[str] = "left" if left else ("right" if right else None)

    if vertical and horizontal:
        return Orientation(f"{vertical}-{horizontal}")
    if vertical or horizontal:
        return Orientation(vertical or horizontal)
    return Orientation.INTERSECT


def get_approximate_orientation(p0: Any, p1: Any, tolerance: float) -> Orientation:
    """Orientation of ``p1`` as seen from ``p0``, with approximate-equality slack."""
    return get_orientation(p1, p0, tolerance)


def is_aligned(orientation: Optional[Orientation]) -> bool:
    """Only the four sides are usable label alignments."""
    return orientation in ALIGNMENTS
