"""
Box and point helpers shared by the orientation classifier and the placement
evaluator.

Anything with ``x``/``y`` coordinates is accepted. Objects that also carry
``width``/``height`` are treated as boxes whose ``x``/``y`` is the top-left
corner; plain points are treated as zero-size boxes.
"""

from dataclasses import dataclass
from typing import Any

from .models import Point


@dataclass(frozen=True)
class Bounds:
    """Top/right/bottom/left edges of a box (y grows downwards)."""
    top: float
    right: float
    bottom: float
    left: float


def as_trbl(element: Any) -> Bounds:
    """Return the edges of a shape, or a degenerate box for a point."""
    width = getattr(element, "width", 0) or 0
    height = getattr(element, "height", 0) or 0
    return Bounds(
        top=element.y,
        right=element.x + width,
        bottom=element.y + height,
        left=element.x,
    )


def get_mid(element: Any) -> Point:
    """Get the center point of a shape (a point is its own center)."""
    width = getattr(element, "width", 0) or 0
    height = getattr(element, "height", 0) or 0
    return Point(x=element.x + width / 2, y=element.y + height / 2)


def subtract(a: Point, b: Point) -> Point:
    """Vector from ``b`` to ``a``."""
    return Point(x=a.x - b.x, y=a.y - b.y)
