"""
Label placement - decide which side of a shape its external label belongs on.

A label is left alone while it sits on a side no connection uses. Once a
connection claims that side, the label moves to the first free side in
priority order (top, bottom, left, right by default). Labels of shapes
attached to a host never move onto the host.

Nothing here mutates the diagram; callers receive a side (or None) and turn
it into a relative move via get_label_delta.
"""

import logging
from typing import Optional, Protocol, Sequence

from .config import DEFAULT_CONFIG, ELEMENT_LABEL_DISTANCE, PlacementConfig
from .geometry import as_trbl, get_mid, subtract
from .models import Connection, Label, Point, Shape
from .orientation import (
    Orientation,
    get_approximate_orientation,
    get_orientation,
    is_aligned,
)

logger = logging.getLogger(__name__)


class ElementRegistry(Protocol):
    """Read access to the back-references the placement logic needs."""

    def get_label(self, shape_id: str) -> Optional[Label]: ...

    def get_host(self, shape_id: str) -> Optional[Shape]: ...

    def get_incoming(self, shape_id: str) -> list[Connection]: ...

    def get_outgoing(self, shape_id: str) -> list[Connection]: ...


def get_new_label_mid(
    shape: Shape,
    label: Label,
    orientation: Orientation,
    distance: float = ELEMENT_LABEL_DISTANCE
) -> Point:
    """
    Center of ``label`` once placed against ``orientation`` side of ``shape``.

    The label's box touches the shape's box on that side, separated by
    ``distance``, and is centered on the shape along the other axis.

    Args:
        shape: The labelled shape
        label: Its external label (only its size is used)
        orientation: One of top, bottom, left, right
        distance: Clearance between the two boxes

    Returns:
        The new label center

    Raises:
        ValueError: If orientation is not one of the four sides
    """
    mid = get_mid(shape)
    trbl = as_trbl(shape)

    if orientation == Orientation.TOP:
        return Point(x=mid.x, y=trbl.top - distance - label.height / 2)
    if orientation == Orientation.BOTTOM:
        return Point(x=mid.x, y=trbl.bottom + distance + label.height / 2)
    if orientation == Orientation.LEFT:
        return Point(x=trbl.left - distance - label.width / 2, y=mid.y)
    if orientation == Orientation.RIGHT:
        return Point(x=trbl.right + distance + label.width / 2, y=mid.y)

    raise ValueError(f"Not a label alignment: {orientation}")


def get_label_delta(
    shape: Shape,
    label: Label,
    orientation: Orientation,
    distance: float = ELEMENT_LABEL_DISTANCE
) -> Point:
    """Translation that moves ``label`` onto the given side of ``shape``."""
    return subtract(get_new_label_mid(shape, label, orientation, distance), get_mid(label))


def get_taken_alignments(
    shape: Shape,
    incoming: Sequence[Connection],
    outgoing: Sequence[Connection],
    tolerance: float
) -> list[Orientation]:
    """
    Sides of ``shape`` used by its connections.

    Each connection is judged by the waypoint next to the shape, not by its
    docking point: the second-to-last waypoint of incoming connections and
    the second waypoint of outgoing ones.
    """
    shape_mid = get_mid(shape)

    points = [c.waypoints[-2] for c in incoming] + [c.waypoints[1] for c in outgoing]

    return [get_approximate_orientation(shape_mid, point, tolerance) for point in points]


def get_optimal_position(
    shape: Shape,
    label: Label,
    incoming: Sequence[Connection] = (),
    outgoing: Sequence[Connection] = (),
    host: Optional[Shape] = None,
    config: Optional[PlacementConfig] = None
) -> Optional[Orientation]:
    """
    Return the side ``label`` should move to, or None to leave it in place.

    None covers every "nothing to do" case: the label is diagonal to or
    overlapping the shape, its side is still free, or no free side is left.

    Args:
        shape: The labelled shape
        label: Its external label
        incoming: Connections ending at the shape
        outgoing: Connections starting at the shape
        host: The shape ``shape`` is attached to, if any
        config: Tolerances, clearance and priority order

    Returns:
        The first usable free side in priority order, or None
    """
    config = config or DEFAULT_CONFIG

    shape_mid = get_mid(shape)
    label_orientation = get_approximate_orientation(
        shape_mid, get_mid(label), config.approximate_tolerance
    )

    if not is_aligned(label_orientation):
        logger.debug("Label of %s is %s, not aligned; skipping", shape.id, label_orientation.value)
        return None

    taken = get_taken_alignments(shape, incoming, outgoing, config.approximate_tolerance)

    free = [a for a in config.alignments if a not in taken]

    # label already sits on a side no connection uses
    if label_orientation in free:
        return None

    if host is not None:
        candidates = [
            a for a in free
            if get_orientation(
                host,
                get_new_label_mid(shape, label, a, config.label_distance),
                config.host_tolerance
            ) != Orientation.INTERSECT
        ]

        if not candidates and free and config.fallback_to_first_free:
            logger.debug("Every free side of %s overlaps host %s; using %s anyway",
                         shape.id, host.id, free[0].value)
            return free[0]

        free = candidates

    if not free:
        logger.debug("No free side left for the label of %s", shape.id)
        return None

    return free[0]


def evaluate_label_placement(
    shape: Shape,
    registry: ElementRegistry,
    config: Optional[PlacementConfig] = None
) -> Optional[Orientation]:
    """
    Resolve the label, host and connections of ``shape`` and pick a side.

    Shapes without an external label yield None.
    """
    label = registry.get_label(shape.id)
    if label is None:
        return None

    return get_optimal_position(
        shape,
        label,
        incoming=registry.get_incoming(shape.id),
        outgoing=registry.get_outgoing(shape.id),
        host=registry.get_host(shape.id),
        config=config,
    )
