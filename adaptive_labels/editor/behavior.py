"""
Adaptive label positioning - keep external labels off the sides their
shape's connections use.

After a connection is created, laid out or has its waypoints changed, both
of its ends are checked; after a label is created, its owner is checked. A
label that needs to go elsewhere is moved with a single move_shape call,
issued while the triggering command is still running so both end up in the
same history entry.
"""

import logging
from typing import Optional, Protocol, Union

from ..config import DEFAULT_CONFIG, PlacementConfig
from ..models import Label, Point, Shape
from ..placement import ElementRegistry, evaluate_label_placement, get_label_delta
from ..orientation import Orientation
from .events import CommandEvent, CommandInterceptor, EventBus

logger = logging.getLogger(__name__)

CONNECTION_COMMANDS = [
    'connection.create',
    'connection.layout',
    'connection.updateWaypoints',
]

LABEL_COMMANDS = [
    'label.create',
]


class Modeling(Protocol):
    """The single editing operation the behavior needs."""

    def move_shape(self, element_id: str, delta: Point) -> Union[Shape, Label]: ...


class LabelRegistry(ElementRegistry, Protocol):
    """Element lookups, including the label -> owner back-reference."""

    def get_shape(self, shape_id: str) -> Optional[Shape]: ...

    def get_label_target(self, label_id: str) -> Optional[Shape]: ...


class AdaptiveLabelPositioningBehavior(CommandInterceptor):
    """
    Moves external labels to a free side of their shape after structural
    changes.

    Args:
        event_bus: Bus the editor announces commands on
        modeling: Provides move_shape
        registry: Resolves labels, owners, hosts and connections
        config: Tolerances, clearance and priority order
    """

    def __init__(
        self,
        event_bus: EventBus,
        modeling: Modeling,
        registry: LabelRegistry,
        config: Optional[PlacementConfig] = None
    ):
        super().__init__(event_bus)

        self._modeling = modeling
        self._registry = registry
        self._config = config or DEFAULT_CONFIG

        self.post_executed(CONNECTION_COMMANDS, self._on_connection_changed)
        self.post_executed(LABEL_COMMANDS, self._on_label_created)

    def _on_connection_changed(self, event: CommandEvent):
        connection = event.context["connection"]

        source = self._registry.get_shape(connection.source)
        target = self._registry.get_shape(connection.target)

        self.check_label_adjustment(source)
        self.check_label_adjustment(target)

    def _on_label_created(self, event: CommandEvent):
        label = event.context["shape"]
        self.check_label_adjustment(self._registry.get_label_target(label.id))

    def check_label_adjustment(self, shape: Optional[Shape]) -> Optional[Orientation]:
        """
        Move the label of ``shape`` if its side is taken.

        Returns the side the label was moved to, or None if it stayed.
        """
        # owner may already be gone
        if shape is None:
            return None

        optimal_position = evaluate_label_placement(shape, self._registry, self._config)

        if optimal_position is None:
            return None

        self._adjust_label_position(shape, self._registry.get_label(shape.id), optimal_position)
        return optimal_position

    def _adjust_label_position(self, shape: Shape, label: Label, orientation: Orientation):
        delta = get_label_delta(shape, label, orientation, self._config.label_distance)

        logger.info("Moving label %s of %s to %s", label.id, shape.id, orientation.value)
        self._modeling.move_shape(label.id, delta)
