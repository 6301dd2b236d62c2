"""
Diagram Manager - In-process editor model for labelled diagrams.

This module implements:
- Single diagram state management (one diagram open at a time)
- O(1) lookups and back-reference indexes (shape -> label, label -> owner,
  shape -> incoming/outgoing connections)
- Commands that announce themselves on the EventBus before and after they
  change the diagram
- Linear undo/redo history using snapshots; commands issued while another
  command runs share its history entry
"""

import logging
from typing import Any, Callable, Optional, Union

from ..config import PlacementConfig
from ..geometry import get_mid
from ..models import Connection, Diagram, Label, Point, Shape
from ..orientation import Orientation
from ..placement import get_new_label_mid
from .behavior import AdaptiveLabelPositioningBehavior
from .events import CommandEvent, EventBus, command_event_name

logger = logging.getLogger(__name__)

PointLike = Union[Point, tuple[float, float], list[float], dict]


class DiagramManager:
    """
    Manages a single diagram's state, history and command notifications.

    Features:
    - O(1) shape/label/connection lookups via index dictionaries
    - Snapshot-based undo/redo history
    - Pre/post-executed command events for behaviors
    - Change callbacks for observers

    The history system works via snapshots:
    - The outermost command of an edit records the state it started from
      once it completes; a failed edit restores that state instead
    - Commands fired from inside another command's handlers join that edit
    - Undo restores the previous snapshot, redo re-applies a future one
    """

    def __init__(self, max_history: int = 100, event_bus: Optional[EventBus] = None):
        self._diagram: Optional[Diagram] = None
        self._event_bus = event_bus or EventBus()
        self._history: list[dict] = []  # Past states (snapshots)
        self._future: list[dict] = []   # Future states (for redo)
        self._max_history = max_history
        self._dirty = False
        self._depth = 0  # Nesting level of running commands
        self._on_change_callbacks: list[Callable] = []

        # O(1) lookup indexes
        self._shape_index: dict[str, Shape] = {}            # shape_id -> Shape
        self._label_index: dict[str, Label] = {}            # label_id -> Label
        self._connection_index: dict[str, Connection] = {}  # connection_id -> Connection
        self._label_by_owner: dict[str, str] = {}           # shape_id -> label_id
        self._owner_by_label: dict[str, str] = {}           # label_id -> shape_id
        self._incoming: dict[str, list[str]] = {}           # shape_id -> connection_ids
        self._outgoing: dict[str, list[str]] = {}           # shape_id -> connection_ids

    # --- Index Management ---

    def _rebuild_indexes(self):
        """Rebuild all indexes from the current diagram state."""
        self._shape_index.clear()
        self._label_index.clear()
        self._connection_index.clear()
        self._label_by_owner.clear()
        self._owner_by_label.clear()
        self._incoming.clear()
        self._outgoing.clear()

        if self._diagram is None:
            return

        for shape in self._diagram.shapes:
            self._shape_index[shape.id] = shape
        for label in self._diagram.labels:
            self._index_label(label)
        for connection in self._diagram.connections:
            self._index_connection(connection)

    def _index_label(self, label: Label):
        """Add a label and its back-references to the indexes."""
        self._label_index[label.id] = label
        self._label_by_owner[label.owner] = label.id
        self._owner_by_label[label.id] = label.owner

    def _index_connection(self, connection: Connection):
        """Add a connection to the indexes."""
        self._connection_index[connection.id] = connection
        self._outgoing.setdefault(connection.source, []).append(connection.id)
        self._incoming.setdefault(connection.target, []).append(connection.id)

    def _unindex_connection(self, connection: Connection):
        """Remove a connection from the indexes."""
        self._connection_index.pop(connection.id, None)
        if connection.id in self._outgoing.get(connection.source, []):
            self._outgoing[connection.source].remove(connection.id)
        if connection.id in self._incoming.get(connection.target, []):
            self._incoming[connection.target].remove(connection.id)

    # --- Properties ---

    @property
    def diagram(self) -> Optional[Diagram]:
        """Get the current diagram."""
        return self._diagram

    @property
    def event_bus(self) -> EventBus:
        """Get the bus commands are announced on."""
        return self._event_bus

    @property
    def is_dirty(self) -> bool:
        """Check if the diagram changed since it was opened."""
        return self._dirty

    @property
    def can_undo(self) -> bool:
        """Check if undo is available."""
        return len(self._history) > 0

    @property
    def can_redo(self) -> bool:
        """Check if redo is available."""
        return len(self._future) > 0

    # --- Change Callbacks ---

    def on_change(self, callback: Callable):
        """Register a callback for diagram changes."""
        self._on_change_callbacks.append(callback)

    def _notify_change(self):
        """Notify all registered callbacks of a change."""
        for callback in self._on_change_callbacks:
            callback()

    # --- History Management ---

    def _save_to_history(self, snapshot: dict):
        """Record the state a completed edit started from."""
        # New action invalidates redo stack
        self._future.clear()

        self._history.append(snapshot)

        while len(self._history) > self._max_history:
            self._history.pop(0)

    def _restore_from_snapshot(self, snapshot: dict) -> Diagram:
        """Restore a diagram from a snapshot dict."""
        return Diagram.from_json_dict(snapshot)

    def undo(self) -> Optional[Diagram]:
        """Undo the last edit, including any commands nested in it."""
        if not self.can_undo or self._diagram is None:
            return None

        self._future.append(self._diagram.to_json_dict())

        snapshot = self._history.pop()
        self._diagram = self._restore_from_snapshot(snapshot)
        self._dirty = True
        self._rebuild_indexes()
        self._notify_change()
        return self._diagram

    def redo(self) -> Optional[Diagram]:
        """Redo the last undone edit."""
        if not self.can_redo or self._diagram is None:
            return None

        self._history.append(self._diagram.to_json_dict())

        snapshot = self._future.pop()
        self._diagram = self._restore_from_snapshot(snapshot)
        self._dirty = True
        self._rebuild_indexes()
        self._notify_change()
        return self._diagram

    # --- Diagram Lifecycle ---

    def new_diagram(self, name: str = "Untitled Diagram") -> Diagram:
        """Create a new empty diagram."""
        return self._open(Diagram(name=name))

    def load_diagram(self, data: dict) -> Diagram:
        """Open a diagram from its JSON dict form."""
        return self._open(Diagram.from_json_dict(data))

    def _open(self, diagram: Diagram) -> Diagram:
        self._diagram = diagram
        self._history.clear()
        self._future.clear()
        self._dirty = False
        self._rebuild_indexes()
        self._notify_change()
        return self._diagram

    def _require_diagram(self) -> Diagram:
        if self._diagram is None:
            raise ValueError("No diagram open")
        return self._diagram

    def _check_unique_id(self, element_id: str):
        # Shapes and labels are looked up through one id space
        if self.get_element(element_id) is not None:
            raise ValueError(f"Duplicate element id: {element_id}")

    # --- Command Execution ---

    def _execute(self, command: str, context: dict, handler: Callable[[dict], Any]) -> Any:
        """
        Run ``handler`` as the named command.

        Fires preExecuted with the initial context, runs the handler (which
        may add the created element to the context) and fires postExecuted.
        If the outermost command fails, the diagram is rolled back to the
        snapshot taken before it started and the history is left untouched.
        """
        diagram = self._require_diagram()

        outermost = self._depth == 0
        snapshot = diagram.to_json_dict() if outermost else None

        self._depth += 1
        try:
            self._event_bus.fire(command_event_name(command, "preExecuted"),
                                 CommandEvent(command, context))
            result = handler(context)
            self._event_bus.fire(command_event_name(command, "postExecuted"),
                                 CommandEvent(command, context))
        except Exception:
            if outermost:
                logger.warning("Command %s failed; rolling back", command)
                self._diagram = self._restore_from_snapshot(snapshot)
                self._rebuild_indexes()
            raise
        finally:
            self._depth -= 1

        self._dirty = True
        if outermost:
            self._save_to_history(snapshot)
            self._notify_change()
        return result

    # --- Shape Operations ---

    def add_shape(self, **kwargs) -> Shape:
        """Add a new shape to the diagram."""
        diagram = self._require_diagram()

        shape_id = kwargs.get("id")
        if shape_id is not None:
            self._check_unique_id(shape_id)

        host = kwargs.get("host")
        if host is not None and host not in self._shape_index:
            raise ValueError(f"Host shape not found: {host}")

        def do_create(context: dict) -> Shape:
            shape = Shape(**kwargs)
            diagram.shapes.append(shape)
            self._shape_index[shape.id] = shape
            context["shape"] = shape
            return shape

        return self._execute("shape.create", {}, do_create)

    def move_shape(self, element_id: str, delta: PointLike) -> Union[Shape, Label]:
        """
        Move a shape or a label by a relative vector.

        Moving a shape carries its label along and lays out its connections
        again; moving a label touches nothing else.
        """
        self._require_diagram()

        element = self.get_element(element_id)
        if element is None:
            raise ValueError(f"Shape not found: {element_id}")

        delta = Point.model_validate(delta)

        def do_move(context: dict) -> Union[Shape, Label]:
            element.x += delta.x
            element.y += delta.y

            if not isinstance(element, Label):
                label = self.get_label(element.id)
                if label is not None:
                    label.x += delta.x
                    label.y += delta.y

                for connection in self.get_incoming(element.id) + self.get_outgoing(element.id):
                    self.layout_connection(connection.id)

            return element

        logger.debug("Moving %s by (%s, %s)", element_id, delta.x, delta.y)
        return self._execute("shape.move", {"shape": element, "delta": delta}, do_move)

    # --- Label Operations ---

    def create_label(
        self,
        owner_id: str,
        text: str = "",
        position: Optional[PointLike] = None,
        width: float = 90,
        height: float = 20,
        label_id: Optional[str] = None
    ) -> Label:
        """
        Attach an external label to a shape.

        The label is centered on ``position`` or, if omitted, placed right
        below its owner.
        ``label_id`` must not clash with any existing shape or label id.
        """
        diagram = self._require_diagram()

        owner = self._shape_index.get(owner_id)
        if owner is None:
            raise ValueError(f"Shape not found: {owner_id}")
        if owner_id in self._label_by_owner:
            raise ValueError(f"Shape already has a label: {owner_id}")
        if label_id is not None:
            self._check_unique_id(label_id)

        def do_create(context: dict) -> Label:
            label = Label(owner=owner_id, text=text, width=width, height=height, x=0, y=0)
            if label_id is not None:
                label.id = label_id
            if position is None:
                mid = get_new_label_mid(owner, label, Orientation.BOTTOM)
            else:
                mid = Point.model_validate(position)
            label.x = mid.x - width / 2
            label.y = mid.y - height / 2

            diagram.labels.append(label)
            self._index_label(label)
            context["shape"] = label
            return label

        return self._execute("label.create", {"label_target": owner}, do_create)

    # --- Connection Operations ---

    def _layout_waypoints(self, source: Shape, target: Shape) -> list[Point]:
        """Straight segment between the two shape centers."""
        return [get_mid(source), get_mid(target)]

    def create_connection(
        self,
        source: str,
        target: str,
        waypoints: Optional[list[PointLike]] = None
    ) -> Connection:
        """Connect two shapes; without waypoints the connection is laid out."""
        diagram = self._require_diagram()

        source_shape = self._shape_index.get(source)
        target_shape = self._shape_index.get(target)
        if source_shape is None:
            raise ValueError(f"Source shape not found: {source}")
        if target_shape is None:
            raise ValueError(f"Target shape not found: {target}")

        def do_create(context: dict) -> Connection:
            connection = Connection(
                source=source,
                target=target,
                waypoints=(waypoints if waypoints is not None
                           else self._layout_waypoints(source_shape, target_shape))
            )
            diagram.connections.append(connection)
            self._index_connection(connection)
            context["connection"] = connection
            return connection

        return self._execute("connection.create", {}, do_create)

    def layout_connection(
        self,
        connection_id: str,
        waypoints: Optional[list[PointLike]] = None
    ) -> Connection:
        """Recompute a connection's route (or apply the given one)."""
        connection = self._get_connection_or_raise(connection_id)

        def do_layout(context: dict) -> Connection:
            if waypoints is not None:
                connection.waypoints = [Point.model_validate(p) for p in waypoints]
            else:
                connection.waypoints = self._layout_waypoints(
                    self._shape_index[connection.source],
                    self._shape_index[connection.target]
                )
            return connection

        return self._execute("connection.layout", {"connection": connection}, do_layout)

    def update_waypoints(self, connection_id: str, waypoints: list[PointLike]) -> Connection:
        """Replace a connection's waypoints."""
        connection = self._get_connection_or_raise(connection_id)

        def do_update(context: dict) -> Connection:
            connection.waypoints = [Point.model_validate(p) for p in waypoints]
            return connection

        return self._execute(
            "connection.updateWaypoints",
            {"connection": connection},
            do_update
        )

    def delete_connection(self, connection_id: str) -> bool:
        """Delete a connection."""
        diagram = self._require_diagram()

        connection = self._connection_index.get(connection_id)
        if connection is None:
            return False

        def do_delete(context: dict) -> bool:
            diagram.connections = [c for c in diagram.connections if c.id != connection_id]
            self._unindex_connection(connection)
            return True

        return self._execute("connection.delete", {"connection": connection}, do_delete)

    def _get_connection_or_raise(self, connection_id: str) -> Connection:
        self._require_diagram()
        connection = self._connection_index.get(connection_id)
        if connection is None:
            raise ValueError(f"Connection not found: {connection_id}")
        return connection

    # --- Lookups (ElementRegistry) ---

    def get_shape(self, shape_id: str) -> Optional[Shape]:
        """Get a shape by ID (O(1) lookup)."""
        return self._shape_index.get(shape_id)

    def get_element(self, element_id: str) -> Optional[Union[Shape, Label]]:
        """Get a shape or a label by ID."""
        return self._shape_index.get(element_id) or self._label_index.get(element_id)

    def get_connection(self, connection_id: str) -> Optional[Connection]:
        """Get a connection by ID (O(1) lookup)."""
        return self._connection_index.get(connection_id)

    def get_label(self, shape_id: str) -> Optional[Label]:
        """Get the external label of a shape."""
        label_id = self._label_by_owner.get(shape_id)
        return self._label_index.get(label_id) if label_id else None

    def get_label_target(self, label_id: str) -> Optional[Shape]:
        """Get the shape a label belongs to."""
        owner_id = self._owner_by_label.get(label_id)
        return self._shape_index.get(owner_id) if owner_id else None

    def get_host(self, shape_id: str) -> Optional[Shape]:
        """Get the shape a shape is attached to."""
        shape = self._shape_index.get(shape_id)
        if shape is None or shape.host is None:
            return None
        return self._shape_index.get(shape.host)

    def get_incoming(self, shape_id: str) -> list[Connection]:
        """Get connections ending at a shape."""
        return [self._connection_index[cid] for cid in self._incoming.get(shape_id, [])]

    def get_outgoing(self, shape_id: str) -> list[Connection]:
        """Get connections starting at a shape."""
        return [self._connection_index[cid] for cid in self._outgoing.get(shape_id, [])]

    def get_state(self) -> dict:
        """Get the full current state."""
        if self._diagram is None:
            return {
                "diagram": None,
                "is_dirty": False,
                "can_undo": False,
                "can_redo": False
            }

        return {
            "diagram": self._diagram.to_json_dict(),
            "is_dirty": self._dirty,
            "can_undo": self.can_undo,
            "can_redo": self.can_redo
        }


def create_editor(
    config: Optional[PlacementConfig] = None,
    max_history: int = 100
) -> DiagramManager:
    """Create a manager with adaptive label positioning switched on."""
    manager = DiagramManager(max_history=max_history)
    AdaptiveLabelPositioningBehavior(manager.event_bus, manager, manager, config)
    return manager
