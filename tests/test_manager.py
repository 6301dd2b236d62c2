# tests/test_manager.py
"""
DiagramManager: commands, back-reference indexes, snapshot history,
rollback of failed commands and change notifications.
"""

from __future__ import annotations

import pytest

from adaptive_labels import Label, Point, get_mid
from adaptive_labels.editor import CommandEvent, DiagramManager


def test_commands_require_open_diagram() -> None:
    manager = DiagramManager()
    with pytest.raises(ValueError, match="No diagram open"):
        manager.add_shape()
    assert manager.get_state()["diagram"] is None


def test_add_shape_and_lookup(manager: DiagramManager) -> None:
    shape = manager.add_shape(id="a", x=10, y=20, width=30, height=40)
    assert manager.get_shape("a") is shape
    assert manager.get_element("a") is shape
    assert manager.get_shape("missing") is None
    assert manager.is_dirty


def test_add_shape_with_unknown_host(manager: DiagramManager) -> None:
    with pytest.raises(ValueError, match="Host shape not found"):
        manager.add_shape(id="boundary", host="nope")


def test_label_back_references(manager: DiagramManager) -> None:
    manager.add_shape(id="a", x=100, y=100, width=100, height=80)
    label = manager.create_label("a", text="Hello")

    assert manager.get_label("a") is label
    assert manager.get_label_target(label.id).id == "a"
    assert manager.get_element(label.id) is label
    # default position: right below the owner
    assert get_mid(label) == Point(x=150, y=190)


def test_label_errors(manager: DiagramManager) -> None:
    with pytest.raises(ValueError, match="Shape not found"):
        manager.create_label("missing")

    manager.add_shape(id="a")
    manager.create_label("a")
    with pytest.raises(ValueError, match="already has a label"):
        manager.create_label("a")


def test_connection_indexes(manager: DiagramManager) -> None:
    manager.add_shape(id="a", x=0, y=0, width=100, height=80)
    manager.add_shape(id="b", x=300, y=0, width=100, height=80)
    connection = manager.create_connection("a", "b")

    assert manager.get_outgoing("a") == [connection]
    assert manager.get_incoming("b") == [connection]
    assert manager.get_incoming("a") == []
    assert connection.waypoints == [Point(x=50, y=40), Point(x=350, y=40)]

    assert manager.delete_connection(connection.id) is True
    assert manager.get_outgoing("a") == []
    assert manager.delete_connection(connection.id) is False


def test_connection_errors(manager: DiagramManager) -> None:
    manager.add_shape(id="a")
    with pytest.raises(ValueError, match="Target shape not found"):
        manager.create_connection("a", "b")
    with pytest.raises(ValueError, match="Connection not found"):
        manager.update_waypoints("c1", [(0, 0), (1, 1)])


def test_explicit_waypoints_accept_pairs(manager: DiagramManager) -> None:
    manager.add_shape(id="a")
    manager.add_shape(id="b")
    connection = manager.create_connection("a", "b", waypoints=[(0, 0), {"x": 5, "y": 5}])
    assert connection.waypoints == [Point(x=0, y=0), Point(x=5, y=5)]

    manager.layout_connection(connection.id, waypoints=[[1, 2], [3, 4]])
    assert connection.waypoints == [Point(x=1, y=2), Point(x=3, y=4)]


def test_moving_a_label_touches_nothing_else(manager: DiagramManager) -> None:
    owner = manager.add_shape(id="a", x=100, y=100, width=100, height=80)
    label = manager.create_label("a")

    manager.move_shape(label.id, Point(x=0, y=-100))

    assert get_mid(label) == Point(x=150, y=90)
    assert (owner.x, owner.y) == (100, 100)


def test_moving_a_shape_carries_label_and_relayouts(manager: DiagramManager) -> None:
    manager.add_shape(id="a", x=0, y=0, width=100, height=80)
    manager.add_shape(id="b", x=300, y=0, width=100, height=80)
    label = manager.create_label("b")
    connection = manager.create_connection("a", "b")

    manager.move_shape("b", (0, 100))

    assert get_mid(label) == Point(x=350, y=190)
    assert connection.waypoints[-1] == Point(x=350, y=140)


def test_move_unknown_element(manager: DiagramManager) -> None:
    with pytest.raises(ValueError, match="Shape not found"):
        manager.move_shape("missing", (1, 1))


def test_undo_redo(manager: DiagramManager) -> None:
    manager.add_shape(id="a", x=0, y=0)
    manager.move_shape("a", (10, 0))

    manager.undo()
    assert manager.get_shape("a").x == 0
    assert manager.can_redo

    manager.redo()
    assert manager.get_shape("a").x == 10

    manager.undo()
    manager.undo()
    assert manager.get_shape("a") is None
    assert not manager.can_undo
    assert manager.undo() is None


def test_history_is_bounded() -> None:
    manager = DiagramManager(max_history=3)
    manager.new_diagram()
    for i in range(5):
        manager.add_shape(id=f"s{i}")

    undone = 0
    while manager.undo() is not None:
        undone += 1
    assert undone == 3


def test_failed_command_rolls_back(manager: DiagramManager) -> None:
    def explode(event: CommandEvent) -> None:
        raise RuntimeError("boom")

    manager.event_bus.on("commandStack.shape.create.postExecuted", explode)

    with pytest.raises(RuntimeError, match="boom"):
        manager.add_shape(id="a")

    assert manager.get_shape("a") is None
    assert manager.diagram.shapes == []
    assert not manager.can_undo


def test_failed_command_keeps_redo_stack(manager: DiagramManager) -> None:
    manager.add_shape(id="a")
    manager.add_shape(id="b")
    manager.undo()
    assert manager.can_redo

    with pytest.raises(ValueError):
        manager.create_connection("a", "a", waypoints=[(1, 2, 3)])

    assert manager.can_redo
    manager.redo()
    assert manager.get_shape("b") is not None


def test_rollback_without_history() -> None:
    manager = DiagramManager(max_history=0)
    manager.new_diagram()
    manager.add_shape(id="a")
    assert not manager.can_undo

    with pytest.raises(ValueError, match="two coordinates"):
        manager.create_connection("a", "a", waypoints=[(1, 2, 3)])

    assert manager.get_outgoing("a") == []
    assert manager.diagram.connections == []
    assert manager.get_shape("a") is not None


def test_duplicate_ids_are_rejected(manager: DiagramManager) -> None:
    manager.add_shape(id="a")
    manager.add_shape(id="b")
    manager.create_label("a", label_id="la")

    with pytest.raises(ValueError, match="Duplicate element id: a"):
        manager.add_shape(id="a")
    with pytest.raises(ValueError, match="Duplicate element id: la"):
        manager.add_shape(id="la")
    with pytest.raises(ValueError, match="Duplicate element id: a"):
        manager.create_label("b", label_id="a")

    assert [s.id for s in manager.diagram.shapes] == ["a", "b"]
    assert manager.get_label("b") is None
    assert manager.get_label_target("la").id == "a"


def test_nested_commands_share_one_edit(manager: DiagramManager) -> None:
    manager.add_shape(id="a")
    manager.add_shape(id="b")
    label = manager.create_label("a")
    y_before = label.y

    def nudge_label(event: CommandEvent) -> None:
        manager.move_shape(label.id, (0, 5))

    manager.event_bus.on("commandStack.connection.create.postExecuted", nudge_label)
    calls: list[int] = []
    manager.on_change(lambda: calls.append(1))

    manager.create_connection("a", "b")

    assert calls == [1]
    assert label.y == y_before + 5

    # one undo reverts the connection and the nested move
    manager.undo()
    assert manager.get_label("a").y == y_before
    assert manager.get_outgoing("a") == []


def test_load_diagram_builds_indexes(manager: DiagramManager) -> None:
    manager.load_diagram({
        "id": "d1",
        "name": "loaded",
        "shapes": [{"id": "a"}, {"id": "b"}],
        "labels": [{"id": "la", "owner": "a"}],
        "connections": [{"id": "c1", "source": "a", "target": "b", "waypoints": [[0, 0], [1, 1]]}],
    })

    assert isinstance(manager.get_label("a"), Label)
    assert manager.get_label_target("la").id == "a"
    assert [c.id for c in manager.get_incoming("b")] == ["c1"]
    assert not manager.is_dirty
    assert not manager.can_undo

    state = manager.get_state()
    assert state["diagram"]["name"] == "loaded"
    assert state["diagram"]["connections"][0]["waypoints"] == [{"x": 0, "y": 0}, {"x": 1, "y": 1}]
