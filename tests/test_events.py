# tests/test_events.py
"""
EventBus ordering and removal, read-only command contexts and
CommandInterceptor registration by command name.
"""

from __future__ import annotations

import pytest

from adaptive_labels.editor import CommandEvent, CommandInterceptor, EventBus


def test_priority_then_registration_order() -> None:
    bus = EventBus()
    calls: list[str] = []

    bus.on("e", lambda event: calls.append("low"), priority=500)
    bus.on("e", lambda event: calls.append("first"))
    bus.on("e", lambda event: calls.append("second"))
    bus.on("e", lambda event: calls.append("high"), priority=1500)

    bus.fire("e", CommandEvent("test", {}))

    assert calls == ["high", "first", "second", "low"]


def test_off_removes_listener() -> None:
    bus = EventBus()
    calls: list[CommandEvent] = []

    bus.on(["a", "b"], calls.append)
    bus.off("a", calls.append)

    assert bus.listener_count("a") == 0
    assert bus.listener_count("b") == 1


def test_context_is_read_only() -> None:
    context = {"shape": "s1"}
    event = CommandEvent("shape.create", context)

    with pytest.raises(TypeError):
        event.context["shape"] = "other"

    context["shape"] = "changed"
    assert event.context["shape"] == "s1"


def test_handler_errors_propagate() -> None:
    bus = EventBus()

    def fail(event: CommandEvent) -> None:
        raise KeyError("missing")

    bus.on("e", fail)
    with pytest.raises(KeyError):
        bus.fire("e", CommandEvent("test", {}))


def test_interceptor_hooks_by_command_name() -> None:
    bus = EventBus()
    interceptor = CommandInterceptor(bus)
    seen: list[tuple[str, str]] = []

    interceptor.post_executed(
        ["connection.create", "connection.layout"],
        lambda event: seen.append(("post", event.command)),
    )
    interceptor.pre_executed("label.create", lambda event: seen.append(("pre", event.command)))

    bus.fire("commandStack.connection.layout.postExecuted", CommandEvent("connection.layout", {}))
    bus.fire("commandStack.label.create.preExecuted", CommandEvent("label.create", {}))
    bus.fire("commandStack.label.create.postExecuted", CommandEvent("label.create", {}))

    assert seen == [("post", "connection.layout"), ("pre", "label.create")]
