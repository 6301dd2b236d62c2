"""
Event bus and command interception.

Commands executed by the DiagramManager announce themselves on the bus as
``commandStack.<command>.preExecuted`` before they change the diagram and
``commandStack.<command>.postExecuted`` afterwards. Behaviors subclass
CommandInterceptor to hook into those notifications by command name.
"""

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Any, Callable, Iterable, Mapping, Union

logger = logging.getLogger(__name__)

DEFAULT_PRIORITY = 1000


@dataclass(frozen=True)
class CommandEvent:
    """Notification about a command; the context is read-only."""
    command: str
    context: Mapping[str, Any]

    def __post_init__(self):
        if not isinstance(self.context, MappingProxyType):
            object.__setattr__(self, "context", MappingProxyType(dict(self.context)))


Handler = Callable[[CommandEvent], None]


class EventBus:
    """
    Publish/subscribe channel owned by the editor.

    Handlers run in descending priority; equal priorities run in
    registration order. Exceptions raised by a handler propagate to the
    code that fired the event.
    """

    def __init__(self):
        self._listeners: dict[str, list[tuple[int, int, Handler]]] = {}
        self._counter = 0

    def on(self, events: Union[str, Iterable[str]], callback: Handler,
           priority: int = DEFAULT_PRIORITY):
        """Register a callback for one or more events."""
        if isinstance(events, str):
            events = [events]

        for event in events:
            listeners = self._listeners.setdefault(event, [])
            self._counter += 1
            listeners.append((priority, self._counter, callback))
            listeners.sort(key=lambda entry: (-entry[0], entry[1]))

    def off(self, event: str, callback: Handler):
        """Remove a callback from an event."""
        listeners = self._listeners.get(event, [])
        self._listeners[event] = [l for l in listeners if l[2] != callback]

    def fire(self, event: str, payload: CommandEvent):
        """Deliver a payload to every listener of an event."""
        listeners = list(self._listeners.get(event, []))
        if listeners:
            logger.debug("Firing %s to %d listener(s)", event, len(listeners))

        for _, _, callback in listeners:
            callback(payload)

    def listener_count(self, event: str) -> int:
        """Get the number of callbacks registered for an event."""
        return len(self._listeners.get(event, []))


def command_event_name(command: str, hook: str) -> str:
    """Name of the bus event for a command lifecycle hook."""
    return f"commandStack.{command}.{hook}"


class CommandInterceptor:
    """Base class for behaviors reacting to executed commands."""

    def __init__(self, event_bus: EventBus):
        self._event_bus = event_bus

    def _on(self, commands: Union[str, Iterable[str]], hook: str, handler: Handler,
            priority: int):
        if isinstance(commands, str):
            commands = [commands]

        self._event_bus.on(
            [command_event_name(command, hook) for command in commands],
            handler,
            priority
        )

    def pre_executed(self, commands: Union[str, Iterable[str]], handler: Handler,
                     priority: int = DEFAULT_PRIORITY):
        """Run ``handler`` before the named commands change the diagram."""
        self._on(commands, "preExecuted", handler, priority)

    def post_executed(self, commands: Union[str, Iterable[str]], handler: Handler,
                      priority: int = DEFAULT_PRIORITY):
        """Run ``handler`` after the named commands changed the diagram."""
        self._on(commands, "postExecuted", handler, priority)
