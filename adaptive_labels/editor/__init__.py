"""
Editor model - diagram state, commands and the behaviors reacting to them.
"""

from .events import CommandEvent, CommandInterceptor, EventBus
from .behavior import AdaptiveLabelPositioningBehavior
from .manager import DiagramManager, create_editor

__all__ = [
    "CommandEvent",
    "CommandInterceptor",
    "EventBus",
    "AdaptiveLabelPositioningBehavior",
    "DiagramManager",
    "create_editor",
]
