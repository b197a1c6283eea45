"""
Event system for clonup-editor.

The rendering surface posts typed events to an EventChannel; the
controller and session subscribe through an AsyncEventEmitter.
"""

from .bus import (
    AsyncEventEmitter,
    Event,
    EventFilter,
    EventHandler,
    EventPriority,
    EventType,
    HandlerEntry,
)
from .channel import EventChannel
from .types import (
    ComponentDroppedEvent,
    ElementMovedEvent,
    ElementSelectedEvent,
    SelectionChangedEvent,
)

__all__ = [
    "AsyncEventEmitter",
    "Event",
    "EventFilter",
    "EventHandler",
    "EventPriority",
    "EventType",
    "HandlerEntry",
    "EventChannel",
    "ComponentDroppedEvent",
    "ElementMovedEvent",
    "ElementSelectedEvent",
    "SelectionChangedEvent",
]
