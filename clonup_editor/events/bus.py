"""
Async event emitter for clonup-editor.

Provides async/await support for event handling with typed events,
priorities and event filtering. Every editing session owns its own
emitter; there is no process-wide bus.
"""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

logger = logging.getLogger(__name__)

# Handlers may be plain functions or coroutine functions
EventHandler = Callable[..., Any]
EventFilter = Callable[["Event"], bool]


class EventPriority(int, Enum):
    """Priority levels for event handlers."""

    LOW = 0
    NORMAL = 50
    HIGH = 100


class EventType(str, Enum):
    """Event types exchanged between the editing components."""

    # Rendering surface -> controller
    ELEMENT_SELECTED = "element.selected"
    ELEMENT_MOVED = "element.moved"
    COMPONENT_DROPPED = "component.dropped"

    # Controller
    SELECTION_CHANGED = "selection.changed"
    SELECTION_CLEARED = "selection.cleared"
    ELEMENT_REMOVED = "element.removed"

    # Session lifecycle
    DOCUMENT_LOADED = "document.loaded"
    DOCUMENT_SAVED = "document.saved"
    SAVE_FAILED = "document.save_failed"
    SCRIPTS_UPDATED = "scripts.updated"

    # Custom domain workflow
    DOMAIN_PENDING = "domain.pending"
    DOMAIN_VERIFIED = "domain.verified"
    DOMAIN_CLOSED = "domain.closed"


@dataclass
class Event:
    """Base event class with timestamp support and propagation control."""

    type: EventType
    data: Any = None
    timestamp: float = field(default_factory=time.time)
    source: Optional[str] = None
    propagation_stopped: bool = field(default=False, repr=False)

    def stop_propagation(self) -> None:
        """Stop the event from propagating to other handlers."""
        self.propagation_stopped = True


@dataclass
class HandlerEntry:
    """A registered handler with its priority, filter and one-shot flag."""

    handler: EventHandler
    priority: EventPriority = EventPriority.NORMAL
    filter: Optional[EventFilter] = None
    once: bool = False

    def matches(self, event: Event) -> bool:
        """Check if this handler should handle the event."""
        if self.filter is None:
            return True
        try:
            return self.filter(event)
        except Exception as e:
            logger.warning(f"Event filter error, delivering anyway: {e}")
            return True


def _key(event: Union[str, EventType]) -> str:
    return event.value if isinstance(event, EventType) else event


class AsyncEventEmitter:
    """Delivers events to sync and async handlers in priority order.

    Handlers registered with ``once`` are dropped before their first
    call. A handler may call ``event.stop_propagation()`` to skip the
    remaining ones.
    """

    def __init__(self) -> None:
        self._handlers: dict[str, list[HandlerEntry]] = {}
        self._error_handler: Optional[Callable[[Exception, str], None]] = None

    def _register(self, event: Union[str, EventType], entry: HandlerEntry) -> "AsyncEventEmitter":
        entries = self._handlers.setdefault(_key(event), [])
        entries.append(entry)
        entries.sort(key=lambda e: e.priority, reverse=True)
        return self

    def on(
        self,
        event: Union[str, EventType],
        handler: EventHandler,
        *,
        priority: EventPriority = EventPriority.NORMAL,
        filter: Optional[EventFilter] = None,
    ) -> "AsyncEventEmitter":
        """Register a handler.

        Args:
            event: Event type to listen for.
            handler: Sync or async callable taking the event.
            priority: Higher runs first.
            filter: Predicate the event must satisfy.

        Returns:
            Self for chaining.
        """
        return self._register(event, HandlerEntry(handler, priority, filter))

    def once(
        self,
        event: Union[str, EventType],
        handler: EventHandler,
        *,
        priority: EventPriority = EventPriority.NORMAL,
    ) -> "AsyncEventEmitter":
        return self._register(event, HandlerEntry(handler, priority, once=True))

    def off(
        self,
        event: Union[str, EventType],
        handler: Optional[EventHandler] = None,
    ) -> "AsyncEventEmitter":
        """Remove a handler, or every handler for the event when None."""
        key = _key(event)
        if handler is None:
            self._handlers.pop(key, None)
        elif key in self._handlers:
            self._handlers[key] = [e for e in self._handlers[key] if e.handler != handler]
        return self

    def set_error_handler(self, handler: Callable[[Exception, str], None]) -> "AsyncEventEmitter":
        """Route handler exceptions to ``handler(exc, event_key)`` instead of the log."""
        self._error_handler = handler
        return self

    def listener_count(self, event: Union[str, EventType]) -> int:
        return len(self._handlers.get(_key(event), []))

    async def emit(self, event: Event) -> bool:
        """Deliver an event.

        Handler failures are reported and never propagate to the caller.

        Returns:
            True if any handler ran to completion.
        """
        key = _key(event.type)
        entries = self._handlers.get(key, [])
        if any(e.once for e in entries):
            self._handlers[key] = [e for e in entries if not e.once]

        handled = False
        for entry in list(entries):
            if event.propagation_stopped:
                break
            if not entry.matches(event):
                continue
            try:
                result = entry.handler(event)
                if asyncio.iscoroutine(result):
                    await result
                handled = True
            except Exception as e:
                if self._error_handler is not None:
                    self._error_handler(e, key)
                else:
                    logger.error(f"Error in event handler for {key}: {e}")
        return handled

    async def wait_for(
        self,
        event: Union[str, EventType],
        *,
        timeout: Optional[float] = None,
    ) -> Event:
        """Wait for the next event of a type.

        Raises:
            asyncio.TimeoutError: If nothing arrives within ``timeout``.
        """
        future: asyncio.Future = asyncio.get_running_loop().create_future()

        def handler(evt: Event) -> None:
            if not future.done():
                future.set_result(evt)

        self.once(event, handler)
        try:
            return await asyncio.wait_for(future, timeout=timeout)
        except asyncio.TimeoutError:
            self.off(event, handler)
            raise
