"""
Ordered message channel from the rendering surface to the controller.

Messages are fire-and-forget: the surface posts without waiting and the
controller consumes them in posting order. There is no acknowledgement.
"""

import asyncio
import logging
from typing import Optional

from .bus import AsyncEventEmitter, Event

logger = logging.getLogger(__name__)


class EventChannel:
    """FIFO queue delivering surface messages to an emitter."""

    def __init__(self, emitter: Optional[AsyncEventEmitter] = None) -> None:
        self.emitter = emitter or AsyncEventEmitter()
        self._queue: asyncio.Queue[Event] = asyncio.Queue()

    def post(self, event: Event) -> None:
        """Queue an event without waiting for it to be handled."""
        self._queue.put_nowait(event)

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    async def drain(self) -> int:
        """Deliver every queued event in order.

        Returns:
            Number of events delivered.
        """
        delivered = 0
        while not self._queue.empty():
            event = self._queue.get_nowait()
            try:
                await self.emitter.emit(event)
            finally:
                self._queue.task_done()
            delivered += 1
        return delivered

    async def run(self) -> None:
        """Deliver events forever; cancel the task to stop."""
        while True:
            event = await self._queue.get()
            try:
                await self.emitter.emit(event)
            finally:
                self._queue.task_done()
