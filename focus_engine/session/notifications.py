"""
Notification bus — best-effort pub/sub for scheduler events.

Delivery is at-most-once: listeners that are absent, slow, or raising simply
miss the event. Nothing is queued for redelivery.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

Listener = Callable[[Dict[str, Any]], None]


class NotificationBus:

    def __init__(self):
        self._listeners: List[Listener] = []
        self._queues: Dict[asyncio.Queue, Listener] = {}

    def register_listener(self, fn: Listener) -> None:
        """Register a callback(event) called for every published event."""
        self._listeners.append(fn)

    def unregister_listener(self, fn: Listener) -> None:
        if fn in self._listeners:
            self._listeners.remove(fn)

    def subscribe_queue(self, maxsize: int = 100) -> "asyncio.Queue[Dict[str, Any]]":
        """Return a queue fed with events; full queues drop new events."""
        queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

        def _put(event: Dict[str, Any]) -> None:
            try:
                queue.put_nowait(event)
            except asyncio.QueueFull:
                logger.debug("Dropping %s event for slow subscriber", event.get("event"))

        self._queues[queue] = _put
        self.register_listener(_put)
        return queue

    def unsubscribe_queue(self, queue: asyncio.Queue) -> None:
        listener = self._queues.pop(queue, None)
        if listener is not None:
            self.unregister_listener(listener)

    def publish(self, event: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event)
            except Exception:
                logger.debug("Listener failed for %s event", event.get("event"), exc_info=True)

    @property
    def listener_count(self) -> int:
        return len(self._listeners)
