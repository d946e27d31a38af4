"""
Best-effort event topics.

Events are delivered only to subscribers connected at publish time. There
is no persistence and no replay: a late subscriber must poll the current
set progress to resynchronize.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 100


class Notifier(Protocol):
    """Publishes JSON-shaped events to a named topic."""

    async def publish(self, topic: str, event: BaseModel) -> None: ...


class InMemoryNotifier:
    """
    In-process topic fan-out.

    Each subscriber gets a bounded queue; when it is full, new events for
    that subscriber are dropped.
    """

    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscribers: dict[str, set[asyncio.Queue[dict]]] = {}

    async def publish(self, topic: str, event: BaseModel) -> None:
        payload = event.model_dump(mode="json")
        queues = self._subscribers.get(topic, set())
        for queue in list(queues):
            try:
                queue.put_nowait(payload)
            except asyncio.QueueFull:
                logger.warning("Dropping event on %s: subscriber queue full", topic)

    @asynccontextmanager
    async def subscribe(self, topic: str) -> AsyncIterator[asyncio.Queue[dict]]:
        """
        Receive events published to `topic` while the context is open.

        Usage:
            async with notifier.subscribe("set_progress:1") as queue:
                event = await queue.get()
        """
        queue: asyncio.Queue[dict] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.setdefault(topic, set()).add(queue)
        try:
            yield queue
        finally:
            subscribers = self._subscribers.get(topic)
            if subscribers is not None:
                subscribers.discard(queue)
                if not subscribers:
                    del self._subscribers[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._subscribers.get(topic, ()))


class NullNotifier:
    """Discards every event."""

    async def publish(self, topic: str, event: BaseModel) -> None:
        return None
