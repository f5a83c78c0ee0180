"""Fan-out of recorder events to connected clients."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Protocol

from loguru import logger

from fideo.schemas import RecorderEvent


class EventPublisher(Protocol):
    def publish(self, event: RecorderEvent) -> None: ...


class EventHub:
    """Keeps one bounded queue per subscriber.

    A subscriber that falls behind loses its oldest events rather than
    blocking the publisher.
    """

    def __init__(self, max_queue: int = 256):
        self.max_queue = max_queue
        self._subscribers: set[asyncio.Queue[RecorderEvent]] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def publish(self, event: RecorderEvent) -> None:
        for queue in list(self._subscribers):
            if queue.full():
                dropped = queue.get_nowait()
                logger.warning(f"Subscriber queue full, dropping {dropped.type} event")
            queue.put_nowait(event)

    @asynccontextmanager
    async def subscribe(self) -> AsyncIterator[asyncio.Queue[RecorderEvent]]:
        queue: asyncio.Queue[RecorderEvent] = asyncio.Queue(maxsize=self.max_queue)
        self._subscribers.add(queue)
        logger.debug(f"Event subscriber added, total={len(self._subscribers)}")
        try:
            yield queue
        finally:
            self._subscribers.discard(queue)
            logger.debug(f"Event subscriber removed, total={len(self._subscribers)}")
