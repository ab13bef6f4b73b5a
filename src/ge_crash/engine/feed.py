"""TickFeed — one producer, many subscribers.

Each subscriber owns a bounded asyncio.Queue. publish() never awaits: when a
subscriber's queue is full its oldest tick is dropped, so a slow websocket
can fall behind but can never stall the round.
"""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from src.ge_crash.domain.models import Tick

logger = logging.getLogger(__name__)

DEFAULT_QUEUE_SIZE = 64


class TickFeed:
    def __init__(self, queue_size: int = DEFAULT_QUEUE_SIZE) -> None:
        self._queue_size = queue_size
        self._subscribers: set[asyncio.Queue[Tick]] = set()
        self.dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def add_subscriber(self) -> asyncio.Queue[Tick]:
        queue: asyncio.Queue[Tick] = asyncio.Queue(maxsize=self._queue_size)
        self._subscribers.add(queue)
        return queue

    def remove_subscriber(self, queue: asyncio.Queue[Tick]) -> None:
        self._subscribers.discard(queue)

    @asynccontextmanager
    async def subscription(self) -> AsyncIterator[asyncio.Queue[Tick]]:
        queue = self.add_subscriber()
        try:
            yield queue
        finally:
            self.remove_subscriber(queue)

    def publish(self, tick: Tick) -> None:
        for queue in self._subscribers:
            if queue.full():
                queue.get_nowait()
                self.dropped += 1
            queue.put_nowait(tick)
