from __future__ import annotations

import asyncio
from typing import List, Optional

from scout_engine.discovery.types import DiscoveryBatch


class DiscoverySubscription:
    """Async iterator over batches published after the subscription was created."""

    def __init__(self, feed: "DiscoveryFeed") -> None:
        self._feed = feed
        self._queue: asyncio.Queue[Optional[DiscoveryBatch]] = asyncio.Queue()
        self.closed = False

    def _push(self, batch: Optional[DiscoveryBatch]) -> None:
        self._queue.put_nowait(batch)

    def __aiter__(self) -> "DiscoverySubscription":
        return self

    async def __anext__(self) -> DiscoveryBatch:
        if self.closed and self._queue.empty():
            raise StopAsyncIteration
        item = await self._queue.get()
        if item is None:
            self.closed = True
            raise StopAsyncIteration
        return item

    def close(self) -> None:
        if not self.closed:
            self._feed.unsubscribe(self)
            self._push(None)


class DiscoveryFeed:
    """Fan-out of discovery batches to any number of subscribers."""

    def __init__(self) -> None:
        self._subscribers: List[DiscoverySubscription] = []
        self.published = 0

    def subscribe(self) -> DiscoverySubscription:
        subscription = DiscoverySubscription(self)
        self._subscribers.append(subscription)
        return subscription

    def unsubscribe(self, subscription: DiscoverySubscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.remove(subscription)

    def publish(self, batch: DiscoveryBatch) -> None:
        self.published += 1
        for subscription in list(self._subscribers):
            subscription._push(batch)

    def close(self) -> None:
        for subscription in list(self._subscribers):
            subscription.close()


__all__ = ["DiscoveryFeed", "DiscoverySubscription"]
