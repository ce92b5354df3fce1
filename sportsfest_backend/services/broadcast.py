# sportsfest_backend/services/broadcast.py
# In-process publish/subscribe channel for live match events.
#
# Publishers never wait on subscribers: each subscriber owns a bounded FIFO
# queue, and when it falls behind its oldest queued event is dropped. A
# subscriber therefore never receives an older snapshot after a newer one.

import asyncio
from typing import Any, Dict, Iterable, Optional, Set

from sportsfest_backend.core.config import BROADCAST_QUEUE_SIZE
from sportsfest_backend.core.logger import get_logger

log = get_logger("services.broadcast")

MATCH_UPDATE = "match:update"
MATCH_CREATED = "match:created"
MATCH_DELETED = "match:deleted"

TOPICS = (MATCH_UPDATE, MATCH_CREATED, MATCH_DELETED)


class Subscription:
    """One attached viewer (admin console, public page, test probe...)."""

    def __init__(self, channel: "BroadcastChannel", topics: Iterable[str], maxsize: int):
        self.topics = frozenset(topics)
        self.dropped = 0
        self._channel = channel
        self._queue: asyncio.Queue = asyncio.Queue(maxsize=maxsize)

    def deliver(self, event: Dict[str, Any]) -> None:
        if event["event"] not in self.topics:
            return
        try:
            self._queue.put_nowait(event)
        except asyncio.QueueFull:
            self._queue.get_nowait()
            self._queue.put_nowait(event)
            self.dropped += 1

    async def get(self) -> Dict[str, Any]:
        return await self._queue.get()

    def get_nowait(self) -> Optional[Dict[str, Any]]:
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            return None

    def pending(self) -> int:
        return self._queue.qsize()

    def close(self) -> None:
        self._channel.unsubscribe(self)

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        self.close()

    def __aiter__(self):
        return self

    async def __anext__(self) -> Dict[str, Any]:
        return await self.get()


class BroadcastChannel:
    """
    Topic-based fan-out of match documents.

    Topics:
    - match:update   payload: full match document
    - match:created  payload: full match document
    - match:deleted  payload: {"match_id": id}
    """

    def __init__(self, queue_size: int = BROADCAST_QUEUE_SIZE):
        self._queue_size = queue_size
        self._subscribers: Set[Subscription] = set()

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self, topics: Optional[Iterable[str]] = None) -> Subscription:
        topics = set(topics) if topics else set(TOPICS)
        unknown = topics - set(TOPICS)
        if unknown:
            raise ValueError(f"Unknown broadcast topics: {sorted(unknown)}")

        subscription = Subscription(self, topics, self._queue_size)
        self._subscribers.add(subscription)
        log.info(f"🔌 Subscriber attached ({len(self._subscribers)} connected)")
        return subscription

    def unsubscribe(self, subscription: Subscription) -> None:
        if subscription in self._subscribers:
            self._subscribers.discard(subscription)
            log.info(f"❌ Subscriber detached ({len(self._subscribers)} connected)")

    def publish(self, topic: str, payload: Any) -> int:
        """
        Hand an event to every subscriber of the topic without waiting.
        Returns the number of subscribers the event was queued for.
        """
        if topic not in TOPICS:
            raise ValueError(f"Unknown broadcast topic: {topic}")

        event = {"event": topic, "data": payload}
        delivered = 0
        for subscription in list(self._subscribers):
            if topic not in subscription.topics:
                continue
            dropped_before = subscription.dropped
            subscription.deliver(event)
            if subscription.dropped != dropped_before:
                log.warning(f"Slow subscriber: dropped oldest queued event ({subscription.dropped} so far)")
            delivered += 1
        return delivered
