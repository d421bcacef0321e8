"""Fan-out of dashboard events to push-channel subscribers."""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Iterator

logger = logging.getLogger(__name__)

Event = dict[str, Any]

NEW_TWEET = "new_tweet"
NEW_TRADE = "new_trade"


class Broadcaster:
    """
    In-process publish/subscribe channel.

    Each subscriber owns a bounded queue. ``publish`` never waits: when a
    subscriber's queue is full the event is dropped for that subscriber only.
    """

    def __init__(self, queue_size: int = 100):
        self.queue_size = queue_size
        self._subscribers: set[asyncio.Queue[Event]] = set()
        self.dropped = 0

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    def subscribe(self) -> asyncio.Queue[Event]:
        """Register a new subscriber and return its queue."""
        queue: asyncio.Queue[Event] = asyncio.Queue(maxsize=self.queue_size)
        self._subscribers.add(queue)
        logger.debug(f"Subscriber added (total: {self.subscriber_count})")
        return queue

    def unsubscribe(self, queue: asyncio.Queue[Event]) -> None:
        self._subscribers.discard(queue)
        logger.debug(f"Subscriber removed (total: {self.subscriber_count})")

    @contextmanager
    def subscription(self) -> Iterator[asyncio.Queue[Event]]:
        """Subscribe for the duration of a ``with`` block."""
        queue = self.subscribe()
        try:
            yield queue
        finally:
            self.unsubscribe(queue)

    def publish(self, event: Event) -> int:
        """
        Deliver an event to every subscriber without blocking.

        Args:
            event: JSON-serialisable payload with a ``type`` key

        Returns:
            Number of subscribers the event was queued for
        """
        delivered = 0
        for queue in list(self._subscribers):
            try:
                queue.put_nowait(event)
                delivered += 1
            except asyncio.QueueFull:
                self.dropped += 1
                logger.warning(
                    f"Subscriber queue full ({queue.qsize()}/{queue.maxsize}), "
                    f"dropping {event.get('type')} event"
                )
        return delivered
