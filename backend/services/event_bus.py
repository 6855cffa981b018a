"""
Real-time event bus — publishes order events to subscribers grouped by topic.

Topics are keyed by order ("order:<id>"). A subscriber is anything with an
async send_json(dict) method (a FastAPI WebSocket in production, a fake in
tests). One EventBus is created per application and handed to the lifecycle
engine through deps.get_side_effects; nothing reaches it through globals.
"""
import asyncio
import logging
from collections import defaultdict
from typing import Any, Protocol

logger = logging.getLogger(__name__)


class Subscriber(Protocol):
    async def send_json(self, data: Any) -> None: ...


class EventBus:
    """In-process topic fan-out with per-topic subscriber sets."""

    def __init__(self):
        self._topics: dict[str, set] = defaultdict(set)
        self._lock = asyncio.Lock()
        self.published_total = 0

    async def subscribe(self, topic: str, subscriber: Subscriber) -> None:
        async with self._lock:
            self._topics[topic].add(subscriber)
        logger.debug(f"Subscriber joined {topic} ({self.subscriber_count(topic)} total)")

    async def unsubscribe(self, topic: str, subscriber: Subscriber) -> None:
        async with self._lock:
            subs = self._topics.get(topic)
            if subs is None:
                return
            subs.discard(subscriber)
            if not subs:
                del self._topics[topic]

    async def unsubscribe_all(self, subscriber: Subscriber) -> None:
        """Drop a subscriber from every topic (e.g. on WebSocket disconnect)."""
        async with self._lock:
            for topic in list(self._topics):
                self._topics[topic].discard(subscriber)
                if not self._topics[topic]:
                    del self._topics[topic]

    def subscriber_count(self, topic: str) -> int:
        return len(self._topics.get(topic, ()))

    async def publish(self, topic: str, event: str, data: dict) -> int:
        """
        Send {"event", "data"} to every subscriber of the topic.

        Subscribers whose send fails are dropped. Returns the number of
        subscribers that received the event.
        """
        async with self._lock:
            targets = list(self._topics.get(topic, ()))

        message = {"event": event, "data": data}
        delivered = 0
        dead = []
        for sub in targets:
            try:
                await sub.send_json(message)
                delivered += 1
            except Exception as e:
                logger.warning(f"Dropping subscriber on {topic}: {e}")
                dead.append(sub)

        for sub in dead:
            await self.unsubscribe(topic, sub)

        self.published_total += 1
        return delivered
