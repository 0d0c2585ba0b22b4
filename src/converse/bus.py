"""Topic based publish/subscribe."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
import inspect
import logging
import threading
from typing import Any


logger = logging.getLogger(__name__)

type PublishContext = dict[str, Any]
"""Mutable mapping shared by all callbacks of a single publication."""

type Subscriber = Callable[[Any, PublishContext], Any]
type AsyncSubscriber = Callable[[Any, PublishContext], Awaitable[Any] | Any]


class TopicBus:
    """Fan out published data to the callbacks subscribed to a topic.

    Callbacks are invoked in subscription order with the published data and
    a context dict that is fresh for every publication. Earlier callbacks can
    leave information in the context for later ones. Exceptions raised by a
    callback are not caught and stop the remaining fan-out.

    Example:
        bus = TopicBus()

        def on_ready(data, context):
            context["seen"] = True

        bus.subscribe("ready", on_ready)
        bus.publish("ready", {"id": 1})
    """

    __slots__ = ("_lock", "_subscribers")

    def __init__(self) -> None:
        self._subscribers: dict[str, list[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe[F: Subscriber](self, topic: str, callback: F) -> F:
        """Append callback to the topic. The same callback may be added twice."""
        with self._lock:
            self._subscribers.setdefault(topic, []).append(callback)
        return callback

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        """Remove every occurrence of callback from topic. Unknown callbacks are ignored."""
        with self._lock:
            callbacks = self._subscribers.get(topic)
            if not callbacks:
                return
            remaining = [cb for cb in callbacks if cb is not callback]
            if remaining:
                self._subscribers[topic] = remaining
            else:
                del self._subscribers[topic]

    def subscribers(self, topic: str) -> list[Subscriber]:
        """Snapshot of the callbacks currently subscribed to topic."""
        with self._lock:
            return list(self._subscribers.get(topic, ()))

    def publish(self, topic: str, data: Any = None) -> None:
        """Synchronously call every subscriber of topic.

        Raises:
            TypeError: If a subscriber returns an awaitable. Use apublish for
                async subscribers.
        """
        callbacks = self.subscribers(topic)
        if not callbacks:
            return
        context: PublishContext = {}
        logger.debug("Publishing %r to %d subscriber(s)", topic, len(callbacks))
        for callback in callbacks:
            result = callback(data, context)
            if inspect.isawaitable(result):
                if inspect.iscoroutine(result):
                    result.close()
                msg = f"Subscriber {callback!r} of topic {topic!r} is async, use apublish"
                raise TypeError(msg)

    async def apublish(self, topic: str, data: Any = None) -> None:
        """Call every subscriber of topic, awaiting async ones sequentially."""
        callbacks: list[AsyncSubscriber] = self.subscribers(topic)
        if not callbacks:
            return
        context: PublishContext = {}
        logger.debug("Publishing %r to %d subscriber(s)", topic, len(callbacks))
        for callback in callbacks:
            result = callback(data, context)
            if inspect.isawaitable(result):
                await result

    def clear(self) -> None:
        """Drop all subscriptions."""
        with self._lock:
            self._subscribers.clear()
