"""Tests for topic publish/subscribe."""

from __future__ import annotations

from typing import Any
from unittest.mock import Mock

import pytest

from converse import Converse, PublishContext, TopicBus


@pytest.fixture
def bus():
    """Create an empty TopicBus."""
    return TopicBus()


def test_publish_without_subscribers(bus: TopicBus):
    """Test that publishing to an unknown topic is a no-op."""
    bus.publish("nobody-listens", {"x": 1})

    assert bus.subscribers("nobody-listens") == []


def test_fan_out_order_and_shared_context(bus: TopicBus):
    """Test callbacks run in subscription order with one shared context."""
    calls: list[tuple[str, Any, PublishContext]] = []

    def first(data: Any, context: PublishContext) -> None:
        calls.append(("first", data, context))
        context["seen_by_first"] = True

    def second(data: Any, context: PublishContext) -> None:
        calls.append(("second", data, context))

    bus.subscribe("t", first)
    bus.subscribe("t", second)
    data = {"x": 1}
    bus.publish("t", data)

    assert [name for name, _, _ in calls] == ["first", "second"]
    assert calls[0][1] is data
    assert calls[1][1] is data
    assert calls[0][2] is calls[1][2]
    assert calls[1][2] == {"seen_by_first": True}


def test_context_is_fresh_per_publication(bus: TopicBus):
    """Test that context mutations do not leak into the next publication."""
    contexts: list[PublishContext] = []

    def handler(data: Any, context: PublishContext) -> None:
        contexts.append(dict(context))
        context["count"] = context.get("count", 0) + 1

    bus.subscribe("t", handler)
    bus.publish("t")
    bus.publish("t")

    assert contexts == [{}, {}]


def test_duplicate_subscription_called_twice(bus: TopicBus):
    """Test that subscribing the same callback twice delivers twice."""
    handler = Mock()
    bus.subscribe("t", handler)
    bus.subscribe("t", handler)

    bus.publish("t", "payload")

    assert handler.call_count == 2  # noqa: PLR2004


def test_unsubscribe_removes_all_occurrences(bus: TopicBus):
    """Test that unsubscribe stops further deliveries only."""
    handler = Mock()
    other = Mock()
    bus.subscribe("t", handler)
    bus.subscribe("t", other)
    bus.subscribe("t", handler)

    bus.publish("t", 1)
    bus.unsubscribe("t", handler)
    bus.publish("t", 2)

    assert handler.call_count == 2  # noqa: PLR2004
    assert [c.args[0] for c in handler.call_args_list] == [1, 1]
    assert [c.args[0] for c in other.call_args_list] == [1, 2]
    assert bus.subscribers("t") == [other]


def test_unsubscribe_unknown_is_noop(bus: TopicBus):
    """Test that removing an unknown callback or topic does not raise."""
    bus.unsubscribe("missing", Mock())
    bus.subscribe("t", Mock())
    bus.unsubscribe("t", Mock())

    assert len(bus.subscribers("t")) == 1


def test_subscriber_exception_aborts_fan_out(bus: TopicBus):
    """Test that a failing subscriber stops the remaining callbacks."""
    before = Mock()
    failing = Mock(side_effect=ValueError("Handler failed"))
    after = Mock()
    bus.subscribe("t", before)
    bus.subscribe("t", failing)
    bus.subscribe("t", after)

    with pytest.raises(ValueError, match="Handler failed"):
        bus.publish("t", "data")

    before.assert_called_once()
    after.assert_not_called()


def test_subscribe_during_publish_waits_for_next_publication(bus: TopicBus):
    """Test that publish uses the subscriber list as read at call time."""
    late = Mock()

    def registering(data: Any, context: PublishContext) -> None:
        bus.subscribe("t", late)

    bus.subscribe("t", registering)
    bus.publish("t", 1)
    late.assert_not_called()

    bus.publish("t", 2)
    late.assert_called_once()


def test_subscribe_returns_callback(bus: TopicBus):
    handler = Mock()

    assert bus.subscribe("t", handler) is handler


async def test_apublish_awaits_async_subscribers(bus: TopicBus):
    """Test that async subscribers finish before the next one starts."""
    order: list[str] = []

    async def slow(data: Any, context: PublishContext) -> None:
        order.append("slow-start")
        context["slow"] = data
        order.append("slow-end")

    def sync(data: Any, context: PublishContext) -> None:
        order.append(f"sync-{context['slow']}")

    bus.subscribe("t", slow)
    bus.subscribe("t", sync)
    await bus.apublish("t", "x")

    assert order == ["slow-start", "slow-end", "sync-x"]


def test_converse_topics_are_independent_of_signals():
    """Test that topics and signal keys do not interfere."""
    converse = Converse()
    handler = Mock()
    converse.subscribe("ready", handler)

    converse.signal("ready", "signal data")
    converse.publish("ready", "topic data")

    handler.assert_called_once()
    assert handler.call_args.args[0] == "topic data"
    assert converse.is_resolved("ready")


def test_converse_unsubscribe():
    converse = Converse()
    handler = Mock()
    converse.subscribe("t", handler)
    converse.unsubscribe("t", handler)

    converse.publish("t", 1)

    handler.assert_not_called()
    assert converse.subscribers("t") == []


def test_publish_rejects_async_subscriber(bus: TopicBus):
    """Test that publish refuses async subscribers instead of dropping them."""
    after = Mock()

    async def async_handler(data: Any, context: PublishContext) -> None:
        pass

    bus.subscribe("t", async_handler)
    bus.subscribe("t", after)

    with pytest.raises(TypeError, match="use apublish"):
        bus.publish("t", 1)

    after.assert_not_called()
