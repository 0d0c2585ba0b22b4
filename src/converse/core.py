"""Converse: process-local signals and topics for loosely coupled components."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Self

from pydantic import ValidationError

from converse.bus import TopicBus
from converse.config import DEFAULT_MAX_SIGNALS, ConverseConfig
from converse.exceptions import InvalidConfigurationError
from converse.registry import DEFAULT_KEY, SignalRegistry
from converse.timeouts import await_future, wait_future


if TYPE_CHECKING:
    from concurrent.futures import Future

    from converse.bus import Subscriber


class Converse:
    """Coordinator owning a bounded signal registry and a topic bus.

    Signals are one-shot: a key resolves once and every waiter, earlier or
    later, gets the same value. Topics are fire-and-forget: only callbacks
    subscribed at publish time are notified.

    Example:
        converse = Converse(max_signals=100)

        async def consumer():
            config = await converse.wait("config-loaded", timeout=5)

        converse.signal("config-loaded", {"debug": True})
    """

    def __init__(self, max_signals: int = DEFAULT_MAX_SIGNALS) -> None:
        try:
            self.config = ConverseConfig(max_signals=max_signals)
        except ValidationError as e:
            msg = f"Invalid converse configuration: max_signals={max_signals!r}"
            raise InvalidConfigurationError(msg) from e
        self._registry = SignalRegistry(self.config.max_signals)
        self._bus = TopicBus()

    @classmethod
    def from_config(cls, config: ConverseConfig) -> Self:
        return cls(max_signals=config.max_signals)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(max_signals={self.config.max_signals})"

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, key: object) -> bool:
        return key in self._registry

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        self.close()

    # Signals

    def signal(self, key: str = DEFAULT_KEY, data: Any = None) -> None:
        """Resolve a signal, waking up everyone waiting for it.

        Signaling a key nobody waits for yet records the value, so later
        waiters receive it immediately.

        Args:
            key: Signal key.
            data: Value handed to the waiters.

        Raises:
            DuplicateSignalError: If the key was already signaled and has not
                been evicted since.
        """
        self._registry.signal(key, data)

    def future(self, key: str = DEFAULT_KEY) -> Future[Any]:
        """Return the future shared by all waiters of key.

        The future cannot be cancelled, so handing it out never affects other
        waiters or a later `signal`.
        """
        return self._registry.future(key)

    async def wait(self, key: str = DEFAULT_KEY, timeout: float | None = None) -> Any:
        """Wait until key gets signaled and return its data.

        Args:
            key: Signal key.
            timeout: Deadline in seconds. None or 0 waits forever.

        Raises:
            SignalTimeoutError: If the deadline elapsed first. The signal
                itself is unaffected and other waiters still get its value.
        """
        return await await_future(self._registry.loop_future(key), timeout, key=key)

    def wait_sync(self, key: str = DEFAULT_KEY, timeout: float | None = None) -> Any:
        """Blocking version of wait, for callers running in plain threads."""
        return wait_future(self._registry.future(key), timeout, key=key)

    def is_resolved(self, key: str = DEFAULT_KEY) -> bool:
        """Check whether key has been signaled (and not evicted since)."""
        return self._registry.is_resolved(key)

    # Topics

    def subscribe[F: Subscriber](self, topic: str, callback: F) -> F:
        """Call callback(data, context) on every publication to topic."""
        return self._bus.subscribe(topic, callback)

    def unsubscribe(self, topic: str, callback: Subscriber) -> None:
        """Stop delivering publications of topic to callback."""
        self._bus.unsubscribe(topic, callback)

    def publish(self, topic: str, data: Any = None) -> None:
        """Deliver data to all current subscribers of topic, in order."""
        self._bus.publish(topic, data)

    async def apublish(self, topic: str, data: Any = None) -> None:
        """Like publish, but awaits subscribers returning awaitables."""
        await self._bus.apublish(topic, data)

    def subscribers(self, topic: str) -> list[Subscriber]:
        return self._bus.subscribers(topic)

    def close(self) -> None:
        """Release all signals and subscriptions."""
        self._registry.clear()
        self._bus.clear()
