"""Bounded registry of one-shot signals."""

from __future__ import annotations

import asyncio
from concurrent.futures import Future
from dataclasses import dataclass, field
import logging
import threading
import time
from typing import Any, Literal

from converse.exceptions import DuplicateSignalError, InvalidConfigurationError


logger = logging.getLogger(__name__)

DEFAULT_KEY = "__default__"

type SignalState = Literal["pending", "resolved"]


@dataclass(slots=True)
class SignalEntry:
    """State of a single signal key."""

    key: str
    future: Future[Any] = field(default_factory=Future)
    timestamp: int = field(default_factory=time.monotonic_ns)
    state: SignalState = "pending"
    value: Any = None
    loop_futures: dict[asyncio.AbstractEventLoop, asyncio.Future[Any]] = field(
        default_factory=dict, repr=False
    )

    def __post_init__(self) -> None:
        # A running future cannot be cancelled by the callers it is handed to.
        self.future.set_running_or_notify_cancel()

    @property
    def resolved(self) -> bool:
        return self.state == "resolved"

    def loop_future(self) -> asyncio.Future[Any]:
        """Mirror of the shared future on the running event loop.

        Pending futures are mirrored once per loop, so repeated waits (for
        example after timeouts) do not pile up callbacks on the shared future.
        """
        loop = asyncio.get_running_loop()
        if self.future.done():
            done = loop.create_future()
            done.set_result(self.future.result())
            return done
        mirror = self.loop_futures.get(loop)
        if mirror is None or mirror.cancelled():
            for closed in [lp for lp in self.loop_futures if lp.is_closed()]:
                del self.loop_futures[closed]
            mirror = asyncio.wrap_future(self.future, loop=loop)
            self.loop_futures[loop] = mirror
        return mirror


class SignalRegistry:
    """Maps keys to signal entries, resolving each key at most once.

    The registry keeps at most `max_signals` entries. Inserting a new key
    into a full registry evicts the entry with the oldest timestamp. Waiters
    holding the future of an evicted pending entry are never resolved by
    the registry; they only settle through their own timeout.
    """

    __slots__ = ("_entries", "_lock", "max_signals")

    def __init__(self, max_signals: int) -> None:
        if max_signals < 1:
            msg = f"max_signals must be at least 1, got {max_signals}"
            raise InvalidConfigurationError(msg)
        self.max_signals = max_signals
        self._entries: dict[str, SignalEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str) -> SignalEntry | None:
        """Return the entry for key without creating one."""
        with self._lock:
            return self._entries.get(key)

    def signal(self, key: str = DEFAULT_KEY, data: Any = None) -> None:
        """Resolve key with data, or record it as resolved if nobody waits yet.

        Raises:
            DuplicateSignalError: If key has already been resolved.
        """
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                entry = SignalEntry(key, state="resolved", value=data)
                entry.future.set_result(data)
                self._insert(entry)
                logger.debug("Recorded signal %r before any waiter", key)
                return
            if entry.resolved:
                raise DuplicateSignalError(key)
            entry.state = "resolved"
            entry.value = data
            future = entry.future
        # Done callbacks run here, never while holding the lock.
        future.set_result(data)
        logger.debug("Resolved pending signal %r", key)

    def future(self, key: str = DEFAULT_KEY) -> Future[Any]:
        """Return the shared future for key, creating a pending entry if needed.

        The future is in running state, so `cancel()` on it is a no-op.
        """
        with self._lock:
            return self._get_or_create(key).future

    def loop_future(self, key: str = DEFAULT_KEY) -> asyncio.Future[Any]:
        """Like future, but returns its mirror on the running event loop."""
        with self._lock:
            return self._get_or_create(key).loop_future()

    def is_resolved(self, key: str = DEFAULT_KEY) -> bool:
        """Check whether key is currently retained and resolved."""
        entry = self.get(key)
        return entry is not None and entry.resolved

    def clear(self) -> None:
        """Drop all entries. Pending waiters are left unresolved."""
        with self._lock:
            self._entries.clear()

    def _get_or_create(self, key: str) -> SignalEntry:
        """Return the entry for key, inserting a pending one. Caller holds the lock."""
        entry = self._entries.get(key)
        if entry is None:
            entry = SignalEntry(key)
            self._insert(entry)
            logger.debug("Created pending signal %r", key)
        return entry

    def _insert(self, entry: SignalEntry) -> None:
        """Insert a new entry, evicting the oldest one at capacity. Caller holds the lock."""
        if len(self._entries) >= self.max_signals:
            self._evict_oldest(exclude=entry.key)
        self._entries[entry.key] = entry

    def _evict_oldest(self, exclude: str) -> None:
        candidates = (e for e in self._entries.values() if e.key != exclude)
        oldest = min(candidates, key=lambda e: e.timestamp, default=None)
        if oldest is None:
            return
        del self._entries[oldest.key]
        if oldest.resolved:
            logger.debug("Evicted signal %r", oldest.key)
        else:
            logger.warning(
                "Evicted pending signal %r, its waiters will never be resolved",
                oldest.key,
            )
