"""Race shared signal futures against per-waiter deadlines."""

from __future__ import annotations

import asyncio
import concurrent.futures
from typing import TYPE_CHECKING

from converse.exceptions import SignalTimeoutError


if TYPE_CHECKING:
    from concurrent.futures import Future


def check_timeout(timeout: float | None) -> float | None:
    """Normalize a timeout value. None and 0 both mean "wait forever"."""
    if timeout is None or timeout == 0:
        return None
    if timeout < 0:
        msg = f"timeout must be non-negative, got {timeout}"
        raise ValueError(msg)
    return timeout


async def await_future[T](
    future: asyncio.Future[T],
    timeout: float | None = None,
    *,
    key: str | None = None,
) -> T:
    """Await a future shared by several waiters, optionally bounded by a deadline.

    The future is shielded: when the deadline wins or the waiting task gets
    cancelled, only this caller is affected. The future itself keeps running
    and other waiters still observe its result.

    Args:
        future: Shared future to observe.
        timeout: Deadline in seconds. None or 0 waits forever.
        key: Signal key, used for the error message only.
    """
    timeout = check_timeout(timeout)
    if future.done():
        return future.result()
    waiter = asyncio.shield(future)
    if timeout is None:
        return await waiter
    try:
        return await asyncio.wait_for(waiter, timeout=timeout)
    except TimeoutError as e:
        raise SignalTimeoutError(key, timeout) from e


def wait_future[T](
    future: Future[T],
    timeout: float | None = None,
    *,
    key: str | None = None,
) -> T:
    """Blocking counterpart of await_future for plain threads."""
    timeout = check_timeout(timeout)
    try:
        return future.result(timeout=timeout)
    except concurrent.futures.TimeoutError as e:
        raise SignalTimeoutError(key, timeout or 0.0) from e
