"""Converse: process-local coordination through signals and topics.

Components that do not know about each other can wait for one-shot
signals (observable even after they fired) and subscribe to topics.

Example:
    converse = Converse()

    async def worker():
        data = await converse.wait("ready", timeout=1.0)

    converse.signal("ready", {"port": 8080})
"""

from __future__ import annotations

from converse.bus import PublishContext, Subscriber, TopicBus
from converse.config import DEFAULT_MAX_SIGNALS, ConverseConfig
from converse.core import Converse
from converse.exceptions import (
    ConverseError,
    DuplicateSignalError,
    InvalidConfigurationError,
    SignalTimeoutError,
)
from converse.registry import DEFAULT_KEY, SignalEntry, SignalRegistry
from converse.timeouts import await_future, wait_future

__all__ = [
    "DEFAULT_KEY",
    "DEFAULT_MAX_SIGNALS",
    "Converse",
    "ConverseConfig",
    "ConverseError",
    "DuplicateSignalError",
    "InvalidConfigurationError",
    "PublishContext",
    "SignalEntry",
    "SignalRegistry",
    "SignalTimeoutError",
    "Subscriber",
    "TopicBus",
    "await_future",
    "wait_future",
]

__version__ = "0.1.0"
