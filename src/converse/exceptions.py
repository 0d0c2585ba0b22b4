"""Exceptions raised by converse."""

from __future__ import annotations


class ConverseError(Exception):
    """Base class for all converse errors."""


class InvalidConfigurationError(ConverseError, ValueError):
    """Raised when a Converse instance is constructed with invalid settings."""


class DuplicateSignalError(ConverseError):
    """Raised when a key gets signaled a second time."""

    def __init__(self, key: str) -> None:
        super().__init__(f"Signal with key {key} has already been resolved")
        self.key = key


class SignalTimeoutError(ConverseError, TimeoutError):
    """Raised when a waiter's deadline elapses before its signal resolves."""

    def __init__(self, key: str | None, timeout: float) -> None:
        target = f"signal {key}" if key is not None else "a signal"
        super().__init__(f"A timeout occurred while waiting for {target} to resolve")
        self.key = key
        self.timeout = timeout
