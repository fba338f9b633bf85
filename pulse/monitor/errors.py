"""Errors raised by the monitoring core."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for monitoring errors."""


class CheckNotFoundError(MonitorError):
    """Raised when a token or id does not resolve to a check."""

    def __init__(self, key: str | int) -> None:
        self.key = key
        super().__init__(f"Check not found: {key}")


class StorageError(MonitorError):
    """Raised when a read or write against the check store fails.

    Callers may retry; the periodic engine skips the record until its next cycle.
    """


class DeliveryError(MonitorError):
    """Raised by a delivery channel when a summary could not be handed off."""
