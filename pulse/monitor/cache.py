"""
List Cache

Short-lived in-process cache for paginated check listings.
"""

from __future__ import annotations

import time
from typing import Any, Callable

import structlog

logger = structlog.get_logger(__name__)

CACHE_KEY_PREFIX = "checks_list:"


class ListCache:
    """
    Caches list responses for a few seconds.

    Only list reads go through here. Any mutation must call invalidate()
    before returning to its caller, so a reader never sees a list older
    than the latest write plus the TTL.
    """

    def __init__(
        self,
        ttl_seconds: float = 10.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}

    @staticmethod
    def build_key(page: int, limit: int) -> str:
        return f"{CACHE_KEY_PREFIX}p{page}:l{limit}"

    def get(self, key: str) -> Any | None:
        """Get a cached value, or None on miss or expiry."""
        entry = self._entries.get(key)
        if entry is None:
            return None

        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None

        logger.debug("Cache hit", key=key)
        return value

    def set(self, key: str, value: Any) -> None:
        if self._ttl <= 0:
            return
        self._entries[key] = (self._clock() + self._ttl, value)

    def invalidate(self) -> None:
        """Drop every cached listing."""
        if self._entries:
            logger.debug("Cache invalidated", keys=len(self._entries))
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
