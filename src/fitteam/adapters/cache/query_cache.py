"""In-process cache for read views with a staleness window."""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import Any

import structlog

logger = structlog.get_logger()

DEFAULT_TTL_SECONDS = 30.0


class QueryCache:
    """TTL cache keyed by tuples with prefix invalidation.

    Entries older than ``ttl_seconds`` are treated as missing. Mutations
    call ``invalidate`` with the prefix of every view they affect.

    Attributes:
        ttl_seconds: Staleness window.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl_seconds: How long an entry stays fresh.
            clock: Monotonic time source in seconds.
        """
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[tuple[str, ...], tuple[float, Any]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: tuple[str, ...]) -> Any | None:
        """Get a fresh cached value, or None."""
        entry = self._entries.get(key)
        if entry is None:
            return None
        stored_at, value = entry
        if self._clock() - stored_at >= self.ttl_seconds:
            del self._entries[key]
            return None
        logger.debug("query_cache_hit", key=key)
        return value

    def set(self, key: tuple[str, ...], value: Any) -> None:
        """Cache a value."""
        self._entries[key] = (self._clock(), value)

    def invalidate(self, prefix: tuple[str, ...]) -> int:
        """Drop every key starting with ``prefix``."""
        stale = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.debug("query_cache_invalidated", prefix=prefix, count=len(stale))
        return len(stale)

    def clear(self) -> None:
        """Drop everything."""
        self._entries.clear()
