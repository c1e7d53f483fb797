"""In-process TTL cache for per-species media lookups."""

import logging
import time
from collections.abc import Callable
from typing import Generic, TypeVar

logger = logging.getLogger(__name__)

V = TypeVar("V")


class TTLCache(Generic[V]):
    """Key/value cache whose entries expire a fixed time after being written.

    An entry is still valid at exactly ``ttl`` seconds old.
    Expired entries are evicted lazily on read. There is no size bound; the
    key space is the set of species a user has looked at.
    """

    def __init__(self, ttl: float, clock: Callable[[], float] = time.monotonic) -> None:
        """Initialize an empty cache.

        Args:
            ttl: Entry lifetime in seconds
            clock: Monotonic time source, injectable for tests
        """
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[float, V]] = {}
        self._stats = {"hits": 0, "misses": 0, "sets": 0, "expired": 0}

    def get(self, key: str) -> V | None:
        """Return the cached value, or None when absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            self._stats["misses"] += 1
            return None

        expires_at, value = entry
        if self._clock() > expires_at:
            del self._entries[key]
            self._stats["expired"] += 1
            self._stats["misses"] += 1
            logger.debug("Cache entry expired: %s", key)
            return None

        self._stats["hits"] += 1
        return value

    def set(self, key: str, value: V) -> None:
        """Store a value, replacing any previous entry and restarting its TTL."""
        self._entries[key] = (self._clock() + self.ttl, value)
        self._stats["sets"] += 1

    def clear(self) -> None:
        """Drop every entry."""
        count = len(self._entries)
        self._entries.clear()
        logger.debug("Cleared %d cache entries", count)

    def get_stats(self) -> dict[str, int]:
        """Return hit/miss counters and the current entry count."""
        return {**self._stats, "entries": len(self._entries)}

    def __contains__(self, key: str) -> bool:
        """Return whether an unexpired entry exists, without counting a hit."""
        entry = self._entries.get(key)
        return entry is not None and self._clock() <= entry[0]

    def __len__(self) -> int:
        """Return the number of stored entries, expired or not."""
        return len(self._entries)
