"""Discovery caching for the HostBill MCP server.

Memoizes the method list and per-method details fetched from the capability
source so repeated lookups within the TTL (default: 5 minutes) never reach
the network.

A cache belongs to exactly one session. The serve loop is sequential, so the
cache is never accessed concurrently and needs no lock.
"""

from __future__ import annotations

import time
from collections.abc import Awaitable, Callable
from typing import Any, Generic, TypeVar

# Default TTL in seconds (5 minutes)
DEFAULT_TTL = 300.0

METHODS_KEY = "methods"

T = TypeVar("T")


def details_key(method: str) -> str:
    """Cache key for the details of ``method``."""
    return f"details:{method}"


class CacheEntry(Generic[T]):
    """Cached value with the time it was fetched.

    Attributes:
        data: Cached value
        fetched_at: Clock reading when the value was fetched
    """

    __slots__ = ("data", "fetched_at")

    def __init__(self, data: T, fetched_at: float) -> None:
        self.data = data
        self.fetched_at = fetched_at

    def is_fresh(self, now: float, ttl: float) -> bool:
        return now - self.fetched_at < ttl


class DiscoveryCache:
    """Time-bounded memoization of discovery results.

    A read of a fresh entry never calls the fetcher. A read of a missing or
    expired entry calls the fetcher exactly once and stores the result before
    returning it. A failing fetcher leaves no entry behind.

    Example:
        >>> cache = DiscoveryCache(ttl=300.0)
        >>> methods = await cache.get_or_fetch("methods", source.list_methods)
    """

    def __init__(
        self,
        ttl: float = DEFAULT_TTL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """Initialize the cache.

        Args:
            ttl: Seconds an entry stays fresh. Applies to every key.
            clock: Monotonic clock; injectable for tests.
        """
        self._entries: dict[str, CacheEntry[Any]] = {}
        self._ttl = ttl
        self._clock = clock

    @property
    def ttl(self) -> float:
        return self._ttl

    async def get_or_fetch(self, key: str, fetcher: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value for ``key`` or fetch and store a fresh one.

        Args:
            key: Cache key (see METHODS_KEY and details_key()).
            fetcher: Zero-argument coroutine function producing the value.

        Raises:
            Exception: Whatever ``fetcher`` raises; nothing is cached then.
        """
        entry = self._entries.get(key)
        if entry is not None and entry.is_fresh(self._clock(), self._ttl):
            return entry.data  # type: ignore[no-any-return]

        self._entries.pop(key, None)
        data = await fetcher()
        self._entries[key] = CacheEntry(data, self._clock())
        return data

    def peek(self, key: str) -> Any | None:
        """Return the fresh cached value for ``key`` without fetching, else None."""
        entry = self._entries.get(key)
        if entry is None or not entry.is_fresh(self._clock(), self._ttl):
            return None
        return entry.data

    def invalidate(self, key: str) -> None:
        self._entries.pop(key, None)

    def clear(self) -> None:
        """Drop all entries. Used on session reset, never mid-session."""
        self._entries.clear()

    def size(self) -> int:
        return len(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries
