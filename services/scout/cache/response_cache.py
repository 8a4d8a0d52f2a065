"""
Response cache: in-memory, per-entry TTL, keyed by caller-built strings.

Key formats used by the routers:
  stations:v1                 station list            (5 min)
  wx:{station_id}             cleaned station history (2 min)
  flights:{json(params)}      flight search result    (15 min)

Expiry is lazy: an entry past its deadline is removed the next time it is
read. There is no background sweep. Values must be JSON-serializable (the
routers cache the wire shape, not the dataclasses).

get_or_fetch() coalesces concurrent misses: while one fetch for a key is in
flight, later callers await the same task instead of hitting the upstream
again. Failed fetches are never cached.

Single event loop only. Nothing here is safe for mutation from other threads.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


@dataclass
class CacheEntry:
    value: Any
    expires_at_ms: int


class ResponseCache:
    """
    Usage:
        cache = ResponseCache()
        stations = cache.get("stations:v1")
        if stations is None:
            stations = await fetch_stations()
            cache.set("stations:v1", stations, 300_000)

        # or, with coalescing:
        stations = await cache.get_or_fetch("stations:v1", 300_000, fetch_stations)
    """

    def __init__(
        self,
        clock: Callable[[], int] = _now_ms,
        max_entries: int = 0,
    ) -> None:
        """
        Args:
            clock:       Returns the current time in epoch milliseconds.
            max_entries: Capacity bound; 0 keeps the store unbounded. When
                         bounded, the oldest-inserted entry is dropped first.
        """
        self._clock = clock
        self._max_entries = max_entries
        self._store: dict[str, CacheEntry] = {}
        self._inflight: dict[str, asyncio.Task] = {}

    def __len__(self) -> int:
        return len(self._store)

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None on miss / expiry."""
        entry = self._store.get(key)
        if entry is None:
            logger.debug("Response cache miss: %s", key)
            return None
        if self._clock() > entry.expires_at_ms:
            del self._store[key]
            logger.debug("Response cache expired: %s", key)
            return None
        logger.debug("Response cache hit: %s", key)
        return entry.value

    def set(self, key: str, value: Any, ttl_ms: int) -> None:
        # Re-inserting moves the key to the end so eviction order tracks writes.
        self._store.pop(key, None)
        self._store[key] = CacheEntry(value=value, expires_at_ms=self._clock() + ttl_ms)
        if self._max_entries and len(self._store) > self._max_entries:
            oldest = next(iter(self._store))
            del self._store[oldest]
            logger.debug("Response cache full, evicted %s", oldest)

    def invalidate(self, key: str) -> None:
        self._store.pop(key, None)

    def clear(self) -> None:
        self._store.clear()

    async def get_or_fetch(
        self,
        key: str,
        ttl_ms: int,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        """
        Return the cached value for key, fetching it on a miss.

        Concurrent misses for the same key share one fetch. The shared task is
        shielded so a cancelled waiter does not cancel the fetch for the others.
        Exceptions from fetch propagate to every waiter and nothing is stored.
        """
        cached = self.get(key)
        if cached is not None:
            return cached

        task = self._inflight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._fill(key, ttl_ms, fetch))
            self._inflight[key] = task
            task.add_done_callback(lambda _t: self._inflight.pop(key, None))
        else:
            logger.debug("Response cache joined in-flight fetch: %s", key)

        return await asyncio.shield(task)

    async def _fill(
        self,
        key: str,
        ttl_ms: int,
        fetch: Callable[[], Awaitable[Any]],
    ) -> Any:
        value = await fetch()
        self.set(key, value, ttl_ms)
        return value
