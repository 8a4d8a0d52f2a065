"""
Sliding window rate limiter for outbound weather-station calls.

WindBorne allows 20 requests per rolling 60 s. We keep the timestamps of
recent requests; before each call, timestamps older than the window are
dropped and, if the window is still full, the caller suspends until the
oldest retained request ages out. Callers are never rejected, only delayed.

Admission goes through an asyncio.Lock, which wakes waiters in FIFO order, so
concurrent callers are served in submission order. The wait is a plain
awaitable sleep: cancelling the waiting task abandons its slot in the queue.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from typing import Awaitable, Callable

logger = logging.getLogger(__name__)


def _now_ms() -> float:
    return time.monotonic() * 1000.0


async def _sleep_ms(ms: float) -> None:
    await asyncio.sleep(ms / 1000.0)


class SlidingWindowLimiter:
    """At most `limit` acquisitions within any rolling `window_ms` slice."""

    def __init__(
        self,
        limit: int = 20,
        window_ms: int = 60_000,
        clock: Callable[[], float] = _now_ms,
        sleep: Callable[[float], Awaitable[None]] = _sleep_ms,
    ) -> None:
        if limit < 1:
            raise ValueError("limit must be >= 1")
        self.limit = limit
        self.window_ms = window_ms
        self._clock = clock
        self._sleep = sleep
        self._stamps: deque[float] = deque()
        self._lock = asyncio.Lock()

    @property
    def in_window(self) -> int:
        """Requests currently counted against the window."""
        self._prune(self._clock())
        return len(self._stamps)

    def _prune(self, now: float) -> None:
        while self._stamps and now - self._stamps[0] >= self.window_ms:
            self._stamps.popleft()

    async def acquire(self) -> None:
        """Suspend until a slot is free, then record this request."""
        async with self._lock:
            while True:
                now = self._clock()
                self._prune(now)
                if len(self._stamps) < self.limit:
                    break
                wait_ms = self.window_ms - (now - self._stamps[0])
                logger.info(
                    "Weather rate limit reached (%d/%d), waiting %.0f ms",
                    len(self._stamps),
                    self.limit,
                    wait_ms,
                )
                await self._sleep(wait_ms)
            self._stamps.append(self._clock())
