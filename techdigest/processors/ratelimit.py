"""Token bucket shared by the enrichment workers."""

import asyncio
import time
from typing import Awaitable, Callable, Optional


class RateLimiter:
    """Async token bucket.

    Tokens refill at requests_per_minute / 60 per second up to `burst`.
    acquire() is serialized, so concurrent workers together never exceed
    the configured rate.
    """

    def __init__(
        self,
        requests_per_minute: float,
        burst: int = 1,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if requests_per_minute <= 0:
            raise ValueError("requests_per_minute must be positive")
        self.rate = requests_per_minute / 60.0
        self.burst = max(1, burst)
        self._clock = clock
        self._sleep = sleep
        self._tokens = float(self.burst)
        self._updated = clock()
        self._lock: Optional[asyncio.Lock] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None

    def _refill(self) -> None:
        now = self._clock()
        self._tokens = min(self.burst, self._tokens + (now - self._updated) * self.rate)
        self._updated = now

    def _get_lock(self) -> asyncio.Lock:
        # A Lock is bound to the loop it was first used on; keep one per loop
        loop = asyncio.get_running_loop()
        if self._lock is None or self._loop is not loop:
            self._lock = asyncio.Lock()
            self._loop = loop
        return self._lock

    async def acquire(self) -> None:
        async with self._get_lock():
            self._refill()
            while self._tokens < 1:
                await self._sleep((1 - self._tokens) / self.rate)
                self._refill()
            self._tokens -= 1
