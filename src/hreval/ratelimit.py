"""Rate limiters injected into pipeline stages."""

from __future__ import annotations

import asyncio
import time
from typing import Awaitable, Callable, Protocol, runtime_checkable

Sleep = Callable[[float], Awaitable[None]]


@runtime_checkable
class RateLimiter(Protocol):
    async def wait(self, label: str = "") -> None:
        """Suspend until the next external call may proceed."""


class NoopRateLimiter:
    """Never waits."""

    async def wait(self, label: str = "") -> None:
        return None


class FixedDelayRateLimiter:
    """Pauses for the same delay on every call to ``wait``."""

    def __init__(self, delay: float, *, sleep: Sleep = asyncio.sleep) -> None:
        self._delay = delay
        self._sleep = sleep

    async def wait(self, label: str = "") -> None:
        await self._sleep(self._delay)


class MinIntervalRateLimiter:
    """Enforces a minimum interval between successive calls to ``wait``.

    The clock and sleep function are injectable so tests run without delays.
    """

    def __init__(
        self,
        min_interval: float,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Sleep = asyncio.sleep,
    ) -> None:
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_call: float | None = None
        self._lock = asyncio.Lock()

    async def wait(self, label: str = "") -> None:
        async with self._lock:
            if self._last_call is not None:
                remaining = self._min_interval - (self._clock() - self._last_call)
                if remaining > 0:
                    await self._sleep(remaining)
            self._last_call = self._clock()


def build_rate_limiter(delay: float, *, sleep: Sleep = asyncio.sleep) -> RateLimiter:
    """Fixed pause between pipeline steps; a non-positive delay disables it."""
    if delay <= 0:
        return NoopRateLimiter()
    return FixedDelayRateLimiter(delay, sleep=sleep)


def build_interval_limiter(min_interval: float, *, sleep: Sleep = asyncio.sleep) -> RateLimiter:
    if min_interval <= 0:
        return NoopRateLimiter()
    return MinIntervalRateLimiter(min_interval, sleep=sleep)
