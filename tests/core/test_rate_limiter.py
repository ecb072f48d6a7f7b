from __future__ import annotations

import pytest

from hreval.ratelimit import (
    FixedDelayRateLimiter,
    MinIntervalRateLimiter,
    NoopRateLimiter,
    build_interval_limiter,
    build_rate_limiter,
)


class FakeClock:
    def __init__(self) -> None:
        self.now = 100.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_first_call_does_not_wait():
    clock = FakeClock()
    limiter = MinIntervalRateLimiter(2.5, clock=clock, sleep=clock.sleep)
    await limiter.wait("scoring")
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_waits_only_for_remaining_interval():
    clock = FakeClock()
    limiter = MinIntervalRateLimiter(2.5, clock=clock, sleep=clock.sleep)

    await limiter.wait("scoring")
    clock.now += 1.0
    await limiter.wait("recommendation")
    clock.now += 5.0
    await limiter.wait("scoring")

    assert clock.sleeps == [pytest.approx(1.5)]


@pytest.mark.asyncio
async def test_fixed_delay_waits_on_every_call():
    clock = FakeClock()
    limiter = build_rate_limiter(2.5, sleep=clock.sleep)

    await limiter.wait("scoring")
    await limiter.wait("recommendation")

    assert isinstance(limiter, FixedDelayRateLimiter)
    assert clock.sleeps == [2.5, 2.5]


def test_builders_disable_zero_delay():
    assert isinstance(build_rate_limiter(0), NoopRateLimiter)
    assert isinstance(build_interval_limiter(0), NoopRateLimiter)
    assert isinstance(build_interval_limiter(0.5), MinIntervalRateLimiter)
