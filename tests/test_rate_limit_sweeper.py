"""Tests for background eviction of expired rate limit records."""

import asyncio

import pytest

from bridge.app.core.clock import ManualClock
from bridge.app.middleware.rate_limit import FixedWindowRateLimiter
from bridge.app.middleware.rate_limit.sweeper import RateLimitSweeper


@pytest.fixture
def clock():
    return ManualClock(start=1000.0)


@pytest.fixture
def limiter(clock):
    return FixedWindowRateLimiter(clock=clock, window_seconds=60)


@pytest.mark.asyncio
async def test_sweep_once_removes_expired(limiter, clock):
    await limiter.admit("a", 5)
    await limiter.admit("b", 5)
    clock.advance(61)
    await limiter.admit("c", 5)

    removed = await RateLimitSweeper(limiter).sweep_once()

    assert removed == 2
    assert len(limiter.store) == 1


@pytest.mark.asyncio
async def test_background_task_sweeps_periodically(limiter, clock):
    await limiter.admit("a", 5)
    clock.advance(61)
    sweeper = RateLimitSweeper(limiter, interval_seconds=0.01)

    await sweeper.start()
    try:
        for _ in range(100):
            if len(limiter.store) == 0:
                break
            await asyncio.sleep(0.01)
    finally:
        await sweeper.stop()

    assert len(limiter.store) == 0


@pytest.mark.asyncio
async def test_start_and_stop_are_idempotent(limiter):
    sweeper = RateLimitSweeper(limiter, interval_seconds=30)

    await sweeper.start()
    await sweeper.start()
    assert sweeper.running is True

    await sweeper.stop()
    await sweeper.stop()
    assert sweeper.running is False


@pytest.mark.asyncio
async def test_non_positive_interval_disables_sweeper(limiter):
    sweeper = RateLimitSweeper(limiter, interval_seconds=0)

    await sweeper.start()

    assert sweeper.running is False
