import asyncio

import pytest

from agent_chat.infrastructure.bedrock import RateLimiter


class FakeClock:
    def __init__(self, now=100.0):
        self.now = now
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.mark.asyncio
async def test_first_request_goes_straight_through():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    assert await limiter.acquire() == 0.0
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_waits_out_the_remaining_interval():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    await limiter.acquire()
    clock.now += 0.5
    waited = await limiter.acquire()

    assert waited == pytest.approx(1.5)
    assert clock.sleeps == [pytest.approx(1.5)]


@pytest.mark.asyncio
async def test_no_wait_once_interval_has_passed():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)

    await limiter.acquire()
    clock.now += 5
    assert await limiter.acquire() == 0.0
    assert clock.sleeps == []


@pytest.mark.asyncio
async def test_concurrent_callers_are_spaced_apart():
    clock = FakeClock()
    limiter = RateLimiter(2.0, clock=clock, sleep=clock.sleep)
    granted: list[float] = []

    async def caller():
        await limiter.acquire()
        granted.append(clock.now)

    await asyncio.gather(*(caller() for _ in range(3)))

    assert granted == [100.0, 102.0, 104.0]


def test_negative_interval_rejected():
    with pytest.raises(ValueError):
        RateLimiter(-1)
