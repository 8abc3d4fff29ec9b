"""
RateLimiter - Minimum spacing between outbound agent calls.

One instance is shared by every invocation in the process (APP scope in the
DI container). The lock is held while waiting, so concurrent callers queue
up and each one leaves at least `min_interval` after the previous call.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class RateLimiter:
    def __init__(
        self,
        min_interval: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if min_interval < 0:
            raise ValueError("min_interval cannot be negative")
        self._min_interval = min_interval
        self._clock = clock
        self._sleep = sleep
        self._last_request_at: Optional[float] = None
        self._lock = asyncio.Lock()

    @property
    def min_interval(self) -> float:
        return self._min_interval

    async def acquire(self) -> float:
        """Wait until the next call is allowed and record it. Returns seconds waited."""
        async with self._lock:
            wait = 0.0
            if self._last_request_at is not None:
                elapsed = self._clock() - self._last_request_at
                wait = max(0.0, self._min_interval - elapsed)

            if wait > 0:
                logger.debug("Rate limiting: waiting %.0fms before next request", wait * 1000)
                await self._sleep(wait)

            self._last_request_at = self._clock()
            return wait
