"""
Request Pacing Utilities

Provides:
  - ``FixedIntervalPacer``  – coroutine-safe fixed-interval pacer
  - ``interval_for_rate``   – requests-per-minute → seconds between requests

Unlike a token bucket, the pacer never lets requests burst: every
request after the first waits a full interval after the previous one.
"""
from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[Any]]
Clock = Callable[[], float]


def interval_for_rate(max_requests_per_minute: int) -> float:
    """Seconds to wait between requests for a per-minute ceiling."""
    if max_requests_per_minute <= 0:
        raise ValueError("max_requests_per_minute must be > 0")
    return 60.0 / max_requests_per_minute


class FixedIntervalPacer:
    """
    Asyncio-compatible fixed-interval pacer.

    The first :meth:`acquire` returns immediately; each later call
    suspends until *interval* seconds have passed since the previous
    request was released.

    Example::

        pacer = FixedIntervalPacer.per_minute(60)   # one request per second
        async with pacer:
            ...  # guarded request
    """

    def __init__(
        self,
        interval: float,
        sleep: Optional[Sleeper] = None,
        clock: Optional[Clock] = None,
    ) -> None:
        """
        Args:
            interval: Minimum seconds between two released requests.
            sleep: Coroutine used to suspend (``asyncio.sleep`` by default).
            clock: Monotonic clock (``time.monotonic`` by default).
        """
        if interval < 0:
            raise ValueError("interval must be >= 0")

        self.interval = interval
        self._sleep = sleep or asyncio.sleep
        self._clock = clock or time.monotonic
        self._last_release: Optional[float] = None
        self._lock = asyncio.Lock()
        self.released = 0

    @classmethod
    def per_minute(
        cls,
        max_requests_per_minute: int,
        sleep: Optional[Sleeper] = None,
        clock: Optional[Clock] = None,
    ) -> "FixedIntervalPacer":
        return cls(interval_for_rate(max_requests_per_minute), sleep=sleep, clock=clock)

    async def acquire(self) -> None:
        """Wait until the next request may be issued."""
        async with self._lock:
            if self._last_release is not None:
                elapsed = self._clock() - self._last_release
                wait_time = self.interval - elapsed
                if wait_time > 0:
                    logger.debug("Pacing: waiting %.3fs before next request", wait_time)
                    await self._sleep(wait_time)
            self._last_release = self._clock()
            self.released += 1

    async def __aenter__(self) -> "FixedIntervalPacer":
        await self.acquire()
        return self

    async def __aexit__(self, *args: Any) -> None:
        pass
