# flatwatch/services/rate_limiter.py
from __future__ import annotations

import asyncio
import logging
import random
import time
from collections import deque
from typing import Awaitable, Callable

log = logging.getLogger(__name__)


class RateLimiter:
    """
    Rolling-window limiter for the listing source plus a randomized
    human-like pause before every request.

    One lock covers trim, window wait, jitter and record, so concurrent
    callers are serialized and recorded timestamps follow completion order.
    Worst case a caller blocks for about a minute (window exhausted).
    """

    def __init__(
        self,
        max_per_minute: int,
        min_delay_s: float = 0.0,
        max_delay_s: float = 0.0,
        *,
        window_s: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        rng: random.Random | None = None,
    ) -> None:
        self.max_per_minute = int(max_per_minute)
        self.min_delay_s = float(min_delay_s)
        self.max_delay_s = float(max_delay_s)
        self.window_s = float(window_s)

        self._clock = clock
        self._sleep = sleep
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()
        self._times: deque[float] = deque()

    @classmethod
    def from_settings(cls) -> "RateLimiter":
        from ..config import settings

        return cls(
            settings.RATE_LIMIT_MAX_PER_MINUTE,
            settings.RATE_LIMIT_MIN_DELAY_S,
            settings.RATE_LIMIT_MAX_DELAY_S,
        )

    def _trim(self, now: float) -> None:
        cutoff = now - self.window_s
        while self._times and self._times[0] <= cutoff:
            self._times.popleft()

    def _random_delay(self) -> float:
        if self.max_delay_s <= self.min_delay_s:
            return self.min_delay_s
        return self.min_delay_s + self._rng.random() * (self.max_delay_s - self.min_delay_s)

    @property
    def in_window(self) -> int:
        self._trim(self._clock())
        return len(self._times)

    async def wait(self) -> None:
        async with self._lock:
            now = self._clock()
            self._trim(now)

            if self.max_per_minute > 0 and len(self._times) >= self.max_per_minute:
                wait_s = (self._times[0] + self.window_s) - now
                if wait_s > 0:
                    log.info("rate limit reached (%d/min), waiting %.1fs", self.max_per_minute, wait_s)
                    await self._sleep(wait_s)

            delay = self._random_delay()
            if delay > 0:
                await self._sleep(delay)

            self._times.append(self._clock())
