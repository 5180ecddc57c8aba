"""In-memory fixed-window rate limiter used for login attempts."""

import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class _Window:
    count: int
    reset_at: float


class RateLimitExceeded(Exception):
    def __init__(self, retry_after: float) -> None:
        super().__init__("Rate limit exceeded")
        self.retry_after = retry_after


class FixedWindowRateLimiter:
    """
    Counts hits per key inside a fixed time window.

    State lives in process memory, so limits are per worker.
    """

    def __init__(
        self,
        limit: int,
        interval_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.limit = limit
        self.interval = interval_seconds
        self._clock = clock
        self._windows: dict[str, _Window] = {}

    def _purge(self, now: float) -> None:
        expired = [key for key, window in self._windows.items() if window.reset_at <= now]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str) -> int:
        """Record one hit for *key* and return the count in the current window.

        Raises RateLimitExceeded once the count goes over the limit.
        """
        now = self._clock()
        self._purge(now)
        window = self._windows.get(key)
        if window is None:
            window = _Window(count=0, reset_at=now + self.interval)
            self._windows[key] = window
        window.count += 1
        if window.count > self.limit:
            raise RateLimitExceeded(retry_after=window.reset_at - now)
        return window.count

    def reset(self) -> None:
        self._windows.clear()
