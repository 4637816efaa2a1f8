from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable


@dataclass
class RateLimitExceeded(RuntimeError):
    key: str
    retry_after: int


class WindowRateLimiter:
    """
    Fixed-window request counter per key (the sender's phone number for webhooks).
    Windows are aligned to multiples of `window_seconds`; counts from an elapsed
    window are dropped as soon as the next one starts.
    """

    def __init__(
        self,
        max_requests: int = 60,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._window_start: float | None = None
        self._counts: dict[str, int] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> None:
        """Count one request for `key`; raises RateLimitExceeded once the window's quota is spent."""
        now = self._clock()
        window_start = math.floor(now / self.window_seconds) * self.window_seconds
        with self._lock:
            if window_start != self._window_start:
                self._window_start = window_start
                self._counts.clear()
            count = self._counts.get(key, 0) + 1
            self._counts[key] = count
        if count > self.max_requests:
            retry_after = max(1, math.ceil(window_start + self.window_seconds - now))
            raise RateLimitExceeded(key=key, retry_after=retry_after)
