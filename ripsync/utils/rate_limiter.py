"""Sliding-window rate limiting for catalog requests."""

from __future__ import annotations

import threading
import time
from collections import deque
from typing import Callable

from ripsync.utils.logger import get_logger

logger = get_logger("utils.rate_limiter")


class RateLimiter:
    """Thread-safe limiter allowing at most ``max_calls`` per rolling ``period``.

    Each service gets its own window and lock, so waiting on one service
    does not block requests to another.

    Usage:
        limiter = RateLimiter(max_calls=60, period=60.0)
        limiter.wait("discogs")  # Blocks once 60 calls fell inside the last minute
    """

    def __init__(
        self,
        max_calls: int,
        period: float,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_calls < 1:
            raise ValueError(f"max_calls must be >= 1, got {max_calls}")
        if period <= 0:
            raise ValueError(f"period must be > 0, got {period}")
        self._max_calls = max_calls
        self._period = period
        self._clock = clock
        self._sleep = sleep
        self._windows: dict[str, deque[float]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._meta_lock = threading.Lock()  # protects _locks/_windows creation

    def _get_lock(self, service_name: str) -> threading.Lock:
        """Get or create the lock and call window for a service."""
        with self._meta_lock:
            if service_name not in self._locks:
                self._locks[service_name] = threading.Lock()
                self._windows[service_name] = deque()
            return self._locks[service_name]

    def _expire(self, window: deque[float], now: float) -> None:
        while window and now - window[0] >= self._period:
            window.popleft()

    def wait(self, service_name: str) -> None:
        """Block until another call to ``service_name`` fits in the window.

        Args:
            service_name: Identifier for the API service (e.g. "discogs").
        """
        lock = self._get_lock(service_name)
        window = self._windows[service_name]

        with lock:
            while True:
                now = self._clock()
                self._expire(window, now)
                if len(window) < self._max_calls:
                    window.append(now)
                    return
                sleep_time = self._period - (now - window[0])
                logger.debug("Rate limit: sleeping %.2fs for %s", sleep_time, service_name)
                self._sleep(sleep_time)

    def calls_in_window(self, service_name: str) -> int:
        """Number of calls to ``service_name`` inside the current window."""
        lock = self._get_lock(service_name)
        with lock:
            window = self._windows[service_name]
            self._expire(window, self._clock())
            return len(window)
