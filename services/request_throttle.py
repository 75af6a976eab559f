"""
Sliding-window request throttle.

Counts admissions per client key over a trailing window. Pruning happens on
access: the checked key is trimmed every time, and all keys are swept at most
once per window so idle clients do not accumulate. There is no background
thread.

This is an approximate sliding window, not a token bucket: a burst straddling
two windows can momentarily admit up to twice the limit.
"""

from __future__ import annotations

import math
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Optional

from models.throttle_models import ThrottleDecision
from services.errors import ThrottledError


class RequestThrottle:
    """Per-key admission control with a trailing time window."""

    def __init__(
        self,
        limit: int = 100,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        """
        Args:
            limit: Admissions allowed per key within one window.
            window_seconds: Length of the trailing window.
            clock: Monotonic time source, in seconds.
        """
        if limit <= 0:
            raise ValueError("limit must be positive")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be positive")
        self.limit = limit
        self.window = float(window_seconds)
        self._clock = clock
        self._requests: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep: Optional[float] = None

    @property
    def retry_after(self) -> int:
        return math.ceil(self.window)

    def check(self, key: str, now: Optional[float] = None) -> ThrottleDecision:
        """Admit or reject one request for ``key`` and record it if admitted."""
        with self._lock:
            now = self._clock() if now is None else now
            self._maybe_sweep(now)

            timestamps = self._prune(key, now)
            if len(timestamps) >= self.limit:
                return ThrottleDecision(
                    allowed=False,
                    limit=self.limit,
                    remaining=0,
                    reset_after=self._reset_after(timestamps, now),
                    retry_after=self.retry_after,
                )

            timestamps.append(now)
            self._requests[key] = timestamps
            return ThrottleDecision(
                allowed=True,
                limit=self.limit,
                remaining=max(0, self.limit - len(timestamps)),
                reset_after=self._reset_after(timestamps, now),
            )

    def enforce(self, key: str, now: Optional[float] = None) -> ThrottleDecision:
        """Like `check`, but raise when the request is rejected.

        Raises:
            ThrottledError: Carrying the rejecting decision.
        """
        decision = self.check(key, now)
        if not decision.allowed:
            raise ThrottledError(decision)
        return decision

    def count(self, key: str, now: Optional[float] = None) -> int:
        """Number of admissions currently counted for ``key``."""
        with self._lock:
            now = self._clock() if now is None else now
            return len(self._prune(key, now))

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._requests)

    def reset(self) -> None:
        with self._lock:
            self._requests.clear()
            self._last_sweep = None

    def _prune(self, key: str, now: float) -> Deque[float]:
        """Drop timestamps outside the window; forget the key if none remain."""
        timestamps = self._requests.get(key)
        if timestamps is None:
            return deque()
        cutoff = now - self.window
        while timestamps and timestamps[0] <= cutoff:
            timestamps.popleft()
        if not timestamps:
            del self._requests[key]
        return timestamps

    def _maybe_sweep(self, now: float) -> None:
        if self._last_sweep is not None and now - self._last_sweep < self.window:
            return
        self._last_sweep = now
        for key in list(self._requests):
            self._prune(key, now)

    def _reset_after(self, timestamps: Deque[float], now: float) -> int:
        if not timestamps:
            return 0
        return max(0, math.ceil(timestamps[0] + self.window - now))
