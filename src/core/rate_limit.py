"""In-process sliding window rate limiter keyed by client address."""

import threading
import time
from collections import deque
from typing import Callable, Deque, Dict, Tuple

from config import RATE_LIMIT_MAX_REQUESTS, RATE_LIMIT_WINDOW_SECONDS


class RateLimiter:
    """Allow at most ``max_requests`` per ``window_seconds`` for each key.

    Keys whose requests have all left the window are dropped, at most once
    per window, so idle clients do not accumulate.
    """

    def __init__(
        self,
        max_requests: int = RATE_LIMIT_MAX_REQUESTS,
        window_seconds: float = RATE_LIMIT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        self._history: Dict[str, Deque[float]] = {}
        self._next_sweep = clock() + window_seconds
        self._lock = threading.Lock()

    def hit(self, key: str) -> Tuple[bool, int]:
        """Record a request for key.

        Returns:
            A tuple (allowed, retry_after). retry_after is the number of whole
            seconds until the oldest request in the window expires, 0 when
            the request is allowed.
        """
        now = self._clock()
        cutoff = now - self.window_seconds
        with self._lock:
            if now >= self._next_sweep:
                self._sweep(cutoff)
                self._next_sweep = now + self.window_seconds

            history = self._history.setdefault(key, deque())
            while history and history[0] <= cutoff:
                history.popleft()
            if len(history) >= self.max_requests:
                retry_after = int(history[0] + self.window_seconds - now) + 1
                return False, max(retry_after, 1)
            history.append(now)
            return True, 0

    def _sweep(self, cutoff: float) -> None:
        # Newest entry is last; a key is idle when even that one has expired
        idle = [
            key
            for key, history in self._history.items()
            if not history or history[-1] <= cutoff
        ]
        for key in idle:
            del self._history[key]

    def tracked_keys(self) -> int:
        """Number of client keys currently held."""
        with self._lock:
            return len(self._history)

    def reset(self) -> None:
        """Forget every recorded request."""
        with self._lock:
            self._history.clear()
            self._next_sweep = self._clock() + self.window_seconds


# Shared limiter used by the gateway middleware
rate_limiter = RateLimiter()
