import math
import threading
import time
from dataclasses import dataclass
from typing import Callable, Dict, List

PRUNE_THRESHOLD = 10000


@dataclass(frozen=True)
class RateLimitState:
    allowed: bool
    limit: int
    remaining: int
    reset_after: float

    def headers(self) -> Dict[str, str]:
        headers = {
            "RateLimit-Limit": str(self.limit),
            "RateLimit-Remaining": str(self.remaining),
            "RateLimit-Reset": str(math.ceil(self.reset_after)),
        }
        if not self.allowed:
            headers["Retry-After"] = headers["RateLimit-Reset"]
        return headers


class FixedWindowLimiter:
    """Per-key request counter that resets every ``window`` seconds."""

    def __init__(self, max_requests: int, window: float, clock: Callable[[], float] = time.monotonic):
        self.max_requests = max_requests
        self.window = window
        self._clock = clock
        self._windows: Dict[str, List[float]] = {}
        self._lock = threading.Lock()
        self._next_prune = clock() + window

    def _prune(self, now):
        expired = [key for key, (start, _) in self._windows.items() if now - start >= self.window]
        for key in expired:
            del self._windows[key]

    def hit(self, key: str) -> RateLimitState:
        now = self._clock()
        with self._lock:
            # Full scans happen at most once per window.
            if len(self._windows) > PRUNE_THRESHOLD and now >= self._next_prune:
                self._prune(now)
                self._next_prune = now + self.window

            entry = self._windows.get(key)
            if entry is None or now - entry[0] >= self.window:
                entry = [now, 0]
                self._windows[key] = entry
            entry[1] += 1
            start, count = entry

        return RateLimitState(
            allowed=count <= self.max_requests,
            limit=self.max_requests,
            remaining=max(0, self.max_requests - count),
            reset_after=max(0.0, start + self.window - now),
        )

    def reset(self, key=None):
        with self._lock:
            if key is None:
                self._windows.clear()
            else:
                self._windows.pop(key, None)
