"""In-process request throttling."""
import threading
import time
from collections import deque
from typing import Callable, Deque, Dict


class RateLimiter:
    """
    Per-key rate limiting over a sliding window.

    Tracks request timestamps per key (e.g. client address).
    In-memory: counters are per process and reset on restart.
    """

    def __init__(
        self,
        max_requests: int = 5,
        window_seconds: float = 15 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize rate limiter."""
        self.max_requests = max_requests
        self.window_seconds = window_seconds
        self._clock = clock
        # In-memory log: {key: deque[timestamp]}
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()

    def check_and_increment(self, key: str) -> bool:
        """
        Check if key is within the limit and record this request.

        Returns:
            True if request allowed, False if rate limit exceeded
        """
        now = self._clock()
        with self._lock:
            self._prune(now)

            if len(self._hits.get(key, ())) >= self.max_requests:
                return False

            self._hits.setdefault(key, deque()).append(now)
            return True

    def __len__(self) -> int:
        """Number of keys with requests still inside the window."""
        with self._lock:
            self._prune(self._clock())
            return len(self._hits)

    def _prune(self, now: float) -> None:
        # Drop requests that left the window, and keys with none left
        for key in list(self._hits):
            hits = self._hits[key]
            while hits and now - hits[0] >= self.window_seconds:
                hits.popleft()
            if not hits:
                del self._hits[key]
