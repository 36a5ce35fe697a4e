import math
import threading
import time
from typing import Callable, Dict, Tuple

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        # key -> (count, expires_at)
        self._store: Dict[str, Tuple[int, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _live(self, key: str, now: float) -> Tuple[int, float]:
        rec = self._store.get(key)
        if rec and rec[1] <= now:
            del self._store[key]
            return 0, now
        return rec or (0, now)

    def too_many_attempts(self, key: str, max_attempts: int) -> bool:
        return self.attempts(key) >= max_attempts

    def hit(self, key: str, decay_seconds: int) -> int:
        with self._lock:
            now = self._clock()
            count, _ = self._live(key, now)
            count += 1
            self._store[key] = (count, now + decay_seconds)
            return count

    def attempts(self, key: str) -> int:
        with self._lock:
            return self._live(key, self._clock())[0]

    def available_in(self, key: str) -> int:
        with self._lock:
            now = self._clock()
            count, expires_at = self._live(key, now)
            if not count:
                return 0
            return max(0, math.ceil(expires_at - now))

    def clear(self, key: str) -> None:
        with self._lock:
            self._store.pop(key, None)
