import threading
import time
from typing import Callable, Dict, Optional, Tuple

from ...application.ports.cache import Cache


class InMemoryCache(Cache):
    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._store: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def put(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            self._store[key] = (value, self._clock() + ttl_seconds)

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            rec = self._store.get(key)
            if not rec:
                return None
            if rec[1] <= self._clock():
                del self._store[key]
                return None
            return rec[0]

    def forget(self, key: str) -> bool:
        with self._lock:
            return self._store.pop(key, None) is not None
