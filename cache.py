# Small in-process TTL cache (rendered pages, bill payloads, managers)
import threading
import time
from typing import Any, Callable, Dict, Hashable, Optional, Tuple


class TTLCache:
    def __init__(self, ttl: float, clock: Callable[[], float] = time.time):
        self.ttl = ttl
        self._clock = clock
        self._data: Dict[Hashable, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            hit = self._data.get(key)
            if hit is None:
                return None
            ts, value = hit
            if (self._clock() - ts) >= self.ttl:
                del self._data[key]
                return None
            return value

    def set(self, key: Hashable, value: Any) -> None:
        with self._lock:
            self._data[key] = (self._clock(), value)

    def pop(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            hit = self._data.pop(key, None)
        return hit[1] if hit else None

    def clear(self) -> None:
        with self._lock:
            self._data.clear()

    def __len__(self) -> int:
        return len(self._data)
