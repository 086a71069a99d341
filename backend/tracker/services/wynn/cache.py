import threading
import time
from typing import Any, Callable, Dict, Optional, Tuple


class ResponseCache:
    """Keeps upstream payloads per identity for ``retention`` seconds."""

    def __init__(self, retention: float = 600, clock: Callable[[], float] = time.time):
        self.retention = retention
        self.clock = clock
        self._entries: Dict[str, Tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def _expired(self, fetched_at: float, now: float) -> bool:
        return now - fetched_at > self.retention

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._expired(entry[0], self.clock()):
                del self._entries[key]
                return None
            return entry[1]

    def put(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (self.clock(), value)

    def sweep(self) -> int:
        """Drop every expired entry; returns how many were dropped."""
        now = self.clock()
        with self._lock:
            stale = [k for k, (fetched_at, _) in self._entries.items() if self._expired(fetched_at, now)]
            for k in stale:
                del self._entries[k]
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
