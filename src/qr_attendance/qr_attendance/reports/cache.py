from __future__ import annotations

import threading
import time
from typing import Any, Callable, Hashable, Optional

from ..core.constants import DEFAULT_CACHE_SECONDS


class TimedCache:
    """Small read-through cache whose entries expire after ``ttl_seconds``.

    Dashboard reads only; the scan path never consults it.
    """

    def __init__(self, ttl_seconds: float = DEFAULT_CACHE_SECONDS, *, clock: Callable[[], float] = time.monotonic):
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: Hashable) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            stored_at, value = entry
            if self._clock() - stored_at >= self._ttl:
                del self._entries[key]
                return None
            return value

    def put(self, key: Hashable, value: Any) -> None:
        with self._lock:
            now = self._clock()
            expired = [k for k, (stored_at, _) in self._entries.items() if now - stored_at >= self._ttl]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (now, value)

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_or_load(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        value = self.get(key)
        if value is None:
            value = loader()
            if self._ttl > 0:
                self.put(key, value)
        return value

    def invalidate(self, key: Optional[Hashable] = None) -> None:
        with self._lock:
            if key is None:
                self._entries.clear()
            else:
                self._entries.pop(key, None)
