"""Small in-process TTL cache.

Used for read-mostly lookups (module status, resources) that are hit on
every booking request. Each service owns its own instance, so tests can
inject a fake clock and writers can invalidate exactly what they changed.
"""

import threading
import time
from collections.abc import Callable
from typing import Any


class TTLCache:
    """Key/value cache whose entries expire ``ttl_seconds`` after being set.

    Args:
        ttl_seconds: Lifetime of an entry. Zero disables caching.
        clock: Monotonic time source in seconds
    """

    def __init__(
        self,
        ttl_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            expires_at, value = entry
            if self._clock() >= expires_at:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        if self.ttl_seconds <= 0:
            return
        with self._lock:
            self._entries[key] = (self._clock() + self.ttl_seconds, value)

    def invalidate(self, key: str) -> None:
        """Drop one entry."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
