"""
In-memory TTL cache for third-party content responses.

Background:
    Quran text and prayer schedules are read-mostly and the upstream APIs are
    slow and occasionally down, so responses are kept in process for a while.
    Entries older than the TTL are dropped lazily, on the next access to that
    key; there is no background sweep. Losing the cache (restart) only means
    one cold request per key.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable
from typing import Any


class TTLCache:
    """
    Key -> (value, stored_at) map with a fixed TTL.

    Handlers run in a thread pool, so reads and writes hold a lock.
    """

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[Any, float]] = {}
        self._lock = threading.Lock()

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, key: str) -> Any | None:
        """Return the cached value, or None when missing or expired (expired entries are evicted)."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, stored_at = entry
            if self._clock() - stored_at >= self._ttl:
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: Any) -> None:
        with self._lock:
            self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)
