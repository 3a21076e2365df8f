"""Short-lived query-result cache.

Absorbs duplicate page requests (double clicks, retries, prefetch) for a
few seconds. It is purely advisory: a miss simply hits the store.

This is the only state shared between pagination calls, so every access
is guarded by a lock.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from collections.abc import Callable, Hashable
from typing import Any


class QueryResultCache:
    """Thread-safe TTL cache with LRU eviction.

    Args:
        ttl_seconds: Lifetime of each entry
        max_entries: Maximum entries kept; least recently used are evicted
        clock: Monotonic time source

    Example:
        cache = QueryResultCache(ttl_seconds=30)
        cache.set((store.cache_key, plan.plan_hash, plan.direction), envelope)
        cached = cache.get((store.cache_key, plan.plan_hash, plan.direction))
    """

    def __init__(
        self,
        ttl_seconds: float = 30.0,
        max_entries: int = 1024,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: OrderedDict[Hashable, tuple[float, Any]] = OrderedDict()
        self._lock = threading.Lock()
        self.hits = 0
        self.misses = 0

    def get(self, key: Hashable) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self.misses += 1
                return None
            expires_at, value = entry
            if now >= expires_at:
                del self._entries[key]
                self.misses += 1
                return None
            self._entries.move_to_end(key)
            self.hits += 1
            return value

    def set(self, key: Hashable, value: Any) -> None:
        expires_at = self._clock() + self.ttl_seconds
        with self._lock:
            self._entries[key] = (expires_at, value)
            self._entries.move_to_end(key)
            while len(self._entries) > self.max_entries:
                self._entries.popitem(last=False)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get_cache_info(self) -> dict[str, Any]:
        """Get information about the cache state."""
        with self._lock:
            return {
                "ttl_seconds": self.ttl_seconds,
                "entries": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
            }


__all__ = ["QueryResultCache"]
