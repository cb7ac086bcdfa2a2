"""Short-lived in-memory cache for backend responses

Keys are tuples such as ("available-balance", venue_id, "summary") so a
mutation can drop every related entry by prefix.
"""

import time
from typing import Any, Awaitable, Callable, Dict, Hashable, Tuple, TypeVar

T = TypeVar("T")
CacheKey = Tuple[Hashable, ...]


class ResponseCache:
    """TTL cache with prefix invalidation"""

    def __init__(self, ttl_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: Dict[CacheKey, Tuple[float, Any]] = {}

    def get(self, key: CacheKey) -> Any:
        entry = self._entries.get(key)
        if entry is None:
            return None
        expires_at, value = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: CacheKey, value: Any) -> None:
        self._entries[key] = (self._clock() + self.ttl_seconds, value)

    async def get_or_fetch(self, key: CacheKey, fetch: Callable[[], Awaitable[T]]) -> T:
        """Return the cached value, or await fetch() and cache its result"""
        cached = self.get(key)
        if cached is not None:
            return cached
        value = await fetch()
        self.set(key, value)
        return value

    def invalidate(self, prefix: CacheKey) -> int:
        """Drop every entry whose key starts with prefix; returns how many"""
        stale = [key for key in self._entries if key[: len(prefix)] == prefix]
        for key in stale:
            del self._entries[key]
        return len(stale)

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
