"""
Discern - Bounded Caching

Provides the process-wide cache used for scripture lookups:
- O(1) LRU cache with bounded entry count
- TTL-based expiration (expired entries count as absent)
- Thread-safe operations (safe to share across concurrent requests)

A cache miss followed by a refetch is always correct, only slower, so the
cache favours simplicity over strict consistency.
"""

from __future__ import annotations

import threading
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import (
    Any,
    Callable,
    Dict,
    Generic,
    Optional,
    TypeVar,
)

T = TypeVar("T")


@dataclass
class CacheEntry(Generic[T]):
    """Cache entry with metadata for eviction decisions."""

    value: T
    created_at: float
    last_accessed: float
    access_count: int = 0


@dataclass
class CacheStats:
    """Statistics for cache monitoring."""

    hits: int = 0
    misses: int = 0
    evictions: int = 0
    expirations: int = 0
    entry_count: int = 0

    @property
    def hit_rate(self) -> float:
        """Calculate cache hit rate."""
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": self.hit_rate,
            "evictions": self.evictions,
            "expirations": self.expirations,
            "entry_count": self.entry_count,
        }


class LRUCache(Generic[T]):
    """
    O(1) LRU Cache with bounded size and TTL.

    Usage:
        cache = LRUCache[VerseResult](max_size=200, ttl_seconds=86400)
        cache.put("WEB:John 3:16", verse)
        result = cache.get("WEB:John 3:16")
    """

    def __init__(
        self,
        max_size: int = 200,
        ttl_seconds: Optional[float] = 24 * 60 * 60,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_size < 1:
            raise ValueError("max_size must be >= 1")
        self.max_size = max_size
        self.ttl_seconds = ttl_seconds
        self._clock = clock

        self._cache: OrderedDict[str, CacheEntry[T]] = OrderedDict()
        self._lock = threading.RLock()
        self._stats = CacheStats()

    def _is_expired(self, entry: CacheEntry[T]) -> bool:
        if self.ttl_seconds is None:
            return False
        return self._clock() - entry.created_at > self.ttl_seconds

    def _evict_oldest(self) -> None:
        """Evict the least recently used entry. Must be called with lock held."""
        if self._cache:
            self._cache.popitem(last=False)
            self._stats.evictions += 1

    def get(self, key: str) -> Optional[T]:
        """Get a value, refreshing its recency. Expired entries are dropped."""
        with self._lock:
            entry = self._cache.get(key)

            if entry is None:
                self._stats.misses += 1
                return None

            if self._is_expired(entry):
                del self._cache[key]
                self._stats.expirations += 1
                self._stats.misses += 1
                self._stats.entry_count = len(self._cache)
                return None

            self._cache.move_to_end(key)
            entry.last_accessed = self._clock()
            entry.access_count += 1
            self._stats.hits += 1
            return entry.value

    def put(self, key: str, value: T) -> None:
        """Insert or replace a value, evicting the LRU entry when full."""
        now = self._clock()

        with self._lock:
            if key in self._cache:
                del self._cache[key]

            while len(self._cache) >= self.max_size:
                self._evict_oldest()

            self._cache[key] = CacheEntry(value=value, created_at=now, last_accessed=now)
            self._stats.entry_count = len(self._cache)

    def contains(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        with self._lock:
            entry = self._cache.get(key)
            return entry is not None and not self._is_expired(entry)

    def delete(self, key: str) -> bool:
        with self._lock:
            if key in self._cache:
                del self._cache[key]
                self._stats.entry_count = len(self._cache)
                return True
            return False

    def clear(self) -> None:
        with self._lock:
            self._cache.clear()
            self._stats = CacheStats()

    def __len__(self) -> int:
        with self._lock:
            return len(self._cache)

    def get_stats(self) -> CacheStats:
        """Get a snapshot of cache statistics."""
        with self._lock:
            return CacheStats(
                hits=self._stats.hits,
                misses=self._stats.misses,
                evictions=self._stats.evictions,
                expirations=self._stats.expirations,
                entry_count=len(self._cache),
            )
