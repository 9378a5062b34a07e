"""
Content Cache

In-memory LRU cache for Drive listings and decoded file contents. Every key
class (the prefix before the first ``:``) has its own freshness window, so a
folder listing can go stale after minutes while a parsed GPX track stays
valid for half an hour.
"""

import asyncio
import logging
import time
from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from grancamino.core import metrics
from grancamino.core.constants import CacheNamespace

logger = logging.getLogger(__name__)


# =============================================================================
# DATA CLASSES
# =============================================================================

@dataclass(frozen=True)
class CacheEntry:
    """Cached value plus the time it was stored. Replaced on refresh, never mutated."""
    value: Any
    stored_at_ms: int

    def age_ms(self, now_ms: int) -> int:
        return now_ms - self.stored_at_ms


@dataclass
class CacheStats:
    hits: int = 0
    misses: int = 0
    stale: int = 0
    evictions: int = 0
    size: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        return self.hits / total if total > 0 else 0.0

    def to_dict(self) -> Dict:
        return {
            "hits": self.hits,
            "misses": self.misses,
            "stale": self.stale,
            "evictions": self.evictions,
            "size": self.size,
            "hit_rate": round(self.hit_rate, 4)
        }


def _now_ms() -> int:
    return int(time.time() * 1000)


# =============================================================================
# CONTENT CACHE
# =============================================================================

class ContentCache:
    """
    LRU cache with per-key-class freshness windows.

    - ``get`` returns None when the key was never stored or its entry is
      older than the window of its key class (stale entries are dropped)
    - ``put`` always overwrites with a fresh timestamp
    - capacity is bounded; the least recently used entry is evicted first
    - concurrent coroutines are serialized by an asyncio lock, last write wins
    """

    def __init__(
        self,
        windows_seconds: Optional[Dict[str, float]] = None,
        default_window_seconds: float = 300.0,
        max_entries: int = 128,
        clock: Callable[[], int] = _now_ms
    ):
        self.windows_ms = {
            str(getattr(k, "value", k)): int(v * 1000)
            for k, v in (windows_seconds or {}).items()
        }
        self.default_window_ms = int(default_window_seconds * 1000)
        self.max_entries = max(1, max_entries)
        self._clock = clock
        self._entries: "OrderedDict[str, CacheEntry]" = OrderedDict()
        self._lock = asyncio.Lock()
        self.stats = CacheStats()

    @classmethod
    def from_settings(cls, settings) -> "ContentCache":
        return cls(
            windows_seconds={
                CacheNamespace.LISTING: settings.LISTING_CACHE_TTL_SECONDS,
                CacheNamespace.CONTENT: settings.CONTENT_CACHE_TTL_SECONDS,
            },
            default_window_seconds=settings.LISTING_CACHE_TTL_SECONDS,
            max_entries=settings.CACHE_MAX_ENTRIES,
        )

    @staticmethod
    def key_class(key: str) -> str:
        return key.split(":", 1)[0] if ":" in key else ""

    def window_ms(self, key: str) -> int:
        return self.windows_ms.get(self.key_class(key), self.default_window_ms)

    async def get(self, key: str) -> Optional[Any]:
        namespace = self.key_class(key) or "default"
        async with self._lock:
            entry = self._entries.get(key)

            if entry is None:
                self.stats.misses += 1
                metrics.cache_lookups_total.labels(namespace=namespace, outcome="miss").inc()
                return None

            if entry.age_ms(self._clock()) > self.window_ms(key):
                del self._entries[key]
                self.stats.misses += 1
                self.stats.stale += 1
                self.stats.size = len(self._entries)
                metrics.cache_lookups_total.labels(namespace=namespace, outcome="stale").inc()
                return None

            self._entries.move_to_end(key)
            self.stats.hits += 1
            metrics.cache_lookups_total.labels(namespace=namespace, outcome="hit").inc()
            return entry.value

    async def put(self, key: str, value: Any) -> None:
        async with self._lock:
            self._entries.pop(key, None)

            while len(self._entries) >= self.max_entries:
                evicted, _ = self._entries.popitem(last=False)
                self.stats.evictions += 1
                logger.debug(f"Cache evicted {evicted}")

            self._entries[key] = CacheEntry(value=value, stored_at_ms=self._clock())
            self.stats.size = len(self._entries)

    async def delete(self, key: str) -> bool:
        async with self._lock:
            if key in self._entries:
                del self._entries[key]
                self.stats.size = len(self._entries)
                return True
            return False

    async def clear(self) -> None:
        async with self._lock:
            self._entries.clear()
            self.stats.size = 0

    def __len__(self) -> int:
        return len(self._entries)

    def get_stats(self) -> Dict:
        return self.stats.to_dict()
