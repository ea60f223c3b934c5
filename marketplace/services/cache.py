"""
In-process TTL cache for query results.

A thin map from string keys to values with a per-entry expiry. Entries are
bounded by an LRU policy (cachetools) so a burst of distinct search queries
cannot grow the process without limit. Expired entries are dropped on read
and by a periodic sweep.
"""

import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from cachetools import LRUCache
from django.conf import settings

from marketplace.infra.observability.metrics import (
    query_cache_hits_total,
    query_cache_misses_total,
    query_cache_size,
)

logger = logging.getLogger(__name__)

DEFAULT_CACHE_CONFIG = {
    "DEFAULT_TTL": 5 * 60,
    "SEARCH_TTL": 2 * 60,
    "CATALOG_TTL": 10 * 60,
    "MAX_ENTRIES": 1000,
    "CLEANUP_INTERVAL": 5 * 60,
}


def cache_config() -> Dict[str, int]:
    config = dict(DEFAULT_CACHE_CONFIG)
    config.update(getattr(settings, "QUERY_CACHE", {}))
    return config


def canonical_json(value: Any) -> str:
    """Stable JSON used to build cache keys from filter dicts."""
    return json.dumps(value, sort_keys=True, default=str, separators=(",", ":"))


class CacheEntry:
    __slots__ = ("data", "expires_at")

    def __init__(self, data: Any, expires_at: float):
        self.data = data
        self.expires_at = expires_at


class TTLCache:
    """
    Key/value cache with per-entry time-to-live.

    Attributes:
        default_ttl: TTL in seconds used when set() gets none
        max_entries: LRU bound on the number of live entries
        hits / misses: lookup statistics
    """

    def __init__(
        self,
        default_ttl: Optional[int] = None,
        max_entries: Optional[int] = None,
        cleanup_interval: Optional[int] = None,
        clock: Callable[[], float] = time.time,
    ):
        config = cache_config()
        self.default_ttl = default_ttl if default_ttl is not None else config["DEFAULT_TTL"]
        self.max_entries = max_entries if max_entries is not None else config["MAX_ENTRIES"]
        self.cleanup_interval = cleanup_interval if cleanup_interval is not None else config["CLEANUP_INTERVAL"]
        self.search_ttl = config["SEARCH_TTL"]
        self.clock = clock

        self._entries: LRUCache = LRUCache(maxsize=self.max_entries)
        self._lock = threading.RLock()
        self._last_cleanup = clock()

        self.hits = 0
        self.misses = 0

    def set(self, key: str, data: Any, ttl: Optional[int] = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        with self._lock:
            now = self.clock()
            self._entries[key] = CacheEntry(data, now + ttl)
            if now - self._last_cleanup >= self.cleanup_interval:
                self._cleanup_locked(now)
            query_cache_size.set(len(self._entries))
        logger.debug(f"Cached {key} (ttl={ttl}s)")

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._record_miss()
                return None

            if self.clock() > entry.expires_at:
                del self._entries[key]
                self._record_miss()
                logger.debug(f"Cache MISS (expired): {key}")
                return None

            self.hits += 1
            query_cache_hits_total.inc()
            return entry.data

    def has(self, key: str) -> bool:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return False
            if self.clock() > entry.expires_at:
                del self._entries[key]
                return False
            return True

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
            query_cache_size.set(0)
        logger.info(f"Cleared {count} entries from query cache")

    def cleanup(self) -> int:
        """Remove every expired entry. Returns the number removed."""
        with self._lock:
            return self._cleanup_locked(self.clock())

    def clear_by_pattern(self, pattern: str) -> int:
        """Delete every key containing ``pattern``. Returns the number removed."""
        with self._lock:
            keys = [key for key in self._entries.keys() if pattern in key]
            for key in keys:
                del self._entries[key]
            query_cache_size.set(len(self._entries))
        if keys:
            logger.debug(f"Invalidated {len(keys)} cache entries matching '{pattern}'")
        return len(keys)

    @staticmethod
    def search_key(query: str, filters: Dict) -> str:
        return f"search:{query}:{canonical_json(filters)}"

    def set_search_results(self, query: str, filters: Dict, results: Any, total: int) -> None:
        self.set(self.search_key(query, filters), {"results": results, "total": total}, self.search_ttl)

    def get_search_results(self, query: str, filters: Dict) -> Optional[Dict]:
        return self.get(self.search_key(query, filters))

    def stats(self) -> Dict[str, Any]:
        with self._lock:
            total_requests = self.hits + self.misses
            return {
                "size": len(self._entries),
                "max_entries": self.max_entries,
                "hits": self.hits,
                "misses": self.misses,
                "hit_rate": round(self.hits / total_requests, 4) if total_requests else 0.0,
            }

    def __len__(self) -> int:
        return len(self._entries)

    def _record_miss(self) -> None:
        self.misses += 1
        query_cache_misses_total.inc()

    def _cleanup_locked(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if now > entry.expires_at]
        for key in expired:
            del self._entries[key]
        self._last_cleanup = now
        query_cache_size.set(len(self._entries))
        if expired:
            logger.info(f"Query cache cleanup removed {len(expired)} expired entries")
        return len(expired)


_query_cache: Optional[TTLCache] = None
_query_cache_lock = threading.Lock()


def get_query_cache() -> TTLCache:
    """Process-wide query cache."""
    global _query_cache
    if _query_cache is None:
        with _query_cache_lock:
            if _query_cache is None:
                _query_cache = TTLCache()
    return _query_cache


def reset_query_cache() -> None:
    global _query_cache
    with _query_cache_lock:
        _query_cache = None
