"""In-process result cache.

The reference cache backend for the execution engine: in-memory storage
with TTL support, pattern invalidation and hit statistics. It is the only
querystone component meant to be shared between sessions, so every
operation holds an internal lock.
"""

import fnmatch
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional

from querystone.protocols import CacheProtocol


logger = logging.getLogger(__name__)


class CacheManager(CacheProtocol):
    """In-memory cache keyed by statement hash.

    Example:
        >>> cache = CacheManager(enabled=True, default_ttl=300)
        >>> cache.save('5d41402abc4b2a76b9719d911017c592', rows)
        >>> cache.get('5d41402abc4b2a76b9719d911017c592')
        >>> cache.clear('5d41*')
    """

    def __init__(self, enabled: bool = True, default_ttl: Optional[int] = None):
        self._enabled = enabled
        self._default_ttl = default_ttl
        self._storage: Dict[str, Any] = {}
        self._ttl_storage: Dict[str, float] = {}
        self._access_count: Dict[str, int] = {}
        self._hits = 0
        self._misses = 0
        self._lock = threading.RLock()

    def is_enabled(self) -> bool:
        return self._enabled

    def enable(self) -> None:
        self._enabled = True

    def disable(self) -> None:
        self._enabled = False

    def get(self, key: str, loader: Optional[Callable[[], Any]] = None) -> Any:
        """Get value from cache or load it.

        Args:
            key: Cache key
            loader: Optional function to load and store the value on a miss.
                Loader errors propagate to the caller.

        Returns:
            Cached value, loaded value, or None
        """
        with self._lock:
            if self._is_cached(key):
                self._hits += 1
                self._access_count[key] = self._access_count.get(key, 0) + 1
                logger.debug("Cache hit", extra={"cache_key": key})
                return self._storage[key]

            self._misses += 1

        if loader is None:
            return None

        logger.debug("Cache miss, loading", extra={"cache_key": key})
        value = loader()
        self.save(key, value)
        return value

    def save(self, key: str, value: Any, ttl: Optional[int] = None) -> bool:
        """Store value with optional TTL.

        Args:
            key: Cache key
            value: Fully computed value to cache
            ttl: Time-to-live in seconds, falls back to the default TTL

        Returns:
            True when the value was stored, False when the cache is disabled
        """
        if not self._enabled:
            return False

        ttl = ttl if ttl is not None else self._default_ttl
        with self._lock:
            self._storage[key] = value
            self._access_count[key] = 0

            if ttl:
                self._ttl_storage[key] = time.time() + ttl
            else:
                self._ttl_storage.pop(key, None)

        logger.debug("Cached key", extra={"cache_key": key, "ttl": ttl})
        return True

    def exists(self, key: str) -> bool:
        """Check if key exists and is not expired."""
        with self._lock:
            return self._is_cached(key)

    def delete(self, key: str) -> bool:
        """Remove key from cache.

        Returns:
            True if key was removed, False if key didn't exist
        """
        with self._lock:
            if key not in self._storage:
                return False
            del self._storage[key]
            self._ttl_storage.pop(key, None)
            self._access_count.pop(key, None)
        logger.debug("Deleted cache key", extra={"cache_key": key})
        return True

    def clear(self, pattern: str = "*") -> int:
        """Clear keys matching a glob pattern.

        Returns:
            Number of keys cleared
        """
        with self._lock:
            if pattern == "*":
                count = len(self._storage)
                self._storage.clear()
                self._ttl_storage.clear()
                self._access_count.clear()
                logger.info("Cleared all cache entries", extra={"cleared": count})
                return count

            keys_to_delete = [key for key in self._storage if fnmatch.fnmatch(key, pattern)]
            for key in keys_to_delete:
                self.delete(key)

        logger.info("Cleared cache entries", extra={"cleared": len(keys_to_delete), "pattern": pattern})
        return len(keys_to_delete)

    def cleanup_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            now = time.time()
            expired = [key for key, deadline in self._ttl_storage.items() if now >= deadline]
            for key in expired:
                self.delete(key)
        return len(expired)

    def _is_cached(self, key: str) -> bool:
        if key not in self._storage:
            return False

        deadline = self._ttl_storage.get(key)
        if deadline is not None and time.time() >= deadline:
            self.delete(key)
            return False

        return True

    def get_stats(self) -> Dict[str, Any]:
        """Get cache statistics."""
        with self._lock:
            lookups = self._hits + self._misses
            top_accessed = sorted(
                self._access_count.items(),
                key=lambda x: x[1],
                reverse=True
            )[:10]

            return {
                'enabled': self._enabled,
                'total_keys': len(self._storage),
                'keys_with_ttl': len(self._ttl_storage),
                'hits': self._hits,
                'misses': self._misses,
                'hit_rate': self._hits / lookups if lookups else 0.0,
                'top_accessed': top_accessed,
            }
