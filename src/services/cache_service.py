"""
Cache service for read-through caching of clinic views.

Two backends are available:
- InMemoryCacheBackend: process-local dict with per-key expiry (default)
- RedisCacheBackend: shared Redis instance, used when REDIS_URL is set

The cache is an optimization only. Backend failures are logged and treated
as misses so that callers always fall back to the database.
"""

import fnmatch
import json
import logging
import threading
import time
from typing import Any, Dict, Optional, Protocol, Tuple

import redis

from core.config import REDIS_URL, CLINIC_CACHE_TTL_SECONDS

logger = logging.getLogger(__name__)


class CacheBackend(Protocol):
    """Minimal key-value interface the cache service relies on."""

    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str, ttl_seconds: int) -> None: ...

    def delete(self, key: str) -> None: ...

    def delete_pattern(self, pattern: str) -> int: ...


class InMemoryCacheBackend:
    """Thread-safe in-process backend. Expired entries are dropped on read and swept on write."""

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            value, expires_at = entry
            if expires_at <= time.monotonic():
                del self._entries[key]
                return None
            return value

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        with self._lock:
            now = time.monotonic()
            expired = [k for k, (_, expires_at) in self._entries.items() if expires_at <= now]
            for k in expired:
                del self._entries[k]
            self._entries[key] = (value, now + ttl_seconds)

    def delete(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)

    def delete_pattern(self, pattern: str) -> int:
        with self._lock:
            keys = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for key in keys:
                del self._entries[key]
            return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()


class RedisCacheBackend:
    """Redis-backed cache shared across API processes."""

    def __init__(self, client: "redis.Redis") -> None:
        self._client = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCacheBackend":
        return cls(redis.Redis.from_url(url, decode_responses=True))

    def get(self, key: str) -> Optional[str]:
        return self._client.get(key)

    def set(self, key: str, value: str, ttl_seconds: int) -> None:
        self._client.set(key, value, ex=ttl_seconds)

    def delete(self, key: str) -> None:
        self._client.delete(key)

    def delete_pattern(self, pattern: str) -> int:
        deleted = 0
        for key in self._client.scan_iter(match=pattern):
            deleted += self._client.delete(key)
        return deleted


class CacheService:
    """
    JSON cache on top of a CacheBackend.

    Values are serialized with json.dumps, so callers should store plain
    JSON-compatible structures (e.g. pydantic model_dump(mode="json")).
    """

    def __init__(self, backend: CacheBackend, default_ttl: int = CLINIC_CACHE_TTL_SECONDS) -> None:
        self.backend = backend
        self.default_ttl = default_ttl

    def get(self, key: str) -> Optional[Any]:
        """Return the cached value, or None on miss or backend failure."""
        try:
            raw = self.backend.get(key)
        except Exception as e:
            logger.warning(f"Cache get failed for {key}: {e}")
            return None
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry {key}")
            self.delete(key)
            return None

    def set(self, key: str, value: Any, ttl: Optional[int] = None) -> None:
        try:
            self.backend.set(key, json.dumps(value), ttl if ttl is not None else self.default_ttl)
        except Exception as e:
            logger.warning(f"Cache set failed for {key}: {e}")

    def delete(self, key: str) -> None:
        try:
            self.backend.delete(key)
        except Exception as e:
            logger.warning(f"Cache delete failed for {key}: {e}")

    def delete_pattern(self, pattern: str) -> int:
        """Delete every key matching a glob pattern (e.g. 'clinic:*')."""
        try:
            return self.backend.delete_pattern(pattern)
        except Exception as e:
            logger.warning(f"Cache pattern delete failed for {pattern}: {e}")
            return 0


def build_cache_service(redis_url: str = REDIS_URL) -> CacheService:
    """Create the cache service for the configured backend."""
    if redis_url:
        logger.info("Using Redis cache backend")
        return CacheService(RedisCacheBackend.from_url(redis_url))
    logger.info("Using in-memory cache backend")
    return CacheService(InMemoryCacheBackend())
