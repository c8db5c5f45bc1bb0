"""
Duplicate-check cache: pass identifiers known to be checked in.

The cache only ever accelerates a "duplicate" answer; the repository stays
the source of truth. Entries are added lazily after a check-in is observed
and never evicted. The in-memory cache is per process and starts empty on
restart; use the Redis backend when several instances must share it.
"""
import logging
import threading
from functools import lru_cache
from typing import Optional, Set

import redis

from config.settings import settings

logger = logging.getLogger("DuplicateCache")

# Redis client (lazy initialization)
_redis_client: Optional[redis.Redis] = None


def get_redis_client() -> redis.Redis:
    """Get Redis client with lazy initialization"""
    global _redis_client
    if _redis_client is None:
        if not settings.REDIS_URL:
            raise RuntimeError("REDIS_URL must be set for the redis duplicate cache")
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client


class DuplicateCache:
    """Thread-safe set of checked-in pass identifiers for one process"""

    def __init__(self):
        self._ids: Set[str] = set()
        self._lock = threading.Lock()

    def has(self, pass_id: str) -> bool:
        with self._lock:
            return pass_id in self._ids

    def add(self, pass_id: str) -> None:
        with self._lock:
            self._ids.add(pass_id)

    def clear(self) -> None:
        with self._lock:
            self._ids.clear()

    def __contains__(self, pass_id: str) -> bool:
        return self.has(pass_id)

    def __len__(self) -> int:
        with self._lock:
            return len(self._ids)


class RedisDuplicateCache(DuplicateCache):
    """Same contract backed by one Redis set, shared across instances"""

    def __init__(self, client: Optional[redis.Redis] = None, key: Optional[str] = None):
        self.redis_client = client or get_redis_client()
        self.key = key or settings.DUPLICATE_CACHE_KEY

    def has(self, pass_id: str) -> bool:
        try:
            return bool(self.redis_client.sismember(self.key, pass_id))
        except redis.RedisError as exc:
            # A miss only costs a repository lookup
            logger.warning("Duplicate cache read failed for %s: %s", pass_id, exc)
            return False

    def add(self, pass_id: str) -> None:
        try:
            self.redis_client.sadd(self.key, pass_id)
        except redis.RedisError as exc:
            logger.warning("Duplicate cache write failed for %s: %s", pass_id, exc)

    def clear(self) -> None:
        try:
            self.redis_client.delete(self.key)
        except redis.RedisError as exc:
            logger.warning("Duplicate cache clear failed: %s", exc)

    def __len__(self) -> int:
        try:
            return int(self.redis_client.scard(self.key))
        except redis.RedisError:
            return 0


@lru_cache()
def get_duplicate_cache() -> DuplicateCache:
    """Process-wide cache instance, chosen by DUPLICATE_CACHE_BACKEND"""
    if settings.DUPLICATE_CACHE_BACKEND == "redis":
        logger.info("Using Redis duplicate cache at key %s", settings.DUPLICATE_CACHE_KEY)
        return RedisDuplicateCache()
    return DuplicateCache()
