import fnmatch
import json
import logging
import threading
import time
from typing import Any, Callable, Dict, Optional, Protocol, Tuple

import redis

from linguaprep.domain.errors import InfrastructureDegraded

logger = logging.getLogger(__name__)


class CacheStore(Protocol):
    def get(self, key: str) -> Optional[Any]:
        """
        Returns the stored value, or None when the key is absent or expired.
        """
        ...

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        ...

    def invalidate(self, pattern: str) -> int:
        """
        Deletes every key matching a glob pattern (e.g. ``test-questions:*``)
        and returns how many were removed.
        """
        ...

    def close(self) -> None:
        ...


class MemoryCacheStore:
    """
    Process-local store with per-key expiry.

    Values are held as JSON text so a hit returns a fresh copy, never a
    reference callers could mutate.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._data: Dict[str, Tuple[str, float]] = {}
        self._lock = threading.Lock()

    def get(self, key: str) -> Optional[Any]:
        with self._lock:
            entry = self._data.get(key)
            if entry is None:
                return None
            raw, expires_at = entry
            if self._clock() >= expires_at:
                del self._data[key]
                return None
        return json.loads(raw)

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise InfrastructureDegraded(f"Cannot serialize value for {key}: {e}")
        with self._lock:
            self._data[key] = (raw, self._clock() + ttl_seconds)

    def invalidate(self, pattern: str) -> int:
        with self._lock:
            doomed = [k for k in self._data if fnmatch.fnmatchcase(k, pattern)]
            for k in doomed:
                del self._data[k]
        return len(doomed)

    def close(self) -> None:
        with self._lock:
            self._data.clear()


class RedisCacheStore:
    """
    Redis-backed store. Connection and command errors are re-raised as
    ``InfrastructureDegraded``; short socket timeouts keep a dead server
    from stalling requests.
    """

    def __init__(self, url: str, *, socket_timeout: float = 0.5, client: Optional[redis.Redis] = None):
        self._redis = client or redis.Redis.from_url(
            url,
            decode_responses=True,
            socket_timeout=socket_timeout,
            socket_connect_timeout=socket_timeout,
            retry_on_timeout=False,
        )

    def get(self, key: str) -> Optional[Any]:
        try:
            raw = self._redis.get(key)
        except redis.RedisError as e:
            raise InfrastructureDegraded(f"Cache get failed for {key}: {e}")
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError) as e:
            raise InfrastructureDegraded(f"Corrupt cache entry for {key}: {e}")

    def set(self, key: str, value: Any, ttl_seconds: int) -> None:
        try:
            raw = json.dumps(value)
        except (TypeError, ValueError) as e:
            raise InfrastructureDegraded(f"Cannot serialize value for {key}: {e}")
        try:
            self._redis.setex(key, ttl_seconds, raw)
        except redis.RedisError as e:
            raise InfrastructureDegraded(f"Cache set failed for {key}: {e}")

    def invalidate(self, pattern: str) -> int:
        removed = 0
        try:
            batch = []
            for key in self._redis.scan_iter(match=pattern, count=500):
                batch.append(key)
                if len(batch) >= 500:
                    removed += self._redis.delete(*batch)
                    batch = []
            if batch:
                removed += self._redis.delete(*batch)
        except redis.RedisError as e:
            raise InfrastructureDegraded(f"Cache invalidation failed for {pattern}: {e}")
        return removed

    def close(self) -> None:
        try:
            self._redis.close()
        except redis.RedisError as e:
            logger.warning(f"Error closing Redis connection: {e}")


def build_cache_store(redis_url: str, socket_timeout: float = 0.5) -> CacheStore:
    if redis_url:
        logger.info("Using Redis cache store")
        return RedisCacheStore(redis_url, socket_timeout=socket_timeout)
    logger.info("REDIS_URL not set, using in-memory cache store")
    return MemoryCacheStore()
