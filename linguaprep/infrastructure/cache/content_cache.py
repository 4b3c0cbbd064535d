import logging
from typing import Any, Callable, Optional, TypeVar

from .stores import CacheStore

logger = logging.getLogger(__name__)

T = TypeVar("T")

TEST_KEY = "test:{test_id}"
TEST_QUESTIONS_KEY = "test-questions:{test_id}"
PRACTICE_POOL_KEY = "practice-pool:{filters}"


class ContentCache:
    """
    Read-through cache in front of catalog lookups.

    Every store operation is fail-open: an error is logged and treated as a
    miss (reads) or a no-op (writes, invalidation). Callers always get the
    value the real loader would return.
    """

    def __init__(self, store: CacheStore, *, default_ttl: int = 300, namespace: str = ""):
        self._store = store
        self._default_ttl = default_ttl
        self._namespace = namespace

    def _key(self, key: str) -> str:
        return f"{self._namespace}:{key}" if self._namespace else key

    def get(self, key: str) -> Optional[Any]:
        try:
            return self._store.get(self._key(key))
        except Exception as e:
            logger.warning(f"Cache degraded on get({key}), reading through: {e}")
            return None

    def set(self, key: str, value: Any, ttl_seconds: Optional[int] = None) -> None:
        try:
            self._store.set(self._key(key), value, self._default_ttl if ttl_seconds is None else ttl_seconds)
        except Exception as e:
            logger.warning(f"Cache degraded on set({key}), skipping: {e}")

    def invalidate(self, pattern: str) -> int:
        try:
            removed = self._store.invalidate(self._key(pattern))
            logger.info(f"Invalidated {removed} cache keys matching {pattern}")
            return removed
        except Exception as e:
            logger.warning(f"Cache degraded on invalidate({pattern}): {e}")
            return 0

    def read_through(
        self,
        key: str,
        loader: Callable[[], T],
        *,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
        ttl_seconds: Optional[int] = None,
        cache_if: Callable[[T], bool] = lambda value: value is not None,
    ) -> T:
        """
        Returns the cached value for ``key`` or runs ``loader`` and caches the
        result. A cached entry that cannot be decoded counts as a miss.
        """
        cached = self.get(key)
        if cached is not None:
            try:
                value = decode(cached)
                logger.debug(f"Cache hit: {key}")
                return value
            except Exception as e:
                logger.warning(f"Discarding undecodable cache entry {key}: {e}")

        logger.debug(f"Cache miss: {key}")
        value = loader()
        if cache_if(value):
            try:
                encoded = encode(value)
            except Exception as e:
                logger.warning(f"Cannot encode value for {key}, not caching: {e}")
            else:
                self.set(key, encoded, ttl_seconds)
        return value

    # ---------------------------
    # Invalidation helpers for the admin collaborator
    # ---------------------------

    def invalidate_test(self, test_id: int) -> int:
        return self.invalidate(TEST_KEY.format(test_id=test_id)) + self.invalidate(
            TEST_QUESTIONS_KEY.format(test_id=test_id)
        )

    def invalidate_questions(self) -> int:
        return self.invalidate(TEST_QUESTIONS_KEY.format(test_id="*")) + self.invalidate(
            PRACTICE_POOL_KEY.format(filters="*")
        )
