"""Customer read cache.

Two ``TTLCache`` maps (paged searches and single-customer details)
sharing one generation token. Every customer write advances the
generation; entries stored under an older generation are misses from
then on and age out through TTL or LRU eviction, so invalidation never
has to enumerate keys.
"""

import threading
import time
from typing import Any, Callable, Hashable, Optional
from cachetools import TTLCache
from backoffice.core.logging_config import get_logger
from backoffice.core_settings import get_settings

logger = get_logger(__name__)

DEFAULT_TTL_SECONDS = 60.0
DEFAULT_MAXSIZE = 1024

_MISSING = object()

class CustomerCache:
    def __init__(
        self,
        ttl: float = DEFAULT_TTL_SECONDS,
        maxsize: int = DEFAULT_MAXSIZE,
        timer: Callable[[], float] = time.monotonic,
    ):
        self._lock = threading.Lock()
        self._generation = 0
        self._searches = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)
        self._details = TTLCache(maxsize=maxsize, ttl=ttl, timer=timer)

    @property
    def generation(self) -> int:
        with self._lock:
            return self._generation

    def search(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        return self._get_or_load(self._searches, key, loader)

    def detail(self, key: Hashable, loader: Callable[[], Any]) -> Any:
        return self._get_or_load(self._details, key, loader)

    def invalidate(self) -> int:
        """Advance the generation; every entry cached before this call becomes a miss."""
        with self._lock:
            self._generation += 1
            generation = self._generation
        logger.info("Customer cache invalidated", extra={"extra_fields": {"generation": generation}})
        return generation

    def _get_or_load(self, store: TTLCache, key: Hashable, loader: Callable[[], Any]) -> Any:
        with self._lock:
            generation = self._generation
            value = store.get((generation, key), _MISSING)
        if value is not _MISSING:
            logger.debug(f"Customer cache hit: {key!r}")
            return value
        logger.debug(f"Customer cache miss: {key!r}")
        value = loader()
        # Stored under the generation seen before loading: a write that lands
        # while the loader runs turns this entry into a miss right away.
        if value is not None:
            with self._lock:
                store[(generation, key)] = value
        return value

_customer_cache: Optional[CustomerCache] = None
_customer_cache_lock = threading.Lock()

def get_customer_cache() -> CustomerCache:
    """Process-wide cache instance (FastAPI dependency)."""
    global _customer_cache
    if _customer_cache is None:
        with _customer_cache_lock:
            if _customer_cache is None:
                settings = get_settings()
                _customer_cache = CustomerCache(
                    ttl=settings.CUSTOMER_CACHE_TTL_SECONDS,
                    maxsize=settings.CUSTOMER_CACHE_MAXSIZE,
                )
    return _customer_cache
