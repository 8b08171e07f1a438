# services/cache_decorators.py
import functools
import logging
from typing import Any, Awaitable, Callable, Optional, TypeVar

from storefront.services.cache_store import CacheStore
from storefront.services.single_flight import SingleFlight

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def _remember(
    cache: CacheStore,
    key: str,
    ttl: int,
    producer: Callable[[], Awaitable[T]],
    namespace: str,
) -> T:
    cached_value = await cache.get(key)
    if cached_value is not None:
        cache.stats.hit(namespace)
        logger.debug(f"Cache hit: {key}")
        return cached_value

    cache.stats.miss(namespace)
    # producer errors propagate untouched
    result = await producer()

    if result is not None:
        stored = await cache.set(key, result, ttl)
        if stored:
            logger.debug(f"Cache set: {key}, TTL: {int(ttl)}s")
        else:
            logger.debug(f"Cache set skipped: {key}")
    return result


async def remember(
    cache: CacheStore,
    key: str,
    ttl: int,
    producer: Callable[[], Awaitable[T]],
    *,
    namespace: str = "api",
    flight: Optional[SingleFlight] = None,
) -> T:
    """
    Return the cached value for ``key`` or compute, store and return it.

    Without ``flight`` concurrent misses on the same key each run ``producer``,
    which is only acceptable for idempotent read producers. Pass a
    SingleFlight to make concurrent callers share one computation.
    """
    if flight is None:
        return await _remember(cache, key, ttl, producer, namespace)
    return await flight.do(key, lambda: _remember(cache, key, ttl, producer, namespace))


def cached(key_builder: Callable[..., str], ttl: int, namespace: str):
    """
    Usage:
    @cached(lambda product_id, **_: product_key(product_id), ttl=CacheTTL.LONG, namespace="product")
    async def get_product(product_id: str, *, db: Database, cache: CacheStore) -> dict:
        ...
    """
    def decorator(fn: Callable[..., Awaitable[Any]]):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            cache: Optional[CacheStore] = kwargs.get("cache")
            if cache is None:
                return await fn(*args, **kwargs)
            key = key_builder(*args, **kwargs)
            return await remember(
                cache, key, ttl, lambda: fn(*args, **kwargs),
                namespace=namespace, flight=kwargs.get("flight"),
            )
        return wrapper
    return decorator
