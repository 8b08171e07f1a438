# services/cache_invalidation.py
import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Set

from storefront.services.cache_keys import (
    CACHE_PREFIXES,
    CATEGORY_WRITE_PATTERNS,
    PRODUCT_WRITE_PATTERNS,
    CachePatterns,
)
from storefront.services.cache_store import CacheStore

logger = logging.getLogger(__name__)


@dataclass
class InvalidationResult:
    patterns: List[str]
    deleted_count: int = 0
    errors: List[str] = field(default_factory=list)

    @property
    def success(self) -> bool:
        return not self.errors


async def invalidate(cache: CacheStore, patterns: Iterable[str]) -> InvalidationResult:
    """
    Delete every key matching any of ``patterns`` in one bulk delete.

    Best-effort: failures are logged and reported in the result, never raised,
    because the write that triggered the invalidation already succeeded.
    """
    if isinstance(patterns, str):
        patterns = [patterns]
    result = InvalidationResult(patterns=[p for p in patterns if p])

    keys: Set[str] = set()
    for pattern in result.patterns:
        try:
            keys.update(await cache.scan(pattern))
        except Exception as e:
            logger.error(f"Failed to scan cache pattern {pattern}: {str(e)}")
            result.errors.append(f"{pattern}: {str(e)}")

    if keys:
        try:
            result.deleted_count = await cache.delete(sorted(keys))
        except Exception as e:
            logger.error(f"Failed to delete {len(keys)} cache keys: {str(e)}")
            result.errors.append(str(e))

    logger.info(f"Cache invalidated: {', '.join(result.patterns)}, deleted: {result.deleted_count}")
    return result


async def invalidate_products(cache: CacheStore, product_id: Optional[str] = None) -> InvalidationResult:
    patterns = list(PRODUCT_WRITE_PATTERNS)
    if product_id:
        patterns.append(CachePatterns.product(product_id))
    return await invalidate(cache, patterns)


async def invalidate_categories(cache: CacheStore) -> InvalidationResult:
    return await invalidate(cache, CATEGORY_WRITE_PATTERNS)


async def flush_prefix(cache: CacheStore, prefix: str) -> InvalidationResult:
    return await invalidate(cache, [CachePatterns.prefix(prefix)])


async def flush_all(cache: CacheStore) -> InvalidationResult:
    return await invalidate(cache, [CachePatterns.prefix(p) for p in CACHE_PREFIXES])
