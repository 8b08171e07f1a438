import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from storefront.repos import categories as categories_repo
from storefront.services.cache_store import CacheStore
from storefront.services.cache_keys import API_PREFIX, CacheTTL, build_key, category_list_key
from storefront.services import product_service

logger = logging.getLogger(__name__)

WARM_PAGE_SIZE = 20


@dataclass
class WarmupItem:
    key: str
    producer: Callable[[], Awaitable[Any]]
    ttl: int = CacheTTL.MEDIUM


async def _warm_one(cache: CacheStore, item: WarmupItem) -> bool:
    value = await item.producer()
    if value is None:
        return False
    return await cache.set(item.key, value, item.ttl)


async def warmup(cache: CacheStore, items: List[WarmupItem]) -> Dict[str, int]:
    """Run every producer in parallel and store its result. Failures are counted, not raised."""
    results = await asyncio.gather(*(_warm_one(cache, item) for item in items), return_exceptions=True)

    success = 0
    for item, outcome in zip(items, results):
        if outcome is True:
            success += 1
        elif isinstance(outcome, Exception):
            logger.warning(f"Cache warmup failed for {item.key}: {str(outcome)}")
        else:
            logger.warning(f"Cache warmup skipped for {item.key}")

    logger.info(f"Cache warmup: {success}/{len(items)} keys stored")
    return {"success": success, "failed": len(items) - success, "total": len(items)}


def critical_items(db: Database) -> List[WarmupItem]:
    # The listing key matches what the route cache computes for a bare GET /api/products
    return [
        WarmupItem(
            key=build_key(API_PREFIX, "products"),
            producer=lambda: product_service.list_products(db, limit=WARM_PAGE_SIZE),
            ttl=CacheTTL.MEDIUM,
        ),
        WarmupItem(
            key=category_list_key(),
            producer=lambda: run_in_threadpool(categories_repo.list_categories, db),
            ttl=CacheTTL.DAILY,
        ),
    ]


async def warm_critical_caches(db: Database, cache: CacheStore) -> Dict[str, int]:
    """Warm the product listing and the category tree"""
    return await warmup(cache, critical_items(db))
