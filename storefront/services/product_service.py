# services/product_service.py
import asyncio
import logging
from typing import Dict, Any, Optional
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from storefront.config import settings
from storefront.repos import products as repo
from storefront.services.cache_store import CacheStore
from storefront.services.cache_keys import CacheTTL, product_key
from storefront.services.cache_decorators import remember
from storefront.services.cache_invalidation import invalidate_products
from storefront.services.single_flight import SingleFlight

logger = logging.getLogger(__name__)

PRODUCT_TTL = CacheTTL.LONG


async def list_products(
    db: Database,
    *,
    category_id: Optional[str] = None,
    manufacturer_id: Optional[str] = None,
    sort: str = "created_desc",
    limit: int = 20,
    offset: int = 0,
    fast: bool = False,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """List products; a query running past ``timeout`` raises asyncio.TimeoutError."""
    total, items = await asyncio.wait_for(
        run_in_threadpool(
            repo.list_products, db,
            category_id=category_id, manufacturer_id=manufacturer_id,
            sort=sort, limit=limit, offset=offset, fast=fast,
        ),
        timeout=timeout or settings.QUERY_TIMEOUT_SECONDS,
    )
    return {"success": True, "count": len(items), "total": total, "data": items}


async def get_product(
    db: Database,
    cache: CacheStore,
    product_id: str,
    flight: Optional[SingleFlight] = None,
) -> Optional[Dict[str, Any]]:
    """Retrieve a product by id, read-through cached under ``product:{id}``."""
    return await remember(
        cache,
        product_key(product_id),
        PRODUCT_TTL,
        lambda: run_in_threadpool(repo.get_product_by_id, db, product_id),
        namespace="product",
        flight=flight,
    )


async def create_product(db: Database, cache: CacheStore, data: Dict[str, Any]) -> Dict[str, Any]:
    doc = await run_in_threadpool(repo.insert_product, db, data)
    result = await invalidate_products(cache, doc["_id"])
    logger.info(f"Product created: {doc['_id']}, cache keys cleared: {result.deleted_count}")
    return doc


async def update_product(db: Database, cache: CacheStore, product_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    doc = await run_in_threadpool(repo.update_product, db, product_id, patch)
    if doc is None:
        return None
    await invalidate_products(cache, product_id)
    return doc


async def delete_product(db: Database, cache: CacheStore, product_id: str) -> bool:
    deleted = await run_in_threadpool(repo.soft_delete_product, db, product_id)
    if deleted:
        await invalidate_products(cache, product_id)
    return deleted
