# services/category_service.py
from typing import Dict, Any, List, Optional
from pymongo.database import Database
from fastapi.concurrency import run_in_threadpool
from storefront.repos import categories as repo
from storefront.services.cache_store import CacheStore
from storefront.services.cache_keys import CacheTTL, category_list_key
from storefront.services.cache_decorators import remember
from storefront.services.cache_invalidation import invalidate_categories
from storefront.services.single_flight import SingleFlight

CATEGORY_LIST_TTL = CacheTTL.DAILY


async def list_categories(db: Database, cache: CacheStore, flight: Optional[SingleFlight] = None) -> List[Dict[str, Any]]:
    return await remember(
        cache,
        category_list_key(),
        CATEGORY_LIST_TTL,
        lambda: run_in_threadpool(repo.list_categories, db),
        namespace="category",
        flight=flight,
    )


async def create_category(db: Database, cache: CacheStore, data: Dict[str, Any]) -> Dict[str, Any]:
    doc = await run_in_threadpool(repo.insert_category, db, data)
    await invalidate_categories(cache)
    return doc
