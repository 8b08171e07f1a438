from fastapi import APIRouter, Depends, status
from pymongo.database import Database
from storefront.deps import get_db, get_cache, get_single_flight
from storefront.schemas.category_schema import CategoryCreate
from storefront.services import category_service
from storefront.services.cache_store import CacheStore
from storefront.services.single_flight import SingleFlight

router = APIRouter(prefix="/api/categories", tags=["categories"])


@router.get("")
async def list_categories(
    db: Database = Depends(get_db),
    cache: CacheStore = Depends(get_cache),
    flight: SingleFlight = Depends(get_single_flight),
):
    items = await category_service.list_categories(db, cache, flight=flight)
    return {"success": True, "count": len(items), "data": items}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_category(
    body: CategoryCreate,
    db: Database = Depends(get_db),
    cache: CacheStore = Depends(get_cache),
):
    doc = await category_service.create_category(db, cache, body.model_dump(exclude_none=True))
    return {"success": True, "data": doc}
