from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from pymongo.database import Database
from typing import Optional
from storefront.deps import get_db, get_cache, get_single_flight
from storefront.middleware.route_cache import cached_route
from storefront.repos.helper import to_object_id
from storefront.schemas.product_schema import ProductCreate, ProductUpdate, SortOrder
from storefront.services import product_service, characteristics_service
from storefront.services.cache_keys import CacheTTL
from storefront.services.cache_store import CacheStore
from storefront.services.single_flight import SingleFlight

router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
@cached_route(CacheTTL.MEDIUM, required_collections=("products",))
async def list_products(
    request: Request,
    category_id: Optional[str] = None,
    manufacturer_id: Optional[str] = None,
    sort: SortOrder = "created_desc",
    limit: int = Query(20, ge=1, le=100),
    page: int = Query(1, ge=1),
    offset: Optional[int] = Query(None, ge=0),
    fast: bool = False,
    db: Database = Depends(get_db),
):
    """
    Paginated product listing.

    ``offset`` wins over ``page`` when both are given. ``fast`` returns a
    reduced field set for list views.
    """
    return await product_service.list_products(
        db,
        category_id=category_id,
        manufacturer_id=manufacturer_id,
        sort=sort,
        limit=limit,
        offset=offset if offset is not None else (page - 1) * limit,
        fast=fast,
    )


@router.get("/{product_id}")
async def get_product(
    product_id: str,
    db: Database = Depends(get_db),
    cache: CacheStore = Depends(get_cache),
    flight: SingleFlight = Depends(get_single_flight),
):
    to_object_id(product_id)
    doc = await product_service.get_product(db, cache, product_id, flight=flight)
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "data": doc}


@router.get("/{product_id}/characteristics")
@cached_route(CacheTTL.LONG)
async def get_product_characteristics(request: Request, product_id: str, db: Database = Depends(get_db)):
    view = await characteristics_service.get_product_characteristics(db, product_id)
    return {"success": True, "data": view}


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    db: Database = Depends(get_db),
    cache: CacheStore = Depends(get_cache),
):
    doc = await product_service.create_product(db, cache, body.model_dump())
    return {"success": True, "data": doc}


@router.put("/{product_id}")
async def update_product(
    product_id: str,
    body: ProductUpdate,
    db: Database = Depends(get_db),
    cache: CacheStore = Depends(get_cache),
):
    to_object_id(product_id)
    patch = body.model_dump(exclude_none=True)
    if not patch:
        raise ValueError("No fields to update")
    doc = await product_service.update_product(db, cache, product_id, patch)
    if not doc:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "data": doc}


@router.delete("/{product_id}")
async def delete_product(
    product_id: str,
    db: Database = Depends(get_db),
    cache: CacheStore = Depends(get_cache),
):
    to_object_id(product_id)
    deleted = await product_service.delete_product(db, cache, product_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Product not found")
    return {"success": True, "deleted": product_id}
