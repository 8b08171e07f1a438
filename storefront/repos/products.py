from pymongo.database import Database
from pymongo import ASCENDING, DESCENDING
from typing import Dict, Any, List, Optional, Tuple
from datetime import datetime, timezone
from storefront.repos.helper import serialize_id, to_object_id
from storefront.repos import characteristics as characteristics_repo

COLLECTION = "products"

SORT_MAP = {
    "created_desc": ("created_at", DESCENDING),
    "created_asc": ("created_at", ASCENDING),
    "name_asc": ("name", ASCENDING),
    "name_desc": ("name", DESCENDING),
    "price_asc": ("price", ASCENDING),
    "price_desc": ("price", DESCENDING),
}

# Fields returned by the light ("fast") listing
FAST_PROJECTION = {
    "name": 1, "short_name": 1, "sku": 1, "article_number": 1, "price": 1, "discount_price": 1,
    "image_url": 1, "in_stock": 1, "stock_quantity": 1, "stock_status": 1, "show_price": 1,
    "category_id": 1, "manufacturer_id": 1, "series_id": 1, "created_at": 1, "updated_at": 1,
}

NOT_DELETED = {"is_deleted": {"$ne": True}}

# ---------------------------
# Indexes
# ---------------------------

def ensure_indexes(db: Database) -> None:
    db.products.create_index([("category_id", ASCENDING), ("created_at", DESCENDING)])
    db.products.create_index([("manufacturer_id", ASCENDING)])
    db.products.create_index([("sku", ASCENDING)], unique=True, sparse=True)

# ---------------------------
# Queries
# ---------------------------

def _build_match(category_id: Optional[str], manufacturer_id: Optional[str]) -> Dict[str, Any]:
    match: Dict[str, Any] = dict(NOT_DELETED)
    if category_id:
        match["category_id"] = str(category_id)
    if manufacturer_id:
        match["manufacturer_id"] = str(manufacturer_id)
    return match

def list_products(
    db: Database,
    *,
    category_id: Optional[str] = None,
    manufacturer_id: Optional[str] = None,
    sort: str = "created_desc",
    limit: int = 20,
    offset: int = 0,
    fast: bool = False,
) -> Tuple[int, List[Dict[str, Any]]]:
    match = _build_match(category_id, manufacturer_id)
    field, direction = SORT_MAP.get(sort, SORT_MAP["created_desc"])

    total = db.products.count_documents(match)
    cursor = db.products.find(match, FAST_PROJECTION if fast else None).sort([(field, direction), ("_id", direction)])
    if offset:
        cursor = cursor.skip(offset)
    if limit:
        cursor = cursor.limit(limit)
    return total, [serialize_id(doc) for doc in cursor]

def get_product_by_id(db: Database, product_id: str) -> Optional[Dict[str, Any]]:
    doc = db.products.find_one({"_id": to_object_id(product_id), **NOT_DELETED})
    if not doc:
        return None
    return serialize_id(doc)

# ---------------------------
# Writes
# ---------------------------

def insert_product(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    now = datetime.now(timezone.utc)
    links = data.pop("characteristics", None) or []
    doc = {
        **data,
        "short_name": data.get("short_name") or data["name"],
        "is_deleted": False,
        "created_at": now,
        "updated_at": now,
    }
    result = db.products.insert_one(doc)
    doc["_id"] = str(result.inserted_id)
    if links:
        characteristics_repo.insert_legacy_links(db, doc["_id"], links)
    return doc

def update_product(db: Database, product_id: str, patch: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    patch = {**patch, "updated_at": datetime.now(timezone.utc)}
    res = db.products.update_one({"_id": to_object_id(product_id), **NOT_DELETED}, {"$set": patch})
    if res.matched_count == 0:
        return None
    return get_product_by_id(db, product_id)

def soft_delete_product(db: Database, product_id: str) -> bool:
    res = db.products.update_one(
        {"_id": to_object_id(product_id), **NOT_DELETED},
        {"$set": {"is_deleted": True, "updated_at": datetime.now(timezone.utc)}}
    )
    return res.matched_count > 0
