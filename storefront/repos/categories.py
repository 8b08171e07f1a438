from pymongo.database import Database
from pymongo import ASCENDING
from typing import Dict, Any, List
from datetime import datetime, timezone
from storefront.repos.helper import serialize_id

COLLECTION = "product_categories"


def ensure_indexes(db: Database) -> None:
    db.product_categories.create_index([("parent_id", ASCENDING), ("sort_order", ASCENDING)])
    db.product_categories.create_index([("slug", ASCENDING)], unique=True, sparse=True)


def list_categories(db: Database) -> List[Dict[str, Any]]:
    cursor = db.product_categories.find({"is_active": True}).sort([("sort_order", ASCENDING), ("name", ASCENDING)])
    return [serialize_id(doc) for doc in cursor]


def insert_category(db: Database, data: Dict[str, Any]) -> Dict[str, Any]:
    doc = {**data, "created_at": datetime.now(timezone.utc)}
    result = db.product_categories.insert_one(doc)
    doc["_id"] = str(result.inserted_id)
    return doc
