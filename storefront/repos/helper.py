import json
from datetime import date, datetime
from typing import Dict, Iterable
from bson import ObjectId
from bson.errors import InvalidId
from pymongo.database import Database


class JSONEncoder(json.JSONEncoder):
    """json encoder that understands Mongo ids and dates."""

    def default(self, o):
        if isinstance(o, ObjectId):
            return str(o)
        if isinstance(o, (datetime, date)):
            return o.isoformat()
        return super().default(o)


def to_object_id(id_str: str) -> ObjectId:
    try:
        return ObjectId(id_str)
    except (InvalidId, TypeError):
        raise ValueError(f"Invalid id: {id_str}")


def serialize_id(doc: Dict) -> Dict:
    doc["_id"] = str(doc["_id"])
    return doc


def collections_exist(db: Database, names: Iterable[str]) -> Dict[str, bool]:
    existing = set(db.list_collection_names())
    return {name: name in existing for name in names}
