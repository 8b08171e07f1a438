from pymongo.database import Database
from bson import ObjectId
from typing import Dict, Any, Iterable, List

# Legacy "simple" schema
LEGACY_LINKS = "product_characteristics_simple"
LEGACY_VALUES = "characteristics_values_simple"
GROUPS = "characteristics_groups_simple"

# Template-based EAV schema
TEMPLATE_VALUES = "product_characteristic_values"
TEMPLATES = "characteristic_templates"
ENUM_VALUES = "characteristic_enum_values"

# ---------------------------
# Helpers
# ---------------------------

def _id_candidates(ids: Iterable[Any]) -> List[Any]:
    """Reference docs may be keyed by ObjectId or by plain string ids."""
    out: List[Any] = []
    for raw in ids:
        if raw is None:
            continue
        out.append(raw)
        text = str(raw)
        if text != raw:
            out.append(text)
        if ObjectId.is_valid(text):
            out.append(ObjectId(text))
    return out

def _index(docs: Iterable[Dict[str, Any]]) -> Dict[str, Dict[str, Any]]:
    return {str(doc["_id"]): doc for doc in docs}

def _fetch(db: Database, collection: str, ids: Iterable[Any], extra: Dict[str, Any] = None) -> Dict[str, Dict[str, Any]]:
    candidates = _id_candidates(set(str(i) for i in ids if i is not None))
    if not candidates:
        return {}
    query = {"_id": {"$in": candidates}, **(extra or {})}
    return _index(db[collection].find(query))

# ---------------------------
# Legacy schema
# ---------------------------

def insert_legacy_links(db: Database, product_id: str, links: List[Dict[str, Any]]) -> int:
    docs = [
        {
            "product_id": str(product_id),
            "value_id": str(link["value_id"]),
            "additional_value": link.get("additional_value"),
            "numeric_value": link.get("numeric_value"),
            "is_primary": bool(link.get("is_primary", False)),
        }
        for link in links if link.get("value_id")
    ]
    if not docs:
        return 0
    db[LEGACY_LINKS].insert_many(docs)
    return len(docs)

def fetch_legacy_rows(db: Database, product_id: str) -> List[Dict[str, Any]]:
    """Links joined with their value and group; inactive values/groups dropped."""
    links = list(db[LEGACY_LINKS].find({"product_id": str(product_id)}))
    values = _fetch(db, LEGACY_VALUES, (l.get("value_id") for l in links), {"is_active": {"$ne": False}})
    groups = _fetch(db, GROUPS, (v.get("group_id") for v in values.values()), {"is_active": {"$ne": False}})

    rows = []
    for link in links:
        value = values.get(str(link.get("value_id")))
        if not value:
            continue
        group = groups.get(str(value.get("group_id")))
        if not group:
            continue
        rows.append({"link": link, "value": value, "group": group})
    return rows

# ---------------------------
# Template schema
# ---------------------------

def fetch_template_rows(db: Database, product_id: str) -> List[Dict[str, Any]]:
    """Typed values joined with template, enum option and group."""
    values = list(db[TEMPLATE_VALUES].find({"product_id": str(product_id)}))
    templates = _fetch(db, TEMPLATES, (v.get("template_id") for v in values))
    enums = _fetch(db, ENUM_VALUES, (v.get("enum_value_id") for v in values))
    groups = _fetch(db, GROUPS, (t.get("group_id") for t in templates.values()), {"is_active": {"$ne": False}})

    rows = []
    for value in values:
        template = templates.get(str(value.get("template_id")))
        if not template:
            continue
        group = groups.get(str(template.get("group_id")))
        if not group:
            continue
        enum = enums.get(str(value.get("enum_value_id"))) if value.get("enum_value_id") else None
        rows.append({"value": value, "template": template, "enum": enum, "group": group})
    return rows
