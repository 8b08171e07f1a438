# services/characteristics_service.py
import logging
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Tuple

from fastapi.concurrency import run_in_threadpool
from pymongo.database import Database

from storefront.repos import characteristics as repo
from storefront.schemas.characteristic_schema import (
    BoolValue,
    Characteristic,
    CharacteristicGroup,
    CharacteristicValue,
    DateValue,
    EnumRefValue,
    NumericValue,
    ProductCharacteristics,
    TextValue,
    display_value,
)

logger = logging.getLogger(__name__)

# Groups without ordering info sort last
UNORDERED = 999


def _as_date(raw: Any) -> date:
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    return date.fromisoformat(str(raw)[:10])


def resolve_legacy_value(row: Dict[str, Any]) -> CharacteristicValue:
    link, value = row["link"], row["value"]
    if link.get("numeric_value") is not None:
        return NumericValue(value=float(link["numeric_value"]))
    if link.get("additional_value"):
        return TextValue(value=str(link["additional_value"]))
    return EnumRefValue(id=str(value["_id"]), label=str(value.get("value", "")), color_hex=value.get("color_hex"))


def resolve_template_value(row: Dict[str, Any]) -> Optional[CharacteristicValue]:
    value, template, enum = row["value"], row["template"], row["enum"]

    if value.get("enum_value_id"):
        label = None
        if enum:
            label = (enum.get("display_name") or "").strip() or (enum.get("value") or "").strip()
        if not label:
            label = template.get("name") or f"Enum ID: {value['enum_value_id']}"
        return EnumRefValue(
            id=str(value["enum_value_id"]),
            label=label,
            color_hex=enum.get("color_hex") if enum else None,
        )
    if value.get("bool_value") is not None:
        return BoolValue(value=bool(value["bool_value"]))
    if value.get("numeric_value") is not None:
        return NumericValue(value=float(value["numeric_value"]), unit=template.get("unit_code"))
    if value.get("raw_value"):
        return TextValue(value=str(value["raw_value"]))
    if value.get("date_value"):
        return DateValue(value=_as_date(value["date_value"]))
    return None


def _group_model(group: Dict[str, Any]) -> CharacteristicGroup:
    return CharacteristicGroup(
        group_id=str(group["_id"]),
        group_name=group.get("name", ""),
        group_description=group.get("description"),
        sort_order=group.get("sort_order"),
        show_in_main_params=bool(group.get("show_in_main_params", False)),
        main_params_priority=group.get("main_params_priority"),
    )


def _group_order(group: CharacteristicGroup) -> Tuple[int, int, str]:
    sort_order = group.sort_order if group.sort_order is not None else UNORDERED
    priority = group.main_params_priority if group.main_params_priority is not None else UNORDERED
    return sort_order, priority, group.group_name


def merge_characteristics(
    product_id: str,
    legacy_rows: List[Dict[str, Any]],
    template_rows: List[Dict[str, Any]],
) -> ProductCharacteristics:
    """
    Merge both schemas into one grouped view.

    Legacy entries are added first; a template entry whose (group, label)
    is already present from the legacy schema is dropped.
    """
    groups: Dict[str, CharacteristicGroup] = {}
    legacy_labels = set()
    sources = []

    def add(group_doc: Dict[str, Any], item: Characteristic) -> None:
        group_id = str(group_doc["_id"])
        marker = (group_id, item.label.casefold())
        if item.source == "simple":
            legacy_labels.add(marker)
        elif marker in legacy_labels:
            logger.debug(f"Product {product_id}: template value for '{item.label}' shadowed by legacy value")
            return
        if group_id not in groups:
            groups[group_id] = _group_model(group_doc)
        groups[group_id].characteristics.append(item)
        if item.source not in sources:
            sources.append(item.source)

    for row in sorted(legacy_rows, key=lambda r: str(r["value"].get("value", ""))):
        try:
            value = resolve_legacy_value(row)
        except (TypeError, ValueError) as e:
            logger.warning(f"Product {product_id}: skipping malformed value on link {row['link'].get('_id')}: {str(e)}")
            continue
        add(row["group"], Characteristic(
            id=f"simple-{row['link']['_id']}",
            label=row["group"].get("name", ""),
            value=value,
            display_value=display_value(value),
            source="simple",
            is_primary=bool(row["link"].get("is_primary", False)),
        ))

    for row in sorted(template_rows, key=lambda r: str(r["template"].get("name", ""))):
        try:
            value = resolve_template_value(row)
        except (TypeError, ValueError) as e:
            logger.warning(f"Product {product_id}: skipping malformed value for template {row['template'].get('_id')}: {str(e)}")
            continue
        if value is None:
            continue
        template_id = row["template"]["_id"]
        suffix = f"enum-{value.id}" if isinstance(value, EnumRefValue) else "value"
        add(row["group"], Characteristic(
            id=f"eav-{template_id}-{suffix}",
            label=row["template"].get("name", ""),
            value=value,
            display_value=display_value(value),
            source="template",
        ))

    ordered = sorted(groups.values(), key=_group_order)
    return ProductCharacteristics(
        product_id=str(product_id),
        groups=ordered,
        sources=sources,
        total_characteristics=sum(len(g.characteristics) for g in ordered),
        total_groups=len(ordered),
    )


async def get_product_characteristics(db: Database, product_id: str) -> ProductCharacteristics:
    legacy_rows = await run_in_threadpool(repo.fetch_legacy_rows, db, product_id)
    template_rows = await run_in_threadpool(repo.fetch_template_rows, db, product_id)
    return merge_characteristics(product_id, legacy_rows, template_rows)
