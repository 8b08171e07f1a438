"""
Typed view of product characteristics.

Two storage schemas coexist: the legacy "simple" one (a product links to a
value from a group's value list) and the template-based EAV one (a product
stores a typed value against a characteristic template). Both are resolved
into the same ``CharacteristicValue`` union at the repo boundary.
"""
from datetime import date
from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Optional, Union


class TextValue(BaseModel):
    kind: Literal["text"] = "text"
    value: str


class NumericValue(BaseModel):
    kind: Literal["numeric"] = "numeric"
    value: float
    unit: Optional[str] = None


class BoolValue(BaseModel):
    kind: Literal["bool"] = "bool"
    value: bool


class DateValue(BaseModel):
    kind: Literal["date"] = "date"
    value: date


class EnumRefValue(BaseModel):
    kind: Literal["enum"] = "enum"
    id: str
    label: str
    color_hex: Optional[str] = None


CharacteristicValue = Annotated[
    Union[TextValue, NumericValue, BoolValue, DateValue, EnumRefValue],
    Field(discriminator="kind"),
]

Source = Literal["simple", "template"]


def display_value(value: CharacteristicValue) -> str:
    if isinstance(value, BoolValue):
        return "Yes" if value.value else "No"
    if isinstance(value, NumericValue):
        number = f"{value.value:g}"
        return f"{number} {value.unit}" if value.unit else number
    if isinstance(value, DateValue):
        return value.value.isoformat()
    if isinstance(value, EnumRefValue):
        return value.label
    return value.value


class Characteristic(BaseModel):
    id: str
    label: str
    value: CharacteristicValue
    display_value: str
    source: Source
    is_primary: bool = False


class CharacteristicGroup(BaseModel):
    group_id: str
    group_name: str
    group_description: Optional[str] = None
    sort_order: Optional[int] = None
    show_in_main_params: bool = False
    main_params_priority: Optional[int] = None
    characteristics: List[Characteristic] = []


class ProductCharacteristics(BaseModel):
    product_id: str
    groups: List[CharacteristicGroup] = []
    sources: List[Source] = []
    total_characteristics: int = 0
    total_groups: int = 0
