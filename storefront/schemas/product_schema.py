from pydantic import BaseModel, Field, constr
from typing import List, Literal, Optional

# Keep IDs as str at the API boundary. Convert to ObjectId in the repo.
MAX_PRICE = 99_999_999.99
MAX_INT = 2_147_483_647

StockStatus = Literal["in_stock", "out_of_stock", "on_order", "remote_warehouse", "near_warehouse"]
SortOrder = Literal["created_desc", "created_asc", "name_asc", "name_desc", "price_asc", "price_desc"]


class CharacteristicLink(BaseModel):
    value_id: str
    additional_value: Optional[str] = None
    numeric_value: Optional[float] = None
    is_primary: bool = False


class ProductCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    short_name: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None
    article_number: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    discount_price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    image_url: Optional[str] = None
    images: List[str] = []
    category_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    series_id: Optional[str] = None
    in_stock: bool = True
    stock_quantity: int = Field(default=0, ge=0, le=MAX_INT)
    stock_status: StockStatus = "in_stock"
    show_price: bool = True
    characteristics: List[CharacteristicLink] = []


class ProductUpdate(BaseModel):
    name: Optional[constr(strip_whitespace=True, min_length=1)] = None
    short_name: Optional[str] = None
    description: Optional[str] = None
    sku: Optional[str] = None
    article_number: Optional[str] = None
    price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    discount_price: Optional[float] = Field(default=None, ge=0, le=MAX_PRICE)
    image_url: Optional[str] = None
    images: Optional[List[str]] = None
    category_id: Optional[str] = None
    manufacturer_id: Optional[str] = None
    series_id: Optional[str] = None
    in_stock: Optional[bool] = None
    stock_quantity: Optional[int] = Field(default=None, ge=0, le=MAX_INT)
    stock_status: Optional[StockStatus] = None
    show_price: Optional[bool] = None
