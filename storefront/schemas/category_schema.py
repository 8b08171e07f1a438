from pydantic import BaseModel, constr
from typing import Optional


class CategoryCreate(BaseModel):
    name: constr(strip_whitespace=True, min_length=1)
    slug: Optional[str] = None
    parent_id: Optional[str] = None
    sort_order: int = 0
    is_active: bool = True
