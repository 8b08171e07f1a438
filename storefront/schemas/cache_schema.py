from pydantic import BaseModel, Field, model_validator
from typing import Any, Literal, Optional


class CacheCommand(BaseModel):
    """Body of POST /api/redis-status."""
    action: Literal["set", "get", "ping"]
    cache_type: Optional[str] = None
    key: Optional[str] = None
    data: Any = None
    ttl: Optional[int] = Field(default=None, gt=0)

    @model_validator(mode="after")
    def check_required(self):
        if self.action == "set" and (not self.cache_type or not self.key or self.data is None):
            raise ValueError("Required parameters: cache_type, key, data")
        if self.action == "get" and (not self.cache_type or not self.key):
            raise ValueError("Required parameters: cache_type, key")
        return self
