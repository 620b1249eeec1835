from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class RecordResponse(BaseModel):
    id: UUID
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class BasePaginationQuery(BaseModel):
    """Paging and sorting shared by every list endpoint.

    Unknown query parameters are dropped, so they never reach a cache key.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)
    sort_by: Optional[str] = Field(None, alias="sortBy")
    sort_order: Literal["asc", "desc"] = Field("desc", alias="sortOrder")

    def order_by(self, default_field: str) -> str:
        return f"{self.sort_by or default_field} {self.sort_order.upper()}"


class PageMeta(BaseModel):
    items_per_page: int
    current_page: int
    total_pages: int
    total_count: int
