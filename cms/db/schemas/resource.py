from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, HttpUrl

from cms.db.schemas.common import BasePaginationQuery, RecordResponse
from cms.db.schemas.ministry import MinistryResponse


class ResourceCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    lang: str = Field(..., min_length=2, max_length=8)
    cover: HttpUrl
    file: str = Field(..., min_length=1)
    type: str = Field(..., min_length=1, max_length=64)
    published_at: datetime
    source: str


class ResourceUpdate(ResourceCreate):
    pass


class ResourceQuery(BasePaginationQuery):
    type: Optional[str] = None
    lang: Optional[str] = None
    year: Optional[int] = Field(None, ge=1900, le=9999)
    source: Optional[str] = None
    keyword: Optional[str] = None


class CombinedQuery(BasePaginationQuery):
    year: Optional[int] = Field(None, ge=1900, le=9999)
    keyword: Optional[str] = None
    category: Optional[str] = None
    type: Optional[str] = None
    tag: Optional[str] = None
    lang: Optional[str] = None
    source: Optional[str] = None
    include_deleted: bool = Field(False, alias="includeDeleted")


class ResourceResponse(RecordResponse):
    title: str
    lang: str
    cover: str
    file: str
    type: str
    published_at: datetime
    source_id: UUID


class ResourcePopulatedResponse(ResourceResponse):
    source: MinistryResponse
