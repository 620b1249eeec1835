from typing import Any, Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field

from cms.db.schemas.common import RecordResponse


class ContentInfo(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    document: dict[str, Any]
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None


class ContentInfoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    document: Optional[dict[str, Any]] = None
    description: Optional[str] = None
    thumbnail_url: Optional[str] = None


class ContentCreate(BaseModel):
    en: Optional[ContentInfo] = None
    kh: Optional[ContentInfo] = None
    parent_id: Optional[str] = None
    category: Optional[str] = None
    status: Literal["draft", "published"] = "draft"
    tags: list[str] = []
    source: Optional[str] = None


class ContentUpdate(BaseModel):
    en: Optional[ContentInfoUpdate] = None
    kh: Optional[ContentInfoUpdate] = None
    parent_id: Optional[str] = None
    category: Optional[str] = None
    status: Optional[Literal["draft", "published"]] = None
    tags: Optional[list[str]] = None
    source: Optional[str] = None


class ContentQuery(BaseModel):
    category: Optional[str] = None
    parent_id: Optional[str] = None


class ContentResponse(RecordResponse):
    en: Optional[dict] = None
    kh: Optional[dict] = None
    parent_id: Optional[UUID] = None
    category: Optional[str] = None
    status: str
    tag_ids: list[str] = []
    source_id: Optional[UUID] = None
