from typing import Optional

from pydantic import BaseModel, Field

from cms.db.schemas.common import RecordResponse


class TagInfo(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)


class TagCreate(BaseModel):
    en: TagInfo
    kh: TagInfo


class TagUpdate(BaseModel):
    en: Optional[TagInfo] = None
    kh: Optional[TagInfo] = None


class TagResponse(RecordResponse):
    en: dict
    kh: dict
