from typing import Optional

from pydantic import BaseModel, Field

from cms.db.schemas.common import RecordResponse


class MinistryInfo(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    lang: str = Field(..., min_length=2, max_length=8)


class MinistryInfoUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    lang: Optional[str] = Field(None, min_length=2, max_length=8)


class MinistryCreate(BaseModel):
    en: MinistryInfo
    kh: MinistryInfo


class MinistryUpdate(BaseModel):
    en: Optional[MinistryInfoUpdate] = None
    kh: Optional[MinistryInfoUpdate] = None


class MinistryResponse(RecordResponse):
    en: dict
    kh: dict
