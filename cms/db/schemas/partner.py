from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field, HttpUrl

from cms.db.schemas.common import BasePaginationQuery, RecordResponse


class PartnerInfo(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class PartnerCreate(BaseModel):
    en: Optional[PartnerInfo] = None
    kh: Optional[PartnerInfo] = None
    url: Optional[HttpUrl] = None
    logo: Optional[str] = None


class PartnerUpdate(BaseModel):
    en: Optional[dict] = None
    kh: Optional[dict] = None
    url: Optional[HttpUrl] = None
    logo: Optional[str] = None


class PartnerQuery(BasePaginationQuery):
    lang: Optional[Literal["en", "kh"]] = None
    search: Optional[str] = None


class PartnerResponse(RecordResponse):
    en: Optional[dict] = None
    kh: Optional[dict] = None
    url: Optional[str] = None
    logo: Optional[str] = None


class PartnerRequestCreate(BaseModel):
    email: EmailStr
    reason: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = Field(None, max_length=4000)


class PartnerRequestResponse(RecordResponse):
    status: str
    email: str
    reason: str
    description: Optional[str] = None
