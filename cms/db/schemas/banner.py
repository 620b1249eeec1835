from typing import Optional

from pydantic import BaseModel, Field, HttpUrl

from cms.db.schemas.common import RecordResponse


class BannerCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    image_url: HttpUrl


class BannerUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    image_url: Optional[HttpUrl] = None


class BannerResponse(RecordResponse):
    title: str
    image_url: str
