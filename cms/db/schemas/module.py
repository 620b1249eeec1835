from typing import Literal, Optional

from pydantic import BaseModel, Field

from cms.db.schemas.common import BasePaginationQuery, RecordResponse


class ModuleInfo(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    description: Optional[str] = None


class ModuleCreate(BaseModel):
    en: Optional[ModuleInfo] = None
    kh: Optional[ModuleInfo] = None
    main_category: str = Field(..., min_length=1, max_length=120, alias="mainCategory")
    sub_category: Optional[str] = Field(None, max_length=120, alias="subCategory")
    cover: Optional[str] = None

    model_config = {"populate_by_name": True}


class ModuleUpdate(BaseModel):
    en: Optional[dict] = None
    kh: Optional[dict] = None
    main_category: Optional[str] = Field(None, min_length=1, max_length=120, alias="mainCategory")
    sub_category: Optional[str] = Field(None, max_length=120, alias="subCategory")
    cover: Optional[str] = None

    model_config = {"populate_by_name": True}


class ModuleQuery(BasePaginationQuery):
    main_category: Optional[str] = Field(None, alias="mainCategory")
    sub_category: Optional[str] = Field(None, alias="subCategory")
    lang: Optional[Literal["en", "kh"]] = None
    search: Optional[str] = None


class ModuleResponse(RecordResponse):
    en: Optional[dict] = None
    kh: Optional[dict] = None
    main_category: str
    sub_category: Optional[str] = None
    cover: Optional[str] = None
