from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from cms.db.schemas.common import RecordResponse


class PositionInfo(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    level: int = Field(..., ge=0)


class PositionInfoUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=255)
    level: Optional[int] = Field(None, ge=0)


class PositionCreate(BaseModel):
    en: PositionInfo
    kh: PositionInfo


class PositionUpdate(BaseModel):
    en: Optional[PositionInfoUpdate] = None
    kh: Optional[PositionInfoUpdate] = None


class PositionResponse(RecordResponse):
    en: dict
    kh: dict


class Address(BaseModel):
    house_number: Optional[str] = None
    street: Optional[str] = None
    district: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None


class CareerDetail(BaseModel):
    value: str
    detail: Optional[str] = None


class MemberInfo(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    image_url: str
    birth_date: str
    email: EmailStr
    nationality: str
    place_of_birth: Address
    current_address: Address
    career_status: list[CareerDetail] = []
    experience: list[CareerDetail] = []


class MemberInfoUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    image_url: Optional[str] = None
    birth_date: Optional[str] = None
    email: Optional[EmailStr] = None
    nationality: Optional[str] = None
    place_of_birth: Optional[Address] = None
    current_address: Optional[Address] = None
    career_status: Optional[list[CareerDetail]] = None
    experience: Optional[list[CareerDetail]] = None

    model_config = ConfigDict(extra="forbid")


class MemberCreate(BaseModel):
    en: MemberInfo
    kh: MemberInfo
    position: str
    parent: Optional[str] = None


class MemberUpdate(BaseModel):
    en: Optional[MemberInfoUpdate] = None
    kh: Optional[MemberInfoUpdate] = None
    position: Optional[str] = None
    parent: Optional[str] = None


class MemberResponse(RecordResponse):
    en: dict
    kh: dict
    position_id: UUID
    parent_id: Optional[UUID] = None


class MemberSummary(RecordResponse):
    en: dict
    kh: dict


class MemberPopulatedResponse(MemberResponse):
    position: PositionResponse
    parent: Optional[MemberSummary] = None


class GroupedMember(BaseModel):
    id: UUID
    name_en: Optional[str] = None
    name_kh: Optional[str] = None
    image_url_en: Optional[str] = None
    image_url_kh: Optional[str] = None


class MemberGroup(BaseModel):
    position: PositionResponse
    members: list[GroupedMember]
