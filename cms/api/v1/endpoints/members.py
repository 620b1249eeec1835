from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.member import MemberCreate, MemberUpdate
from cms.services.member import MemberService

router = APIRouter(prefix="/members", tags=["members"])


def get_service(db: DBDependency, cache: CacheDependency) -> MemberService:
    return MemberService(db, cache)


Service = Annotated[MemberService, Depends(get_service)]


@router.get("")
async def list_members(service: Service, populate: bool = True):
    return send_success(data=await service.get_all_members(populate=populate))


@router.get("/grouped")
async def list_grouped_members(service: Service):
    return send_success(data=await service.get_all_grouped_members())


@router.get("/{member_id}")
async def get_member(member_id: str, service: Service, populate: bool = True):
    return send_success(
        data=await service.get_member_by_id(member_id, populate=populate)
    )


@router.post("")
async def create_member(payload: MemberCreate, service: Service, _: AdminDependency):
    return send_success(message="Member created", data=await service.create_member(payload))


@router.patch("/{member_id}")
async def update_member(
    member_id: str, payload: MemberUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Member updated", data=await service.update_member(member_id, payload)
    )


@router.delete("/{member_id}")
async def delete_member(member_id: str, service: Service, _: AdminDependency):
    return send_success(message="Member deleted", data=await service.delete_member(member_id))
