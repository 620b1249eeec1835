from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.ministry import MinistryCreate, MinistryUpdate
from cms.services.ministry import MinistryService

router = APIRouter(prefix="/ministries", tags=["ministries"])


def get_service(db: DBDependency, cache: CacheDependency) -> MinistryService:
    return MinistryService(db, cache)


Service = Annotated[MinistryService, Depends(get_service)]


@router.get("")
async def list_ministries(service: Service):
    return send_success(data=await service.get_all_ministries())


@router.get("/{ministry_id}")
async def get_ministry(ministry_id: str, service: Service):
    return send_success(data=await service.get_ministry_by_id(ministry_id))


@router.post("")
async def create_ministry(payload: MinistryCreate, service: Service, _: AdminDependency):
    return send_success(
        message="Ministry created", data=await service.create_ministry(payload)
    )


@router.patch("/{ministry_id}")
async def update_ministry(
    ministry_id: str, payload: MinistryUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Ministry updated",
        data=await service.update_ministry(ministry_id, payload),
    )


@router.delete("/{ministry_id}")
async def delete_ministry(ministry_id: str, service: Service, _: AdminDependency):
    return send_success(
        message="Ministry deleted", data=await service.delete_ministry(ministry_id)
    )
