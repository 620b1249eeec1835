from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.member import PositionCreate, PositionUpdate
from cms.services.position import PositionService

router = APIRouter(prefix="/positions", tags=["positions"])


def get_service(db: DBDependency, cache: CacheDependency) -> PositionService:
    return PositionService(db, cache)


Service = Annotated[PositionService, Depends(get_service)]


@router.get("")
async def list_positions(service: Service):
    return send_success(data=await service.get_all())


@router.get("/{position_id}")
async def get_position(position_id: str, service: Service):
    return send_success(data=await service.get(position_id))


@router.post("")
async def create_position(payload: PositionCreate, service: Service, _: AdminDependency):
    return send_success(message="Position created", data=await service.create(payload))


@router.patch("/{position_id}")
async def update_position(
    position_id: str, payload: PositionUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Position updated", data=await service.update(position_id, payload)
    )


@router.delete("/{position_id}")
async def delete_position(position_id: str, service: Service, _: AdminDependency):
    return send_success(
        message="Position deleted", data=await service.soft_delete(position_id)
    )
