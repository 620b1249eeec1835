from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.tag import TagCreate, TagUpdate
from cms.services.tag import TagService

router = APIRouter(prefix="/tags", tags=["tags"])


def get_service(db: DBDependency, cache: CacheDependency) -> TagService:
    return TagService(db, cache)


Service = Annotated[TagService, Depends(get_service)]


@router.get("")
async def list_tags(service: Service):
    return send_success(data=await service.get_all_tags())


@router.get("/{tag_id}")
async def get_tag(tag_id: str, service: Service):
    return send_success(data=await service.get_tag_by_id(tag_id))


@router.post("")
async def create_tag(payload: TagCreate, service: Service, _: AdminDependency):
    return send_success(message="Tag created", data=await service.create_tag(payload))


@router.patch("/{tag_id}")
async def update_tag(tag_id: str, payload: TagUpdate, service: Service, _: AdminDependency):
    return send_success(message="Tag updated", data=await service.update_tag(tag_id, payload))


@router.delete("/{tag_id}")
async def delete_tag(tag_id: str, service: Service, _: AdminDependency):
    return send_success(message="Tag deleted", data=await service.delete_tag(tag_id))
