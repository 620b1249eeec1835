from typing import Annotated

from fastapi import APIRouter, Depends, Query

from cms.core.dependencies import CacheDependency, DBDependency, query_model
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.content import ContentCreate, ContentQuery, ContentUpdate
from cms.services.content import ContentService

router = APIRouter(prefix="/contents", tags=["contents"])


def get_service(db: DBDependency, cache: CacheDependency) -> ContentService:
    return ContentService(db, cache)


Service = Annotated[ContentService, Depends(get_service)]
ContentQueryParams = Annotated[ContentQuery, query_model(ContentQuery)]


@router.get("")
async def list_contents(service: Service, query: ContentQueryParams):
    return send_success(data=await service.get_all_content(query))


@router.get("/search")
async def search_contents(service: Service, q: Annotated[str, Query(min_length=1)]):
    return send_success(data=await service.search_content(q))


@router.get("/{content_id}")
async def get_content(content_id: str, service: Service):
    return send_success(data=await service.get_content_by_id(content_id))


@router.post("")
async def create_content(payload: ContentCreate, service: Service, _: AdminDependency):
    return send_success(message="Content created", data=await service.create_content(payload))


@router.patch("/{content_id}")
async def update_content(
    content_id: str, payload: ContentUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Content updated", data=await service.update_content(content_id, payload)
    )


@router.delete("/{content_id}")
async def delete_content(
    content_id: str, service: Service, _: AdminDependency, hard: bool = False
):
    if hard:
        data = await service.hard_delete_content(content_id)
    else:
        data = await service.soft_delete_content(content_id)
    return send_success(message="Content deleted", data=data)
