from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency, query_model
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.resource import (
    CombinedQuery,
    ResourceCreate,
    ResourceQuery,
    ResourceUpdate,
)
from cms.services.resource import ResourceService

router = APIRouter(prefix="/resources", tags=["resources"])


def get_service(db: DBDependency, cache: CacheDependency) -> ResourceService:
    return ResourceService(db, cache)


Service = Annotated[ResourceService, Depends(get_service)]
ResourceQueryParams = Annotated[ResourceQuery, query_model(ResourceQuery)]
CombinedQueryParams = Annotated[CombinedQuery, query_model(CombinedQuery)]


@router.get("")
async def list_resources(service: Service, query: ResourceQueryParams):
    return send_success(data=await service.get_resources(query))


@router.get("/combined")
async def list_combined(service: Service, query: CombinedQueryParams):
    return send_success(data=await service.get_combined_items(query))


@router.get("/{resource_id}")
async def get_resource(resource_id: str, service: Service):
    return send_success(data=await service.get_resource_by_id(resource_id))


@router.post("")
async def create_resource(payload: ResourceCreate, service: Service, _: AdminDependency):
    return send_success(
        message="Resource created", data=await service.create_resource(payload)
    )


@router.put("/{resource_id}")
async def update_resource(
    resource_id: str, payload: ResourceUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Resource updated",
        data=await service.update_resource(resource_id, payload),
    )


@router.delete("/{resource_id}")
async def delete_resource(resource_id: str, service: Service, _: AdminDependency):
    return send_success(
        message="Resource deleted", data=await service.delete_resource(resource_id)
    )
