from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency, query_model
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.module import ModuleCreate, ModuleQuery, ModuleUpdate
from cms.services.module import ModuleService

router = APIRouter(prefix="/modules", tags=["modules"])


def get_service(db: DBDependency, cache: CacheDependency) -> ModuleService:
    return ModuleService(db, cache)


Service = Annotated[ModuleService, Depends(get_service)]
ModuleQueryParams = Annotated[ModuleQuery, query_model(ModuleQuery)]


@router.get("")
async def list_modules(service: Service, query: ModuleQueryParams):
    return send_success(data=await service.get_modules(query))


@router.get("/main-categories")
async def list_main_categories(service: Service):
    return send_success(data=await service.get_main_categories())


@router.get("/sub-categories/{main_category}")
async def list_sub_categories(main_category: str, service: Service):
    return send_success(data=await service.get_sub_categories(main_category))


@router.get("/{module_id}")
async def get_module(module_id: str, service: Service):
    return send_success(data=await service.get_module_by_id(module_id))


@router.post("")
async def create_module(payload: ModuleCreate, service: Service, _: AdminDependency):
    return send_success(message="Module created", data=await service.create_module(payload))


@router.patch("/{module_id}")
async def update_module(
    module_id: str, payload: ModuleUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Module updated", data=await service.update_module(module_id, payload)
    )


@router.delete("/{module_id}")
async def delete_module(module_id: str, service: Service, _: AdminDependency):
    return send_success(message="Module deleted", data=await service.delete_module(module_id))
