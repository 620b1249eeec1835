from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.banner import BannerCreate, BannerUpdate
from cms.services.banner import BannerService

router = APIRouter(prefix="/banners", tags=["banners"])


def get_service(db: DBDependency, cache: CacheDependency) -> BannerService:
    return BannerService(db, cache)


Service = Annotated[BannerService, Depends(get_service)]


@router.get("")
async def list_banners(service: Service):
    return send_success(data=await service.get_all_banners())


@router.get("/{banner_id}")
async def get_banner(banner_id: str, service: Service):
    return send_success(data=await service.get_banner_by_id(banner_id))


@router.post("")
async def create_banner(payload: BannerCreate, service: Service, _: AdminDependency):
    return send_success(message="Banner created", data=await service.create_banner(payload))


@router.patch("/{banner_id}")
async def update_banner(
    banner_id: str, payload: BannerUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Banner updated", data=await service.update_banner(banner_id, payload)
    )


@router.delete("/{banner_id}")
async def delete_banner(banner_id: str, service: Service, _: AdminDependency):
    return send_success(message="Banner deleted", data=await service.delete_banner(banner_id))
