from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency, query_model
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.partner import PartnerCreate, PartnerQuery, PartnerUpdate
from cms.services.partner import PartnerService

router = APIRouter(prefix="/partners", tags=["partners"])


def get_service(db: DBDependency, cache: CacheDependency) -> PartnerService:
    return PartnerService(db, cache)


Service = Annotated[PartnerService, Depends(get_service)]
PartnerQueryParams = Annotated[PartnerQuery, query_model(PartnerQuery)]


@router.get("")
async def list_partners(service: Service, query: PartnerQueryParams):
    return send_success(data=await service.get_partners(query))


@router.get("/{partner_id}")
async def get_partner(partner_id: str, service: Service):
    return send_success(data=await service.get_partner_by_id(partner_id))


@router.post("")
async def create_partner(payload: PartnerCreate, service: Service, _: AdminDependency):
    return send_success(message="Partner created", data=await service.create_partner(payload))


@router.patch("/{partner_id}")
async def update_partner(
    partner_id: str, payload: PartnerUpdate, service: Service, _: AdminDependency
):
    return send_success(
        message="Partner updated", data=await service.update_partner(partner_id, payload)
    )


@router.delete("/{partner_id}")
async def delete_partner(
    partner_id: str, service: Service, _: AdminDependency, permanent: bool = False
):
    if permanent:
        data = await service.permanent_delete_partner(partner_id)
    else:
        data = await service.delete_partner(partner_id)
    return send_success(message="Partner deleted", data=data)
