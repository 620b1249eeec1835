from typing import Annotated

from fastapi import APIRouter, Depends

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.db.schemas.partner import PartnerRequestCreate
from cms.services.partner import PartnerRequestService

router = APIRouter(prefix="/partner-requests", tags=["partner-requests"])


def get_service(db: DBDependency, cache: CacheDependency) -> PartnerRequestService:
    return PartnerRequestService(db, cache)


Service = Annotated[PartnerRequestService, Depends(get_service)]


@router.post("")
async def submit_partner_request(payload: PartnerRequestCreate, service: Service):
    return send_success(
        message="Partner request submitted", data=await service.create(payload)
    )


@router.get("")
async def list_partner_requests(service: Service, _: AdminDependency):
    return send_success(data=await service.get_all())
