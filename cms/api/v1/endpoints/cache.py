from fastapi import APIRouter

from cms.core.dependencies import CacheDependency, DBDependency
from cms.core.responses import send_success
from cms.core.security import AdminDependency
from cms.services.banner import BannerService
from cms.services.content import ContentService
from cms.services.member import MemberService
from cms.services.ministry import MinistryService
from cms.services.module import ModuleService
from cms.services.partner import PartnerRequestService, PartnerService
from cms.services.position import PositionService
from cms.services.resource import ResourceService
from cms.services.tag import TagService

router = APIRouter(prefix="/cache", tags=["cache"])

CACHED_SERVICES = (
    BannerService,
    ContentService,
    MemberService,
    MinistryService,
    ModuleService,
    PartnerService,
    PartnerRequestService,
    PositionService,
    ResourceService,
    TagService,
)


@router.delete("")
async def clear_cache(db: DBDependency, cache: CacheDependency, _: AdminDependency):
    cleared = {}
    for service_cls in CACHED_SERVICES:
        service = service_cls(db, cache)
        cleared[service.keys.plural] = await service.clear_all_caches()
    return send_success(message="Cache cleared", data=cleared)
