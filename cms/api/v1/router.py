from fastapi import APIRouter

from cms.api.v1.endpoints.auth import router as auth_router
from cms.api.v1.endpoints.banners import router as banners_router
from cms.api.v1.endpoints.cache import router as cache_router
from cms.api.v1.endpoints.contents import router as contents_router
from cms.api.v1.endpoints.members import router as members_router
from cms.api.v1.endpoints.ministries import router as ministries_router
from cms.api.v1.endpoints.modules import router as modules_router
from cms.api.v1.endpoints.partner_requests import router as partner_requests_router
from cms.api.v1.endpoints.partners import router as partners_router
from cms.api.v1.endpoints.positions import router as positions_router
from cms.api.v1.endpoints.resources import router as resources_router
from cms.api.v1.endpoints.tags import router as tags_router

router = APIRouter(prefix="/api/v1")
router.include_router(auth_router)
router.include_router(banners_router)
router.include_router(ministries_router)
router.include_router(positions_router)
router.include_router(members_router)
router.include_router(resources_router)
router.include_router(partners_router)
router.include_router(partner_requests_router)
router.include_router(modules_router)
router.include_router(tags_router)
router.include_router(contents_router)
router.include_router(cache_router)
