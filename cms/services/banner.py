from cms.core.exceptions.errors import Conflict
from cms.db.models.banner import Banner
from cms.db.models.mixins import utcnow
from cms.db.schemas.banner import BannerCreate, BannerResponse, BannerUpdate
from cms.services.base import CachedService, parse_id
from cms.utils.cache_keys import CacheKeys

DUPLICATE_MESSAGE = "Banner title already exists"


class BannerService(CachedService[Banner]):
    model = Banner
    keys = CacheKeys("banner", "banners")
    label = "banner"

    @staticmethod
    def serialize(banner: Banner) -> dict:
        return BannerResponse.model_validate(banner).model_dump(mode="json")

    async def _ensure_unique_title(self, title: str, exclude_id=None):
        criteria = [Banner.title == title]
        if exclude_id is not None:
            criteria.append(Banner.id != exclude_id)
        # the unique index covers soft-deleted rows too
        if await self.repo.exists(*criteria, include_deleted=True):
            raise Conflict(DUPLICATE_MESSAGE)

    async def create_banner(self, payload: BannerCreate) -> dict:
        await self._ensure_unique_title(payload.title)
        async with self.writing(DUPLICATE_MESSAGE):
            banner = await self.repo.create(
                title=payload.title, image_url=str(payload.image_url)
            )
        await self.invalidate()
        return self.serialize(banner)

    async def get_all_banners(self) -> list[dict]:
        async def load():
            rows = await self.repo.find(order_by=[Banner.created_at.desc()])
            return [self.serialize(b) for b in rows]

        return await self.remember(self.keys.collection(), load, self.ttl.collection)

    async def get_banner_by_id(self, banner_id: str) -> dict:
        pk = parse_id(banner_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_banner(self, banner_id: str, payload: BannerUpdate) -> dict:
        banner = await self.get_or_404(banner_id)
        if payload.title and payload.title != banner.title:
            await self._ensure_unique_title(payload.title, exclude_id=banner.id)

        async with self.writing(DUPLICATE_MESSAGE):
            if payload.title:
                banner.title = payload.title
            if payload.image_url:
                banner.image_url = str(payload.image_url)
            banner.updated_at = utcnow()
            await self.repo.save(banner)
        await self.invalidate(banner.id)
        return self.serialize(banner)

    async def delete_banner(self, banner_id: str) -> dict:
        banner = await self.get_or_404(banner_id)
        snapshot = self.serialize(banner)
        async with self.writing():
            await self.repo.delete_one(banner)
        await self.invalidate(banner.id)
        return snapshot
