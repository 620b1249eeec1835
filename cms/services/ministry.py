from sqlalchemy import or_

from cms.core.exceptions.errors import Conflict
from cms.db.models.content import Content
from cms.db.models.ministry import Ministry
from cms.db.models.mixins import utcnow
from cms.db.models.resource import Resource
from cms.db.repository import Repository
from cms.db.schemas.ministry import MinistryCreate, MinistryResponse, MinistryUpdate
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys

REFERENCED_MESSAGE = "Ministry is still referenced by resources or contents"


class MinistryService(CachedService[Ministry]):
    model = Ministry
    keys = CacheKeys("ministry", "ministries")
    label = "ministry"
    # resources are cached with their source ministry embedded
    dependent_patterns = ("resource:*", "resources:list:*")

    @staticmethod
    def serialize(ministry: Ministry) -> dict:
        return MinistryResponse.model_validate(ministry).model_dump(mode="json")

    async def _ensure_unique_names(self, en_name: str, kh_name: str, exclude_id=None):
        criteria = [
            or_(
                Ministry.en["name"].as_string() == en_name,
                Ministry.kh["name"].as_string() == kh_name,
            )
        ]
        if exclude_id is not None:
            criteria.append(Ministry.id != exclude_id)
        if await self.repo.exists(*criteria, include_deleted=True):
            raise Conflict("Ministry name already exists")

    async def create_ministry(self, payload: MinistryCreate) -> dict:
        await self._ensure_unique_names(payload.en.name, payload.kh.name)
        async with self.writing("Ministry name already exists"):
            ministry = await self.repo.create(
                en=payload.en.model_dump(), kh=payload.kh.model_dump()
            )
        await self.invalidate()
        return self.serialize(ministry)

    async def get_all_ministries(self) -> list[dict]:
        async def load():
            rows = await self.repo.find(order_by=[Ministry.created_at.desc()])
            return [self.serialize(m) for m in rows]

        return await self.remember(self.keys.collection(), load, self.ttl.collection)

    async def get_ministry_by_id(self, ministry_id: str) -> dict:
        pk = parse_id(ministry_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_ministry(self, ministry_id: str, payload: MinistryUpdate) -> dict:
        ministry = await self.get_or_404(ministry_id)
        en = merge_info(ministry.en, payload.en and payload.en.model_dump())
        kh = merge_info(ministry.kh, payload.kh and payload.kh.model_dump())
        if en.get("name") != ministry.en.get("name") or kh.get("name") != ministry.kh.get("name"):
            await self._ensure_unique_names(en["name"], kh["name"], exclude_id=ministry.id)

        async with self.writing("Ministry name already exists"):
            ministry.en = en
            ministry.kh = kh
            ministry.updated_at = utcnow()
            await self.repo.save(ministry)
        await self.invalidate(ministry.id)
        return self.serialize(ministry)

    async def _ensure_unreferenced(self, ministry_id):
        # soft-deleted rows still hold the foreign key
        for model in (Resource, Content):
            if await Repository(self.db, model).exists(
                model.source_id == ministry_id, include_deleted=True
            ):
                raise Conflict(REFERENCED_MESSAGE)

    async def delete_ministry(self, ministry_id: str) -> dict:
        ministry = await self.get_or_404(ministry_id)
        await self._ensure_unreferenced(ministry.id)
        snapshot = self.serialize(ministry)
        async with self.writing(REFERENCED_MESSAGE):
            await self.repo.delete_one(ministry)
        await self.invalidate(ministry.id)
        return snapshot
