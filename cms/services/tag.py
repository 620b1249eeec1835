from cms.db.models.tag import Tag
from cms.db.models.mixins import utcnow
from cms.db.schemas.tag import TagCreate, TagResponse, TagUpdate
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys


class TagService(CachedService[Tag]):
    model = Tag
    keys = CacheKeys("tag", "tags")
    label = "tag"

    @staticmethod
    def serialize(tag: Tag) -> dict:
        return TagResponse.model_validate(tag).model_dump(mode="json")

    async def create_tag(self, payload: TagCreate) -> dict:
        async with self.writing("Tag already exists"):
            tag = await self.repo.create(
                en=payload.en.model_dump(), kh=payload.kh.model_dump()
            )
        await self.invalidate()
        return self.serialize(tag)

    async def get_all_tags(self) -> list[dict]:
        async def load():
            rows = await self.repo.find(order_by=[Tag.created_at.desc()])
            return [self.serialize(t) for t in rows]

        return await self.remember(self.keys.collection(), load, self.ttl.collection)

    async def get_tag_by_id(self, tag_id: str) -> dict:
        pk = parse_id(tag_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_tag(self, tag_id: str, payload: TagUpdate) -> dict:
        tag = await self.get_or_404(tag_id)
        async with self.writing("Tag already exists"):
            tag.en = merge_info(tag.en, payload.en and payload.en.model_dump())
            tag.kh = merge_info(tag.kh, payload.kh and payload.kh.model_dump())
            tag.updated_at = utcnow()
            await self.repo.save(tag)
        await self.invalidate(tag.id)
        return self.serialize(tag)

    async def delete_tag(self, tag_id: str) -> dict:
        tag = await self.get_or_404(tag_id)
        snapshot = self.serialize(tag)
        async with self.writing():
            await self.repo.delete_one(tag)
        await self.invalidate(tag.id)
        return snapshot
