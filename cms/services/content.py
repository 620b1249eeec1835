from sqlalchemy import or_

from cms.core.exceptions.errors import NotFound
from cms.db.models.content import Content
from cms.db.models.ministry import Ministry
from cms.db.models.mixins import utcnow
from cms.db.models.tag import Tag
from cms.db.repository import Repository
from cms.db.schemas.content import ContentCreate, ContentQuery, ContentResponse, ContentUpdate
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys


class ContentService(CachedService[Content]):
    model = Content
    keys = CacheKeys("content", "contents")
    label = "content"
    # the combined resources listing embeds published contents
    dependent_patterns = ("resources:list:combined:*",)

    @staticmethod
    def serialize(content: Content) -> dict:
        return ContentResponse.model_validate(content).model_dump(mode="json")

    async def _resolve_refs(self, parent_id=None, tags=None, source=None) -> dict:
        refs = {}
        if parent_id:
            pk = parse_id(parent_id, "parent content")
            if not await self.repo.exists(Content.id == pk):
                raise NotFound("Parent content not found")
            refs["parent_id"] = pk
        if tags is not None:
            tag_ids = list(dict.fromkeys(parse_id(t, "tag") for t in tags))
            if tag_ids:
                found = await Repository(self.db, Tag).count(Tag.id.in_(tag_ids))
                if found != len(tag_ids):
                    raise NotFound("Tag not found")
            refs["tag_ids"] = [str(t) for t in tag_ids]
        if source:
            pk = parse_id(source, "source ministry")
            if not await Repository(self.db, Ministry).exists(Ministry.id == pk):
                raise NotFound("Source ministry not found")
            refs["source_id"] = pk
        return refs

    async def create_content(self, payload: ContentCreate) -> dict:
        refs = await self._resolve_refs(payload.parent_id, payload.tags, payload.source)
        async with self.writing():
            content = await self.repo.create(
                en=payload.en.model_dump() if payload.en else None,
                kh=payload.kh.model_dump() if payload.kh else None,
                category=payload.category,
                status=payload.status,
                tag_ids=refs.get("tag_ids", []),
                parent_id=refs.get("parent_id"),
                source_id=refs.get("source_id"),
            )
        await self.invalidate()
        return self.serialize(content)

    async def get_all_content(self, query: ContentQuery | None = None) -> list[dict]:
        query = query or ContentQuery()

        async def load():
            criteria = []
            if query.category:
                criteria.append(Content.category == query.category)
            if query.parent_id:
                criteria.append(Content.parent_id == parse_id(query.parent_id, "parent"))
            rows = await self.repo.find(*criteria, order_by=[Content.created_at.desc()])
            return [self.serialize(c) for c in rows]

        return await self.remember(self.keys.query(query), load, self.ttl.query)

    async def get_content_by_id(self, content_id: str) -> dict:
        pk = parse_id(content_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_content(self, content_id: str, payload: ContentUpdate) -> dict:
        content = await self.get_or_404(content_id)
        refs = await self._resolve_refs(payload.parent_id, payload.tags, payload.source)

        async with self.writing():
            content.en = merge_info(content.en, payload.en and payload.en.model_dump())
            content.kh = merge_info(content.kh, payload.kh and payload.kh.model_dump())
            if "category" in payload.model_fields_set:
                content.category = payload.category
            if payload.status:
                content.status = payload.status
            for field, value in refs.items():
                setattr(content, field, value)
            content.updated_at = utcnow()
            await self.repo.save(content)
        await self.invalidate(content.id)
        return self.serialize(content)

    async def soft_delete_content(self, content_id: str) -> dict:
        content = await self.get_or_404(content_id)
        async with self.writing():
            content.deleted_at = utcnow()
            content.updated_at = content.deleted_at
            await self.repo.save(content)
        await self.invalidate(content.id)
        return self.serialize(content)

    async def hard_delete_content(self, content_id: str) -> dict:
        content = await self.get_or_404(content_id, include_deleted=True)
        snapshot = self.serialize(content)
        async with self.writing():
            await self.repo.delete_one(content)
        await self.invalidate(content.id)
        return snapshot

    async def search_content(self, q: str) -> list[dict]:
        async def load():
            pattern = f"%{q}%"
            rows = await self.repo.find(
                or_(
                    Content.en["title"].as_string().ilike(pattern),
                    Content.kh["title"].as_string().ilike(pattern),
                ),
                order_by=[Content.created_at.desc()],
            )
            return [self.serialize(c) for c in rows]

        return await self.remember(
            self.keys.query({"q": q}, name="search"), load, self.ttl.query
        )
