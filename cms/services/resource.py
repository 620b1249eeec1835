from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import or_
from sqlalchemy.orm import selectinload

from cms.core.exceptions.errors import InvalidQuery, NotFound
from cms.db.models.content import Content
from cms.db.models.ministry import Ministry
from cms.db.models.mixins import utcnow
from cms.db.models.resource import Resource
from cms.db.repository import Repository
from cms.db.schemas.content import ContentResponse
from cms.db.schemas.resource import (
    CombinedQuery,
    ResourceCreate,
    ResourcePopulatedResponse,
    ResourceQuery,
    ResourceUpdate,
)
from cms.services.base import CachedService, parse_id
from cms.utils.cache_keys import CacheKeys
from cms.utils.pagination import page_meta, paginate

DUPLICATE_MESSAGE = "Resource with this title and language already exists"

SORTABLE = {
    "published_at": Resource.published_at,
    "title": Resource.title,
    "created_at": Resource.created_at,
    "type": Resource.type,
    "lang": Resource.lang,
}
COMBINED_SORTABLE = ("created_at", "updated_at", "published_at", "title")


def year_bounds(year: int) -> tuple[datetime, datetime]:
    return (
        datetime(year, 1, 1, tzinfo=timezone.utc),
        datetime(year + 1, 1, 1, tzinfo=timezone.utc),
    )


def _aware(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ResourceService(CachedService[Resource]):
    model = Resource
    keys = CacheKeys("resource", "resources")
    label = "resource"

    populate_options = (selectinload(Resource.source),)

    @staticmethod
    def serialize(resource: Resource) -> dict:
        return ResourcePopulatedResponse.model_validate(resource).model_dump(mode="json")

    async def _require_source(self, source_id) -> Ministry:
        pk = parse_id(source_id, "source ministry")
        ministry = await Repository(self.db, Ministry).get(pk)
        if ministry is None:
            raise NotFound("Source ministry not found")
        return ministry

    async def _load_populated(self, pk) -> Resource:
        return await self.get_or_404(pk, options=self.populate_options)

    async def create_resource(self, payload: ResourceCreate) -> dict:
        source = await self._require_source(payload.source)
        async with self.writing(DUPLICATE_MESSAGE):
            resource = await self.repo.create(
                title=payload.title,
                lang=payload.lang,
                cover=str(payload.cover),
                file=payload.file,
                type=payload.type,
                published_at=payload.published_at,
                source_id=source.id,
            )
        await self.invalidate()
        return self.serialize(await self._load_populated(resource.id))

    async def get_resources(self, query: ResourceQuery) -> dict:
        async def load():
            criteria = []
            if query.type:
                criteria.append(Resource.type == query.type)
            if query.lang:
                criteria.append(Resource.lang == query.lang)
            if query.source:
                criteria.append(Resource.source_id == parse_id(query.source, "source"))
            if query.keyword:
                criteria.append(Resource.title.ilike(f"%{query.keyword}%"))
            if query.year:
                start, end = year_bounds(query.year)
                criteria.append(Resource.published_at >= start)
                criteria.append(Resource.published_at < end)

            return await paginate(
                self.db,
                self.repo.select(*criteria),
                page=query.page,
                limit=query.limit,
                sortable=SORTABLE,
                order_by=query.order_by("published_at"),
                options=self.populate_options,
                serializer=self.serialize,
            )

        return await self.remember(self.keys.query(query), load, self.ttl.query)

    async def get_combined_items(self, query: CombinedQuery) -> dict:
        """Published blog contents and resources merged into one listing."""
        sort_field = query.sort_by or "created_at"
        if sort_field not in COMBINED_SORTABLE:
            raise InvalidQuery(f"invalid sort field '{sort_field}'")

        async def load():
            items = await self._combined_contents(query) + await self._combined_resources(query)
            reverse = query.sort_order == "desc"

            def sort_key(item: dict[str, Any]):
                if sort_field == "title":
                    return (item["title"] or "").casefold()
                if sort_field == "published_at":
                    return item["_published_at"] or item["_created_at"]
                return item[f"_{sort_field}"]

            present = [i for i in items if sort_key(i) is not None]
            missing = [i for i in items if sort_key(i) is None]
            ordered = sorted(present, key=sort_key, reverse=reverse) + missing

            start = (query.page - 1) * query.limit
            page_items = ordered[start : start + query.limit]
            for item in page_items:
                for private in [k for k in item if k.startswith("_")]:
                    item.pop(private)
            return {
                "results": page_items,
                "meta": page_meta(query.page, query.limit, len(ordered)),
            }

        return await self.remember(
            self.keys.query(query, name="combined"), load, self.ttl.query
        )

    async def _combined_contents(self, query: CombinedQuery) -> list[dict]:
        criteria = [Content.status == "published"]
        if query.category:
            criteria.append(Content.category == query.category)
        if query.source:
            criteria.append(Content.source_id == parse_id(query.source, "source"))
        if query.keyword:
            pattern = f"%{query.keyword}%"
            criteria.append(
                or_(
                    Content.en["title"].as_string().ilike(pattern),
                    Content.kh["title"].as_string().ilike(pattern),
                )
            )
        if query.year:
            start, end = year_bounds(query.year)
            criteria.append(Content.created_at >= start)
            criteria.append(Content.created_at < end)

        rows = await Repository(self.db, Content).find(
            *criteria, include_deleted=query.include_deleted
        )
        tag = str(parse_id(query.tag, "tag")) if query.tag else None

        items = []
        for content in rows:
            if tag and tag not in (content.tag_ids or []):
                continue
            en, kh = content.en or {}, content.kh or {}
            items.append(
                {
                    "id": str(content.id),
                    "title": en.get("title") or kh.get("title"),
                    "description": en.get("description") or kh.get("description"),
                    "thumbnail_url": en.get("thumbnail_url") or kh.get("thumbnail_url"),
                    "category": content.category,
                    "status": content.status,
                    "content_type": "content",
                    "original_item": ContentResponse.model_validate(content).model_dump(
                        mode="json"
                    ),
                    "_created_at": _aware(content.created_at),
                    "_updated_at": _aware(content.updated_at),
                    "_published_at": None,
                }
            )
        return items

    async def _combined_resources(self, query: CombinedQuery) -> list[dict]:
        # resources carry no category or tag, so those filters exclude them
        if query.category or query.tag:
            return []
        criteria = []
        if query.type:
            criteria.append(Resource.type == query.type)
        if query.lang:
            criteria.append(Resource.lang == query.lang)
        if query.source:
            criteria.append(Resource.source_id == parse_id(query.source, "source"))
        if query.keyword:
            criteria.append(Resource.title.ilike(f"%{query.keyword}%"))
        if query.year:
            start, end = year_bounds(query.year)
            criteria.append(Resource.published_at >= start)
            criteria.append(Resource.published_at < end)

        rows = await self.repo.find(
            *criteria, options=self.populate_options, include_deleted=query.include_deleted
        )
        return [
            {
                "id": str(resource.id),
                "title": resource.title,
                "type": resource.type,
                "published_at": _aware(resource.published_at).isoformat(),
                "content_type": "resource",
                "original_item": self.serialize(resource),
                "_created_at": _aware(resource.created_at),
                "_updated_at": _aware(resource.updated_at),
                "_published_at": _aware(resource.published_at),
            }
            for resource in rows
        ]

    async def get_resource_by_id(self, resource_id: str) -> dict:
        pk = parse_id(resource_id, self.label)

        async def load():
            return self.serialize(await self._load_populated(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_resource(self, resource_id: str, payload: ResourceUpdate) -> dict:
        resource = await self.get_or_404(resource_id)
        source = await self._require_source(payload.source)

        async with self.writing(DUPLICATE_MESSAGE):
            resource.title = payload.title
            resource.lang = payload.lang
            resource.cover = str(payload.cover)
            resource.file = payload.file
            resource.type = payload.type
            resource.published_at = payload.published_at
            resource.source_id = source.id
            resource.updated_at = utcnow()
            await self.repo.save(resource)
        await self.invalidate(resource.id)
        return self.serialize(await self._load_populated(resource.id))

    async def delete_resource(self, resource_id: str) -> dict:
        resource = await self._load_populated(parse_id(resource_id, self.label))
        snapshot = self.serialize(resource)
        async with self.writing():
            await self.repo.delete_one(resource)
        await self.invalidate(resource.id)
        return snapshot
