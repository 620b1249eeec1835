from typing import Optional

from sqlalchemy import or_

from cms.db.models.module import Module
from cms.db.models.mixins import utcnow
from cms.db.schemas.module import ModuleCreate, ModuleQuery, ModuleResponse, ModuleUpdate
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys
from cms.utils.pagination import paginate

SORTABLE = {
    "created_at": Module.created_at,
    "updated_at": Module.updated_at,
    "main_category": Module.main_category,
    "sub_category": Module.sub_category,
}


class ModuleService(CachedService[Module]):
    model = Module
    keys = CacheKeys("module", "modules")
    label = "module"

    @staticmethod
    def serialize(module: Module) -> dict:
        return ModuleResponse.model_validate(module).model_dump(mode="json")

    def main_categories_key(self) -> str:
        return self.keys.derived("main-categories")

    def sub_categories_key(self, main_category: str) -> str:
        return self.keys.derived("sub-categories", main_category)

    async def _invalidate_module(self, module_id=None, *main_categories: Optional[str]):
        """Drop list caches, the main-category list and the sub-category list
        of every category the write touched (old and new on a move)."""
        derived = [self.main_categories_key()]
        derived += [self.sub_categories_key(c) for c in main_categories if c]
        await self.invalidate(module_id, derived_keys=derived)

    async def create_module(self, payload: ModuleCreate) -> dict:
        async with self.writing():
            module = await self.repo.create(
                en=payload.en.model_dump() if payload.en else None,
                kh=payload.kh.model_dump() if payload.kh else None,
                main_category=payload.main_category,
                sub_category=payload.sub_category,
                cover=payload.cover,
            )
        await self._invalidate_module(None, payload.main_category)
        return self.serialize(module)

    async def get_modules(self, query: ModuleQuery) -> dict:
        async def load():
            criteria = []
            if query.main_category:
                criteria.append(Module.main_category == query.main_category)
            if query.sub_category:
                criteria.append(Module.sub_category == query.sub_category)
            if query.lang == "en":
                criteria.append(Module.en.is_not(None))
            elif query.lang == "kh":
                criteria.append(Module.kh.is_not(None))
            if query.search:
                pattern = f"%{query.search}%"
                criteria.append(
                    or_(
                        Module.en["title"].as_string().ilike(pattern),
                        Module.kh["title"].as_string().ilike(pattern),
                    )
                )
            return await paginate(
                self.db,
                self.repo.select(*criteria),
                page=query.page,
                limit=query.limit,
                sortable=SORTABLE,
                order_by=query.order_by("created_at"),
                serializer=self.serialize,
            )

        return await self.remember(self.keys.query(query), load, self.ttl.query)

    async def get_module_by_id(self, module_id: str) -> dict:
        pk = parse_id(module_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_module(self, module_id: str, payload: ModuleUpdate) -> dict:
        module = await self.get_or_404(module_id)
        original_main_category = module.main_category
        fields = payload.model_fields_set

        async with self.writing():
            module.en = merge_info(module.en, payload.en)
            module.kh = merge_info(module.kh, payload.kh)
            if payload.main_category:
                module.main_category = payload.main_category
            if "sub_category" in fields:
                module.sub_category = payload.sub_category
            if payload.cover:
                module.cover = payload.cover
            module.updated_at = utcnow()
            await self.repo.save(module)

        await self._invalidate_module(
            module.id, original_main_category, module.main_category
        )
        return self.serialize(module)

    async def delete_module(self, module_id: str) -> dict:
        module = await self.get_or_404(module_id)
        async with self.writing():
            module.deleted_at = utcnow()
            module.updated_at = module.deleted_at
            await self.repo.save(module)
        await self._invalidate_module(module.id, module.main_category)
        return self.serialize(module)

    async def get_main_categories(self) -> list[str]:
        async def load():
            return await self.repo.distinct(Module.main_category)

        return await self.remember(self.main_categories_key(), load, self.ttl.taxonomy)

    async def get_sub_categories(self, main_category: str) -> list[str]:
        async def load():
            return await self.repo.distinct(
                Module.sub_category, Module.main_category == main_category
            )

        return await self.remember(
            self.sub_categories_key(main_category), load, self.ttl.taxonomy
        )

