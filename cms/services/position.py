from cms.core.exceptions.errors import Conflict
from cms.db.models.member import Position
from cms.db.models.mixins import utcnow
from cms.db.schemas.member import PositionCreate, PositionResponse, PositionUpdate
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys

DUPLICATE_MESSAGE = "Position with this title and level already exists"


class PositionService(CachedService[Position]):
    model = Position
    keys = CacheKeys("position", "positions")
    label = "position"
    # members are cached with their position embedded
    dependent_patterns = ("member:*", "members:list:*")

    @staticmethod
    def serialize(position: Position) -> dict:
        return PositionResponse.model_validate(position).model_dump(mode="json")

    async def _ensure_unique(self, title: str, level: int, exclude_id=None):
        criteria = [
            Position.en["title"].as_string() == title,
            Position.en["level"].as_integer() == level,
        ]
        if exclude_id is not None:
            criteria.append(Position.id != exclude_id)
        if await self.repo.exists(*criteria):
            raise Conflict(DUPLICATE_MESSAGE)

    async def create(self, payload: PositionCreate) -> dict:
        await self._ensure_unique(payload.en.title, payload.en.level)
        async with self.writing(DUPLICATE_MESSAGE):
            position = await self.repo.create(
                en=payload.en.model_dump(), kh=payload.kh.model_dump()
            )
        await self.invalidate()
        return self.serialize(position)

    async def get_all(self) -> list[dict]:
        async def load():
            rows = await self.repo.find(
                order_by=[Position.en["level"].as_integer(), Position.created_at]
            )
            return [self.serialize(p) for p in rows]

        return await self.remember(self.keys.collection(), load, self.ttl.collection)

    async def get(self, position_id: str) -> dict:
        pk = parse_id(position_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update(self, position_id: str, payload: PositionUpdate) -> dict:
        position = await self.get_or_404(position_id)
        en = merge_info(position.en, payload.en and payload.en.model_dump())
        kh = merge_info(position.kh, payload.kh and payload.kh.model_dump())
        if (en["title"], en["level"]) != (position.en["title"], position.en["level"]):
            await self._ensure_unique(en["title"], en["level"], exclude_id=position.id)

        async with self.writing(DUPLICATE_MESSAGE):
            position.en = en
            position.kh = kh
            position.updated_at = utcnow()
            await self.repo.save(position)
        await self.invalidate(position.id)
        return self.serialize(position)

    async def soft_delete(self, position_id: str) -> dict:
        position = await self.get_or_404(position_id)
        async with self.writing():
            position.deleted_at = utcnow()
            position.updated_at = position.deleted_at
            await self.repo.save(position)
        await self.invalidate(position.id)
        return self.serialize(position)
