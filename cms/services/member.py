from collections import OrderedDict
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.orm import selectinload

from cms.core.exceptions.errors import InvalidIdentifier, NotFound
from cms.db.models.member import Member, Position
from cms.db.models.mixins import utcnow
from cms.db.repository import Repository
from cms.db.schemas.member import (
    MemberCreate,
    MemberGroup,
    MemberInfoUpdate,
    MemberPopulatedResponse,
    MemberResponse,
    MemberUpdate,
)
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys

POPULATED = "populated"


def _changes(info: Optional[MemberInfoUpdate]) -> Optional[dict]:
    return info.model_dump(mode="json", exclude_unset=True) if info else None


class MemberService(CachedService[Member]):
    model = Member
    keys = CacheKeys("member", "members", variants=(POPULATED,))
    label = "member"

    populate_options = (selectinload(Member.position), selectinload(Member.parent))

    @staticmethod
    def serialize(member: Member, populate: bool = False) -> dict:
        schema = MemberPopulatedResponse if populate else MemberResponse
        return schema.model_validate(member).model_dump(mode="json")

    async def _require_position(self, position_id) -> Position:
        pk = parse_id(position_id, "position")
        position = await Repository(self.db, Position).get(pk)
        if position is None:
            raise NotFound("Position not found")
        return position

    async def _require_parent(self, parent_id) -> Member:
        pk = parse_id(parent_id, "parent")
        parent = await self.repo.get(pk)
        if parent is None:
            raise NotFound("Parent not found")
        return parent

    async def _load_populated(self, pk) -> Member:
        return await self.get_or_404(pk, options=self.populate_options)

    async def _invalidate_member(self, member_id, detached_ids=()):
        # children embed their parent in the populated variant
        derived = [k for child_id in detached_ids for k in self.keys.record_keys(child_id)]
        await self.invalidate(
            member_id, derived_keys=derived, patterns=[f"member:*:{POPULATED}"]
        )

    async def _ensure_not_descendant(self, member: Member, parent: Member):
        """Reject a parent that sits below ``member`` in the hierarchy."""
        seen = set()
        ancestor = parent
        while ancestor is not None and ancestor.id not in seen:
            if ancestor.id == member.id:
                raise InvalidIdentifier(
                    "A member cannot be placed under itself or its descendants"
                )
            seen.add(ancestor.id)
            if ancestor.parent_id is None:
                break
            ancestor = await self.repo.get(ancestor.parent_id)

    async def create_member(self, payload: MemberCreate) -> dict:
        position = await self._require_position(payload.position)
        parent = await self._require_parent(payload.parent) if payload.parent else None

        async with self.writing():
            member = await self.repo.create(
                en=payload.en.model_dump(mode="json"),
                kh=payload.kh.model_dump(mode="json"),
                position_id=position.id,
                parent_id=parent.id if parent else None,
            )
        await self.invalidate()
        return self.serialize(await self._load_populated(member.id), populate=True)

    async def get_all_members(self, populate: bool = True) -> list[dict]:
        async def load():
            rows = await self.repo.find(
                order_by=[Member.created_at.desc()],
                options=self.populate_options if populate else (),
            )
            return [self.serialize(m, populate) for m in rows]

        key = self.keys.collection(f"all:{POPULATED}" if populate else "all")
        return await self.remember(key, load, self.ttl.collection)

    async def get_all_grouped_members(self) -> list[dict]:
        """Active members grouped under their position, lowest level first."""

        async def load():
            rows = await self.repo.find(
                order_by=[Member.created_at],
                options=[selectinload(Member.position)],
            )
            groups: "OrderedDict[object, dict]" = OrderedDict()
            for member in rows:
                if member.position.deleted_at is not None:
                    continue
                group = groups.setdefault(
                    member.position_id, {"position": member.position, "members": []}
                )
                group["members"].append(
                    {
                        "id": member.id,
                        "name_en": member.en.get("name"),
                        "name_kh": member.kh.get("name"),
                        "image_url_en": member.en.get("image_url"),
                        "image_url_kh": member.kh.get("image_url"),
                    }
                )
            ordered = sorted(
                groups.values(), key=lambda g: g["position"].en.get("level", 0)
            )
            return [
                MemberGroup.model_validate(g, from_attributes=True).model_dump(mode="json")
                for g in ordered
            ]

        return await self.remember(self.keys.collection("grouped"), load, self.ttl.collection)

    async def get_member_by_id(self, member_id: str, populate: bool = True) -> dict:
        pk = parse_id(member_id, self.label)

        async def load():
            if populate:
                return self.serialize(await self._load_populated(pk), populate=True)
            return self.serialize(await self.get_or_404(pk))

        key = self.keys.record(pk, POPULATED if populate else None)
        return await self.remember(key, load, self.ttl.record)

    async def update_member(self, member_id: str, payload: MemberUpdate) -> dict:
        member = await self.get_or_404(member_id)

        if payload.position:
            position = await self._require_position(payload.position)
            member.position_id = position.id
        if payload.parent:
            parent = await self._require_parent(payload.parent)
            await self._ensure_not_descendant(member, parent)
            member.parent_id = parent.id

        async with self.writing():
            member.en = merge_info(member.en, _changes(payload.en))
            member.kh = merge_info(member.kh, _changes(payload.kh))
            member.updated_at = utcnow()
            await self.repo.save(member)
        await self._invalidate_member(member.id)
        return self.serialize(await self._load_populated(member.id), populate=True)

    async def delete_member(self, member_id: str) -> dict:
        member = await self.get_or_404(member_id)
        snapshot = self.serialize(member)
        child_ids = (
            await self.db.scalars(select(Member.id).where(Member.parent_id == member.id))
        ).all()
        async with self.writing():
            await self.db.execute(
                update(Member)
                .where(Member.parent_id == member.id)
                .values(parent_id=None, updated_at=utcnow())
            )
            await self.repo.delete_one(member)
        await self._invalidate_member(member.id, detached_ids=child_ids)
        return snapshot
