from typing import Optional

from sqlalchemy import or_

from cms.core.exceptions.errors import Conflict
from cms.db.models.mixins import utcnow
from cms.db.models.partner import Partner, PartnerRequest
from cms.db.schemas.partner import (
    PartnerCreate,
    PartnerQuery,
    PartnerRequestCreate,
    PartnerRequestResponse,
    PartnerResponse,
    PartnerUpdate,
)
from cms.services.base import CachedService, merge_info, parse_id
from cms.utils.cache_keys import CacheKeys
from cms.utils.pagination import paginate

DUPLICATE_MESSAGE = "Partner name already exists"

SORTABLE = {
    "created_at": Partner.created_at,
    "updated_at": Partner.updated_at,
}


class PartnerService(CachedService[Partner]):
    model = Partner
    keys = CacheKeys("partner", "partners")
    label = "partner"

    @staticmethod
    def serialize(partner: Partner) -> dict:
        return PartnerResponse.model_validate(partner).model_dump(mode="json")

    async def _ensure_unique_names(
        self, en_name: Optional[str], kh_name: Optional[str], exclude_id=None
    ):
        clauses = []
        if en_name:
            clauses.append(Partner.en["name"].as_string() == en_name)
        if kh_name:
            clauses.append(Partner.kh["name"].as_string() == kh_name)
        if not clauses:
            return
        criteria = [or_(*clauses)]
        if exclude_id is not None:
            criteria.append(Partner.id != exclude_id)
        if await self.repo.exists(*criteria):
            raise Conflict(DUPLICATE_MESSAGE)

    async def create_partner(self, payload: PartnerCreate) -> dict:
        await self._ensure_unique_names(
            payload.en and payload.en.name, payload.kh and payload.kh.name
        )
        async with self.writing(DUPLICATE_MESSAGE):
            partner = await self.repo.create(
                en=payload.en.model_dump() if payload.en else None,
                kh=payload.kh.model_dump() if payload.kh else None,
                url=str(payload.url) if payload.url else None,
                logo=payload.logo,
            )
        await self.invalidate()
        return self.serialize(partner)

    async def get_partners(self, query: PartnerQuery) -> dict:
        async def load():
            criteria = []
            if query.lang == "en":
                criteria.append(Partner.en.is_not(None))
            elif query.lang == "kh":
                criteria.append(Partner.kh.is_not(None))
            if query.search:
                pattern = f"%{query.search}%"
                criteria.append(
                    or_(
                        Partner.en["name"].as_string().ilike(pattern),
                        Partner.kh["name"].as_string().ilike(pattern),
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

    async def get_partner_by_id(self, partner_id: str) -> dict:
        pk = parse_id(partner_id, self.label)

        async def load():
            return self.serialize(await self.get_or_404(pk))

        return await self.remember(self.keys.record(pk), load, self.ttl.record)

    async def update_partner(self, partner_id: str, payload: PartnerUpdate) -> dict:
        partner = await self.get_or_404(partner_id)
        en = merge_info(partner.en, payload.en)
        kh = merge_info(partner.kh, payload.kh)
        en_name = (en or {}).get("name")
        kh_name = (kh or {}).get("name")
        if en_name != (partner.en or {}).get("name") or kh_name != (partner.kh or {}).get("name"):
            await self._ensure_unique_names(en_name, kh_name, exclude_id=partner.id)

        async with self.writing(DUPLICATE_MESSAGE):
            partner.en = en
            partner.kh = kh
            if payload.url:
                partner.url = str(payload.url)
            if payload.logo:
                partner.logo = payload.logo
            partner.updated_at = utcnow()
            await self.repo.save(partner)
        await self.invalidate(partner.id)
        return self.serialize(partner)

    async def delete_partner(self, partner_id: str) -> dict:
        partner = await self.get_or_404(partner_id)
        async with self.writing():
            partner.deleted_at = utcnow()
            partner.updated_at = partner.deleted_at
            await self.repo.save(partner)
        await self.invalidate(partner.id)
        return self.serialize(partner)

    async def permanent_delete_partner(self, partner_id: str) -> dict:
        partner = await self.get_or_404(partner_id, include_deleted=True)
        snapshot = self.serialize(partner)
        async with self.writing():
            await self.repo.delete_one(partner)
        await self.invalidate(partner.id)
        return snapshot


class PartnerRequestService(CachedService[PartnerRequest]):
    """Incoming "become a partner" submissions, reviewed by admins."""

    model = PartnerRequest
    keys = CacheKeys("partner-request", "partner-requests")
    label = "partner request"

    @staticmethod
    def serialize(request: PartnerRequest) -> dict:
        return PartnerRequestResponse.model_validate(request).model_dump(mode="json")

    async def create(self, payload: PartnerRequestCreate) -> dict:
        async with self.writing():
            request = await self.repo.create(
                status="pending",
                email=payload.email,
                reason=payload.reason,
                description=payload.description,
            )
        await self.invalidate()
        return self.serialize(request)

    async def get_all(self) -> list[dict]:
        async def load():
            rows = await self.repo.find(order_by=[PartnerRequest.created_at.desc()])
            return [self.serialize(r) for r in rows]

        return await self.remember(self.keys.collection(), load, self.ttl.collection)
