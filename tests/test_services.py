import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError
from redis.exceptions import ConnectionError as RedisConnectionError
from sqlalchemy import func, select

from cms.core.exceptions.errors import Conflict, InvalidIdentifier, NotFound
from cms.db.models.content import Content
from cms.db.models.member import Position
from cms.db.models.ministry import Ministry
from cms.db.schemas.content import ContentCreate
from cms.db.schemas.member import MemberCreate, MemberUpdate, PositionCreate, PositionUpdate
from cms.db.schemas.ministry import MinistryCreate, MinistryUpdate
from cms.db.schemas.module import ModuleCreate, ModuleUpdate
from cms.db.schemas.partner import PartnerCreate, PartnerQuery
from cms.db.schemas.resource import CombinedQuery, ResourceCreate, ResourceQuery
from cms.services.content import ContentService
from cms.services.member import MemberService
from cms.services.ministry import MinistryService
from cms.services.module import ModuleService
from cms.services.partner import PartnerService
from cms.services.position import PositionService
from cms.services.resource import ResourceService
from cms.utils.caching import Cache


def ministry_payload(name: str) -> MinistryCreate:
    return MinistryCreate(
        en={"name": name, "lang": "en"}, kh={"name": f"{name}-kh", "lang": "kh"}
    )


def member_info(name: str) -> dict:
    address = {"city": "Phnom Penh", "country": "Cambodia"}
    return {
        "name": name,
        "image_url": "https://cdn.example.com/a.png",
        "birth_date": "1980-01-01",
        "email": "member@example.com",
        "nationality": "Khmer",
        "place_of_birth": address,
        "current_address": address,
    }


async def make_position(db, cache, title="Director", level=1) -> dict:
    return await PositionService(db, cache).create(
        PositionCreate(
            en={"title": title, "level": level}, kh={"title": title, "level": level}
        )
    )


async def test_ministry_update_is_visible_through_the_cache(db_session, test_cache):
    service = MinistryService(db_session, test_cache)

    created = await service.create_ministry(ministry_payload("Health"))
    listed = await service.get_all_ministries()
    assert [m["en"]["name"] for m in listed] == ["Health"]
    assert (await service.get_ministry_by_id(created["id"]))["en"]["name"] == "Health"

    await service.update_ministry(
        created["id"], MinistryUpdate(en={"name": "Health2"})
    )

    assert (await service.get_ministry_by_id(created["id"]))["en"]["name"] == "Health2"
    assert [m["en"]["name"] for m in await service.get_all_ministries()] == ["Health2"]


async def test_by_id_key_is_canonical(db_session, test_cache, backend):
    service = MinistryService(db_session, test_cache)
    created = await service.create_ministry(ministry_payload("Health"))

    await service.get_ministry_by_id(created["id"].upper())
    await service.update_ministry(created["id"], MinistryUpdate(en={"name": "Moved"}))

    assert f"test:ministry:{created['id']}" not in backend.keys()
    assert (await service.get_ministry_by_id(created["id"]))["en"]["name"] == "Moved"


async def test_create_invalidates_cached_list(db_session, test_cache):
    service = MinistryService(db_session, test_cache)
    assert await service.get_all_ministries() == []

    await service.create_ministry(ministry_payload("Education"))

    assert len(await service.get_all_ministries()) == 1


async def test_duplicate_ministry_name_conflicts(db_session, test_cache):
    service = MinistryService(db_session, test_cache)
    await service.create_ministry(ministry_payload("Health"))

    with pytest.raises(Conflict):
        await service.create_ministry(ministry_payload("Health"))


async def test_invalid_and_missing_ids(db_session, test_cache):
    service = MinistryService(db_session, test_cache)

    with pytest.raises(InvalidIdentifier):
        await service.get_ministry_by_id("not-a-uuid")
    with pytest.raises(NotFound):
        await service.get_ministry_by_id(str(uuid.uuid4()))


async def test_not_found_is_not_cached(db_session, test_cache, backend):
    service = MinistryService(db_session, test_cache)
    with pytest.raises(NotFound):
        await service.get_ministry_by_id(str(uuid.uuid4()))
    assert backend.keys() == []


async def test_duplicate_position_persists_one_row(db_session, test_cache):
    await make_position(db_session, test_cache)

    with pytest.raises(Conflict):
        await make_position(db_session, test_cache)

    count = await db_session.scalar(select(func.count()).select_from(Position))
    assert count == 1


async def test_position_title_can_repeat_at_another_level(db_session, test_cache):
    await make_position(db_session, test_cache, level=1)
    await make_position(db_session, test_cache, level=2)

    levels = [p["en"]["level"] for p in await PositionService(db_session, test_cache).get_all()]
    assert levels == [1, 2]


async def test_position_update_refreshes_populated_members(db_session, test_cache):
    position = await make_position(db_session, test_cache)
    members = MemberService(db_session, test_cache)
    member = await members.create_member(
        MemberCreate(en=member_info("Dara"), kh=member_info("Dara"), position=position["id"])
    )
    assert (await members.get_member_by_id(member["id"]))["position"]["en"]["title"] == "Director"

    await PositionService(db_session, test_cache).update(
        position["id"], PositionUpdate(en={"title": "Chair"})
    )

    refreshed = await members.get_member_by_id(member["id"])
    assert refreshed["position"]["en"]["title"] == "Chair"


async def test_member_update_drops_both_record_variants(db_session, test_cache, backend):
    position = await make_position(db_session, test_cache)
    members = MemberService(db_session, test_cache)
    member = await members.create_member(
        MemberCreate(en=member_info("Dara"), kh=member_info("Dara"), position=position["id"])
    )
    await members.get_member_by_id(member["id"], populate=True)
    await members.get_member_by_id(member["id"], populate=False)
    assert f"test:member:{member['id']}:populated" in backend.keys()

    await members.update_member(member["id"], MemberUpdate(en={"name": "Sok"}))

    assert not [k for k in backend.keys() if member["id"] in k]
    assert (await members.get_member_by_id(member["id"], populate=False))["en"]["name"] == "Sok"


async def test_parent_rename_reaches_cached_child(db_session, test_cache):
    position = await make_position(db_session, test_cache)
    members = MemberService(db_session, test_cache)
    parent = await members.create_member(
        MemberCreate(en=member_info("Parent"), kh=member_info("Parent"), position=position["id"])
    )
    child = await members.create_member(
        MemberCreate(
            en=member_info("Child"),
            kh=member_info("Child"),
            position=position["id"],
            parent=parent["id"],
        )
    )
    assert (await members.get_member_by_id(child["id"]))["parent"]["en"]["name"] == "Parent"

    await members.update_member(parent["id"], MemberUpdate(en={"name": "Renamed"}))

    assert (await members.get_member_by_id(child["id"]))["parent"]["en"]["name"] == "Renamed"


async def test_grouped_members_follow_position_level(db_session, test_cache):
    senior = await make_position(db_session, test_cache, title="Chair", level=1)
    junior = await make_position(db_session, test_cache, title="Officer", level=5)
    members = MemberService(db_session, test_cache)
    for name, position in (("A", junior), ("B", senior)):
        await members.create_member(
            MemberCreate(en=member_info(name), kh=member_info(name), position=position["id"])
        )

    groups = await members.get_all_grouped_members()
    assert [g["position"]["en"]["title"] for g in groups] == ["Chair", "Officer"]
    assert groups[0]["members"][0]["name_en"] == "B"


async def test_module_categories_follow_moves(db_session, test_cache):
    service = ModuleService(db_session, test_cache)
    module = await service.create_module(
        ModuleCreate(en={"title": "Intro"}, mainCategory="Health", subCategory="Basics")
    )
    assert await service.get_main_categories() == ["Health"]
    assert await service.get_sub_categories("Health") == ["Basics"]

    await service.update_module(module["id"], ModuleUpdate(mainCategory="Education"))

    assert await service.get_main_categories() == ["Education"]
    assert await service.get_sub_categories("Health") == []
    assert await service.get_sub_categories("Education") == ["Basics"]


async def test_deleted_module_leaves_categories(db_session, test_cache):
    service = ModuleService(db_session, test_cache)
    module = await service.create_module(ModuleCreate(mainCategory="Health"))
    assert await service.get_main_categories() == ["Health"]

    await service.delete_module(module["id"])

    assert await service.get_main_categories() == []


async def make_resource(db, cache, title="Annual report") -> tuple[dict, dict]:
    ministry = await MinistryService(db, cache).create_ministry(ministry_payload("Health"))
    resource = await ResourceService(db, cache).create_resource(
        ResourceCreate(
            title=title,
            lang="en",
            cover="https://cdn.example.com/cover.png",
            file="reports/2023.pdf",
            type="report",
            published_at=datetime(2023, 6, 1, tzinfo=timezone.utc),
            source=ministry["id"],
        )
    )
    return ministry, resource


async def test_ministry_rename_reaches_cached_resources(db_session, test_cache):
    ministry, resource = await make_resource(db_session, test_cache)
    resources = ResourceService(db_session, test_cache)
    assert (await resources.get_resource_by_id(resource["id"]))["source"]["en"]["name"] == "Health"
    page = await resources.get_resources(ResourceQuery())
    assert page["results"][0]["source"]["en"]["name"] == "Health"

    await MinistryService(db_session, test_cache).update_ministry(
        ministry["id"], MinistryUpdate(en={"name": "Public Health"})
    )

    assert (
        await resources.get_resource_by_id(resource["id"])
    )["source"]["en"]["name"] == "Public Health"
    page = await resources.get_resources(ResourceQuery())
    assert page["results"][0]["source"]["en"]["name"] == "Public Health"


async def test_duplicate_resource_title_per_language(db_session, test_cache):
    ministry, _ = await make_resource(db_session, test_cache)

    with pytest.raises(Conflict):
        await ResourceService(db_session, test_cache).create_resource(
            ResourceCreate(
                title="Annual report",
                lang="en",
                cover="https://cdn.example.com/cover.png",
                file="reports/copy.pdf",
                type="report",
                published_at=datetime(2023, 7, 1, tzinfo=timezone.utc),
                source=ministry["id"],
            )
        )


async def test_resource_query_filters_by_year(db_session, test_cache):
    await make_resource(db_session, test_cache)
    resources = ResourceService(db_session, test_cache)

    assert (await resources.get_resources(ResourceQuery(year=2023)))["meta"]["total_count"] == 1
    assert (await resources.get_resources(ResourceQuery(year=2022)))["meta"]["total_count"] == 0


async def test_combined_listing_picks_up_new_content(db_session, test_cache):
    await make_resource(db_session, test_cache)
    resources = ResourceService(db_session, test_cache)
    first = await resources.get_combined_items(CombinedQuery())
    assert [i["content_type"] for i in first["results"]] == ["resource"]

    await ContentService(db_session, test_cache).create_content(
        ContentCreate(
            en={"title": "News", "document": {"blocks": []}}, status="published"
        )
    )

    second = await resources.get_combined_items(CombinedQuery())
    assert second["meta"]["total_count"] == 2
    assert {i["content_type"] for i in second["results"]} == {"resource", "content"}


async def test_soft_deleted_partner_is_hidden(db_session, test_cache):
    service = PartnerService(db_session, test_cache)
    partner = await service.create_partner(PartnerCreate(en={"name": "UNICEF"}))
    assert (await service.get_partners(PartnerQuery()))["meta"]["total_count"] == 1

    await service.delete_partner(partner["id"])

    assert (await service.get_partners(PartnerQuery()))["meta"]["total_count"] == 0
    with pytest.raises(NotFound):
        await service.get_partner_by_id(partner["id"])


async def test_clear_all_caches_keeps_other_entities(db_session, test_cache, backend):
    ministries = MinistryService(db_session, test_cache)
    created = await ministries.create_ministry(ministry_payload("Health"))
    await ministries.get_all_ministries()
    await ministries.get_ministry_by_id(created["id"])
    await make_position(db_session, test_cache)
    await PositionService(db_session, test_cache).get_all()

    assert await ministries.clear_all_caches() is True

    assert backend.keys() == ["test:positions:list:all"]


async def test_deleting_parent_refreshes_plain_child_entry(db_session, test_cache):
    position = await make_position(db_session, test_cache)
    members = MemberService(db_session, test_cache)
    parent = await members.create_member(
        MemberCreate(en=member_info("Parent"), kh=member_info("Parent"), position=position["id"])
    )
    child = await members.create_member(
        MemberCreate(
            en=member_info("Child"),
            kh=member_info("Child"),
            position=position["id"],
            parent=parent["id"],
        )
    )
    cached = await members.get_member_by_id(child["id"], populate=False)
    assert cached["parent_id"] == parent["id"]

    await members.delete_member(parent["id"])

    fresh = MemberService(db_session, test_cache)
    assert (await fresh.get_member_by_id(child["id"], populate=False))["parent_id"] is None
    assert (await fresh.get_member_by_id(child["id"]))["parent"] is None


async def test_member_cannot_move_under_its_descendant(db_session, test_cache):
    position = await make_position(db_session, test_cache)
    members = MemberService(db_session, test_cache)
    top = await members.create_member(
        MemberCreate(en=member_info("Top"), kh=member_info("Top"), position=position["id"])
    )
    middle = await members.create_member(
        MemberCreate(
            en=member_info("Middle"),
            kh=member_info("Middle"),
            position=position["id"],
            parent=top["id"],
        )
    )
    bottom = await members.create_member(
        MemberCreate(
            en=member_info("Bottom"),
            kh=member_info("Bottom"),
            position=position["id"],
            parent=middle["id"],
        )
    )

    with pytest.raises(InvalidIdentifier):
        await members.update_member(top["id"], MemberUpdate(parent=bottom["id"]))
    with pytest.raises(InvalidIdentifier):
        await members.update_member(top["id"], MemberUpdate(parent=top["id"]))

    assert (await members.get_member_by_id(top["id"], populate=False))["parent_id"] is None


def test_member_update_validates_language_blocks():
    with pytest.raises(ValidationError):
        MemberUpdate(en={"email": "not-an-email"})
    with pytest.raises(ValidationError):
        MemberUpdate(kh={"nickname": "unknown field"})


async def test_member_update_merges_partial_block(db_session, test_cache):
    position = await make_position(db_session, test_cache)
    members = MemberService(db_session, test_cache)
    member = await members.create_member(
        MemberCreate(en=member_info("Dara"), kh=member_info("Dara"), position=position["id"])
    )

    updated = await members.update_member(
        member["id"], MemberUpdate(en={"email": "dara@example.com"})
    )

    assert updated["en"]["email"] == "dara@example.com"
    assert updated["en"]["name"] == "Dara"


async def test_referenced_ministry_cannot_be_deleted(db_session, test_cache):
    ministry, resource = await make_resource(db_session, test_cache)
    ministries = MinistryService(db_session, test_cache)

    with pytest.raises(Conflict):
        await ministries.delete_ministry(ministry["id"])

    assert await ministries.get_ministry_by_id(ministry["id"])
    fetched = await ResourceService(db_session, test_cache).get_resource_by_id(resource["id"])
    assert fetched["source"]["id"] == ministry["id"]


async def test_ministry_referenced_by_content_cannot_be_deleted(db_session, test_cache):
    ministries = MinistryService(db_session, test_cache)
    ministry = await ministries.create_ministry(ministry_payload("Health"))
    await ContentService(db_session, test_cache).create_content(
        ContentCreate(en={"title": "News", "document": {}}, source=ministry["id"])
    )

    with pytest.raises(Conflict):
        await ministries.delete_ministry(ministry["id"])


async def test_unreferenced_ministry_is_deleted(db_session, test_cache):
    ministries = MinistryService(db_session, test_cache)
    ministry = await ministries.create_ministry(ministry_payload("Health"))

    await ministries.delete_ministry(ministry["id"])

    with pytest.raises(NotFound):
        await ministries.get_ministry_by_id(ministry["id"])


async def test_write_survives_cache_outage(db_session, session_factory):
    backend = AsyncMock()
    backend.get.return_value = None
    backend.delete.side_effect = RedisConnectionError("refused")
    backend.delete_pattern.side_effect = RedisConnectionError("refused")
    service = MinistryService(db_session, Cache(backend))

    created = await service.create_ministry(ministry_payload("Health"))
    updated = await service.update_ministry(
        created["id"], MinistryUpdate(en={"name": "Health2"})
    )

    assert updated["en"]["name"] == "Health2"
    assert backend.delete_pattern.await_count > 0
    async with session_factory() as other:
        row = await other.get(Ministry, uuid.UUID(created["id"]))
        assert row.en["name"] == "Health2"


async def test_soft_deleted_content_records_update_time(db_session, test_cache):
    service = ContentService(db_session, test_cache)
    content = await service.create_content(
        ContentCreate(en={"title": "News", "document": {}})
    )

    await service.soft_delete_content(content["id"])

    row = await db_session.get(Content, uuid.UUID(content["id"]))
    assert row.deleted_at is not None
    assert row.updated_at == row.deleted_at
    with pytest.raises(NotFound):
        await service.get_content_by_id(content["id"])
