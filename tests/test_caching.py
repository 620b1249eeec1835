from unittest.mock import AsyncMock, MagicMock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from cms.utils.caching import (
    Cache,
    DatabaseBackend,
    InMemoryBackend,
    RedisBackend,
    glob_to_like,
)


class Counter:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        return self.value


async def test_miss_runs_producer_and_stores(test_cache, backend):
    producer = Counter({"name": "Health"})

    assert await test_cache.get_with_fallback("ministry:1", producer, 60) == {"name": "Health"}
    assert producer.calls == 1
    assert backend.keys() == ["test:ministry:1"]


async def test_hit_skips_producer(test_cache):
    producer = Counter([1, 2, 3])
    await test_cache.get_with_fallback("numbers", producer, 60)
    assert await test_cache.get_with_fallback("numbers", producer, 60) == [1, 2, 3]
    assert producer.calls == 1


async def test_hit_performs_no_write(backend):
    backend.set = AsyncMock(wraps=backend.set)
    cache = Cache(backend)
    producer = Counter("v")

    await cache.get_with_fallback("k", producer, 60)
    await cache.get_with_fallback("k", producer, 60)

    assert backend.set.await_count == 1


async def test_entry_expires_after_ttl(test_cache, clock):
    producer = Counter("v")
    await test_cache.get_with_fallback("k", producer, 30)

    clock.advance(29)
    await test_cache.get_with_fallback("k", producer, 30)
    assert producer.calls == 1

    clock.advance(2)
    await test_cache.get_with_fallback("k", producer, 30)
    assert producer.calls == 2


async def test_failing_producer_caches_nothing(test_cache, backend):
    async def boom():
        raise RuntimeError("database down")

    with pytest.raises(RuntimeError):
        await test_cache.get_with_fallback("k", boom, 60)
    assert backend.keys() == []


async def test_cached_empty_list_is_a_hit(test_cache):
    producer = Counter([])
    await test_cache.get_with_fallback("empty", producer, 60)
    assert await test_cache.get_with_fallback("empty", producer, 60) == []
    assert producer.calls == 1


@pytest.mark.parametrize("key,expire", [("", 60), ("k", 0), ("k", -5)])
async def test_rejects_bad_arguments(test_cache, key, expire):
    with pytest.raises(ValueError):
        await test_cache.get_with_fallback(key, Counter(1), expire)


async def test_backend_read_error_degrades_to_miss():
    backend = AsyncMock()
    backend.get.side_effect = RedisConnectionError("refused")
    cache = Cache(backend)

    assert await cache.get_with_fallback("k", Counter("fresh"), 60) == "fresh"


async def test_backend_write_error_still_returns_value():
    backend = AsyncMock()
    backend.get.return_value = None
    backend.set.side_effect = RedisConnectionError("refused")
    cache = Cache(backend)

    assert await cache.get_with_fallback("k", Counter("fresh"), 60) == "fresh"
    assert await cache.set("k", "x") is False


async def test_undecodable_entry_is_a_miss(backend):
    await backend.set("k", "{not json", 60)
    cache = Cache(backend)
    assert await cache.get_with_fallback("k", Counter("ok"), 60) == "ok"


async def test_delete_pattern_only_touches_matching_keys(test_cache, backend):
    for key in ("ministries:list:all", "ministries:list:query:{}", "ministry:1", "tags:list:all"):
        await test_cache.set(key, 1, 60)

    assert await test_cache.delete_pattern("ministries:list:*") is True
    assert sorted(backend.keys()) == ["test:ministry:1", "test:tags:list:all"]


async def test_invalidate_reports_partial_failure():
    backend = AsyncMock()
    backend.delete_pattern.side_effect = RedisConnectionError("refused")
    cache = Cache(backend)

    assert await cache.invalidate(keys=["a", "a", "b"], patterns=["x:*"]) is False
    assert backend.delete.await_count == 2


async def test_invalidate_with_nothing_to_do(test_cache):
    assert await test_cache.invalidate() is True


async def test_inmemory_without_ttl_never_expires(clock):
    backend = InMemoryBackend(clock=clock)
    await backend.set("k", "1", None)
    clock.advance(10**9)
    assert await backend.get("k") == "1"


def test_glob_to_like_escapes_like_wildcards():
    assert glob_to_like("cms:members:list:*") == "cms:members:list:%"
    assert glob_to_like("a_b%c?") == "a\\_b\\%c_"


async def test_database_backend_round_trip(session_factory):
    cache = Cache(DatabaseBackend(session_factory), prefix="db:")
    producer = Counter({"a": 1})

    assert await cache.get_with_fallback("tag:1", producer, 60) == {"a": 1}
    assert await cache.get_with_fallback("tag:1", producer, 60) == {"a": 1}
    assert producer.calls == 1

    await cache.set("tags:list:all", [1], 60)
    await cache.set("tags_x", [2], 60)
    assert await cache.delete_pattern("tags:list:*") is True
    assert await cache.get("tags:list:all") is None
    # "_" in a glob is a literal, not a LIKE wildcard
    assert await cache.get("tags_x") == [2]


async def test_database_backend_honours_expiry(session_factory):
    from datetime import datetime, timedelta, timezone

    now = [datetime(2024, 1, 1, tzinfo=timezone.utc)]
    cache = Cache(DatabaseBackend(session_factory, now=lambda: now[0]))

    await cache.set("k", "v", expire=60)
    assert await cache.get("k") == "v"

    now[0] += timedelta(seconds=61)
    assert await cache.get("k") is None


async def test_changing_producer_is_masked_until_expiry(test_cache, clock):
    values = iter(["first", "second"])

    async def producer():
        return next(values)

    assert await test_cache.get_with_fallback("k", producer, 60) == "first"
    assert await test_cache.get_with_fallback("k", producer, 60) == "first"
    clock.advance(61)
    assert await test_cache.get_with_fallback("k", producer, 60) == "second"


async def _scan(keys):
    for key in keys:
        yield key


def redis_client(keys=()):
    client = AsyncMock()
    client.scan_iter = MagicMock(return_value=_scan(keys))
    client.delete.side_effect = lambda *batch: len(batch)
    return client


async def test_redis_pattern_delete_batches_scanned_keys():
    client = redis_client(["a", "b", "c", "d", "e"])
    backend = RedisBackend("redis://unused", client=client)
    backend.SCAN_COUNT = 2

    assert await backend.delete_pattern("cms:members:list:*") == 5
    client.scan_iter.assert_called_once_with(match="cms:members:list:*", count=2)
    assert [c.args for c in client.delete.await_args_list] == [
        ("a", "b"),
        ("c", "d"),
        ("e",),
    ]


async def test_redis_pattern_delete_without_remainder():
    client = redis_client(["a", "b", "c", "d"])
    backend = RedisBackend("redis://unused", client=client)
    backend.SCAN_COUNT = 2

    assert await backend.delete_pattern("x:*") == 4
    assert client.delete.await_count == 2


async def test_redis_pattern_delete_with_no_match():
    client = redis_client([])
    backend = RedisBackend("redis://unused", client=client)

    assert await backend.delete_pattern("x:*") == 0
    client.scan_iter.assert_called_once_with(match="x:*", count=RedisBackend.SCAN_COUNT)
    client.delete.assert_not_awaited()


async def test_redis_set_passes_expiry():
    client = redis_client()
    backend = RedisBackend("redis://unused", client=client)

    await backend.set("k", "v", 60)
    await backend.set("forever", "v", None)

    assert client.set.await_args_list[0].args == ("k", "v")
    assert client.set.await_args_list[0].kwargs == {"ex": 60}
    assert client.set.await_args_list[1].kwargs == {"ex": None}


async def test_cache_over_redis_backend_prefixes_keys():
    client = redis_client()
    client.get.return_value = None
    cache = Cache(RedisBackend("redis://unused", client=client), prefix="cms:")

    assert await cache.get_with_fallback("tags:list:all", Counter([1]), 60) == [1]

    client.get.assert_awaited_once_with("cms:tags:list:all")
    client.set.assert_awaited_once_with("cms:tags:list:all", "[1]", ex=60)

    await cache.close()
    client.aclose.assert_awaited_once()
