import asyncio
import fnmatch
import json
import time
from datetime import datetime, timedelta, timezone
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from sqlalchemy import delete, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from cms.core.config import settings
from cms.db.models.cache import CacheEntry
from cms.utils.logging import get_logger

logger = get_logger()

T = TypeVar("T")

# Failures of the cache itself. These are logged and swallowed; anything
# else (including errors raised by a producer) propagates.
CACHE_ERRORS = (RedisError, SQLAlchemyError, OSError, asyncio.TimeoutError)

_MISS = object()


class InMemoryBackend:
    """Process-local store with TTL support.

    ``clock`` returns seconds and is injectable so expiry can be tested
    without sleeping.
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._store: dict[str, tuple[str, Optional[float]]] = {}

    async def get(self, key: str) -> Optional[str]:
        item = self._store.get(key)
        if item is None:
            return None
        value, expires_at = item
        if expires_at is not None and expires_at <= self._clock():
            self._store.pop(key, None)
            return None
        return value

    async def set(self, key: str, value: str, expire: Optional[int]):
        expires_at = self._clock() + expire if expire else None
        self._store[key] = (value, expires_at)

    async def delete(self, key: str):
        self._store.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        matched = [k for k in self._store if fnmatch.fnmatchcase(k, pattern)]
        for key in matched:
            self._store.pop(key, None)
        return len(matched)

    def keys(self) -> list[str]:
        now = self._clock()
        return [
            k for k, (_, exp) in self._store.items() if exp is None or exp > now
        ]

    async def close(self):
        self._store.clear()


class RedisBackend:
    SCAN_COUNT = 500

    def __init__(self, url: str, client: Optional[aioredis.Redis] = None):
        self._redis = client or aioredis.from_url(
            url,
            encoding="utf-8",
            decode_responses=True,
            socket_connect_timeout=5,
            socket_timeout=5,
        )

    async def get(self, key: str) -> Optional[str]:
        return await self._redis.get(key)

    async def set(self, key: str, value: str, expire: Optional[int]):
        await self._redis.set(key, value, ex=expire or None)

    async def delete(self, key: str):
        await self._redis.delete(key)

    async def delete_pattern(self, pattern: str) -> int:
        # SCAN instead of KEYS so a large keyspace does not block the server
        removed = 0
        batch: list[str] = []
        async for key in self._redis.scan_iter(match=pattern, count=self.SCAN_COUNT):
            batch.append(key)
            if len(batch) >= self.SCAN_COUNT:
                removed += await self._redis.delete(*batch)
                batch = []
        if batch:
            removed += await self._redis.delete(*batch)
        return removed

    async def close(self):
        await self._redis.aclose()


def glob_to_like(pattern: str) -> str:
    """Translate a redis-style glob (``*``, ``?``) into a LIKE pattern."""
    escaped = pattern.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return escaped.replace("*", "%").replace("?", "_")


class DatabaseBackend:
    """Stores entries in the ``cache_entries`` table."""

    def __init__(
        self,
        session_factory: async_sessionmaker,
        now: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
    ):
        self._session_factory = session_factory
        self._now = now

    def _is_expired(self, expires_at: Optional[datetime]) -> bool:
        if expires_at is None:
            return False
        if expires_at.tzinfo is None:  # SQLite drops tzinfo
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= self._now()

    async def get(self, key: str) -> Optional[str]:
        async with self._session_factory() as db:
            result = await db.execute(select(CacheEntry).where(CacheEntry.key == key))
            entry = result.scalar_one_or_none()
            if entry is None:
                return None
            if self._is_expired(entry.expires_at):
                await db.delete(entry)
                await db.commit()
                return None
            return entry.value

    async def set(self, key: str, value: str, expire: Optional[int]):
        expires_at = self._now() + timedelta(seconds=expire) if expire else None
        async with self._session_factory() as db:
            await db.execute(delete(CacheEntry).where(CacheEntry.key == key))
            db.add(CacheEntry(key=key, value=value, expires_at=expires_at))
            await db.commit()

    async def delete(self, key: str):
        async with self._session_factory() as db:
            await db.execute(delete(CacheEntry).where(CacheEntry.key == key))
            await db.commit()

    async def delete_pattern(self, pattern: str) -> int:
        async with self._session_factory() as db:
            result = await db.execute(
                delete(CacheEntry).where(
                    CacheEntry.key.like(glob_to_like(pattern), escape="\\")
                )
            )
            await db.commit()
            return result.rowcount or 0

    async def close(self):
        pass


class Cache:
    """Cache-aside facade over a single backend.

    Backend failures never reach the caller: reads degrade to a miss and
    writes/deletes are dropped after a warning. Concurrent misses on the
    same key are not coalesced; each caller runs its own producer and the
    last one to finish wins the slot.
    """

    def __init__(self, backend=None, prefix: str = ""):
        self._backend = backend
        self.prefix = prefix

    @property
    def backend(self):
        if self._backend is None:
            self._backend = InMemoryBackend()
        return self._backend

    async def init(self, session_factory: Optional[async_sessionmaker] = None):
        """Build the backend selected by ``CACHE_TYPE``."""
        cache_type = settings.CACHE_TYPE.lower()
        self.prefix = settings.CACHE_PREFIX
        if cache_type == "redis" and settings.REDIS_URL:
            self._backend = RedisBackend(settings.REDIS_URL)
        elif cache_type == "database":
            if session_factory is None:
                from cms.db.session import SessionLocal

                session_factory = SessionLocal
            self._backend = DatabaseBackend(session_factory)
        else:
            if cache_type == "redis":
                logger.warning("CACHE_TYPE=redis but REDIS_URL is empty; using inmemory")
            self._backend = InMemoryBackend()
        logger.info(f"Cache backend: {type(self._backend).__name__}")

    def _key(self, key: str) -> str:
        return f"{self.prefix}{key}"

    async def _read(self, key: str) -> Any:
        try:
            raw = await self.backend.get(self._key(key))
        except CACHE_ERRORS as e:
            logger.warning(f"Cache read failed for '{key}': {e}")
            return _MISS
        if raw is None:
            return _MISS
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning(f"Discarding undecodable cache entry '{key}'")
            return _MISS

    async def get(self, key: str) -> Optional[Any]:
        value = await self._read(key)
        return None if value is _MISS else value

    async def set(self, key: str, value: Any, expire: int = 3600) -> bool:
        payload = json.dumps(value, separators=(",", ":"))
        try:
            await self.backend.set(self._key(key), payload, expire)
        except CACHE_ERRORS as e:
            logger.warning(f"Cache write failed for '{key}': {e}")
            return False
        return True

    async def delete(self, key: str) -> bool:
        try:
            await self.backend.delete(self._key(key))
        except CACHE_ERRORS as e:
            logger.warning(f"Cache delete failed for '{key}': {e}")
            return False
        return True

    async def delete_pattern(self, pattern: str) -> bool:
        try:
            removed = await self.backend.delete_pattern(self._key(pattern))
        except CACHE_ERRORS as e:
            logger.warning(f"Cache pattern delete failed for '{pattern}': {e}")
            return False
        logger.debug(f"Cache pattern '{pattern}' removed {removed} keys")
        return True

    async def invalidate(
        self, keys: Iterable[str] = (), patterns: Iterable[str] = ()
    ) -> bool:
        """Delete exact keys and glob patterns concurrently.

        Returns False when any delete failed; the failed keys stay until
        their TTL runs out.
        """
        ops = [self.delete(k) for k in dict.fromkeys(keys)]
        ops += [self.delete_pattern(p) for p in dict.fromkeys(patterns)]
        if not ops:
            return True
        results = await asyncio.gather(*ops)
        return all(results)

    async def get_with_fallback(
        self, key: str, producer: Callable[[], Awaitable[T]], expire: int
    ) -> T:
        if not key:
            raise ValueError("cache key must not be empty")
        if expire <= 0:
            raise ValueError("cache expiry must be a positive number of seconds")

        cached = await self._read(key)
        if cached is not _MISS:
            logger.debug(f"Cache hit: {key}")
            return cached

        logger.debug(f"Cache miss: {key}")
        value = await producer()
        await self.set(key, value, expire=expire)
        return value

    async def close(self):
        if self._backend is not None:
            try:
                await self._backend.close()
            except CACHE_ERRORS as e:
                logger.warning(f"Cache close failed: {e}")


cache = Cache(prefix=settings.CACHE_PREFIX)
