import uuid
from contextlib import asynccontextmanager
from typing import Any, Awaitable, Callable, ClassVar, Generic, Iterable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from cms.core.exceptions.errors import Conflict, InvalidIdentifier, NotFound
from cms.db.base import Base
from cms.db.repository import Repository
from cms.utils.cache_keys import CacheKeys, CacheTTL
from cms.utils.caching import Cache, cache as default_cache
from cms.utils.logging import get_logger

logger = get_logger()

ModelT = TypeVar("ModelT", bound=Base)
T = TypeVar("T")


def parse_id(value: Any, label: str = "record") -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (TypeError, ValueError):
        raise InvalidIdentifier(f"Invalid {label} ID format")


class CachedService(Generic[ModelT]):
    """CRUD service with a cache-aside read path.

    Subclasses set ``model``, ``keys`` and ``label``. Reads go through
    :meth:`remember`; every write commits first and then calls
    :meth:`invalidate`, so a concurrent reader can never repopulate the
    cache from uncommitted state.

    ``dependent_patterns`` lists key patterns of other entities whose cached
    values embed this one (e.g. resources embed their source ministry).
    """

    model: ClassVar[type[Base]]
    keys: ClassVar[CacheKeys]
    label: ClassVar[str] = "record"
    dependent_patterns: ClassVar[tuple[str, ...]] = ()

    def __init__(
        self,
        db: AsyncSession,
        cache: Optional[Cache] = None,
        ttl: Optional[CacheTTL] = None,
    ):
        self.db = db
        self.cache = cache or default_cache
        self.ttl = ttl or CacheTTL.from_settings()
        self.repo: Repository[ModelT] = Repository(db, self.model)

    async def remember(
        self, key: str, producer: Callable[[], Awaitable[T]], ttl: int
    ) -> T:
        return await self.cache.get_with_fallback(key, producer, ttl)

    async def invalidate(
        self,
        record_id: Any = None,
        derived_keys: Iterable[str] = (),
        patterns: Iterable[str] = (),
    ) -> bool:
        keys = list(derived_keys)
        if record_id is not None:
            keys += self.keys.record_keys(record_id)
        all_patterns = [self.keys.list_pattern, *patterns, *self.dependent_patterns]
        ok = await self.cache.invalidate(keys=keys, patterns=all_patterns)
        if not ok:
            logger.warning(
                f"Partial cache invalidation for {self.keys.singular} {record_id}; "
                "stale entries will expire by TTL"
            )
        return ok

    async def clear_all_caches(self) -> bool:
        return await self.cache.invalidate(
            patterns=[self.keys.record_pattern, self.keys.namespace_pattern]
        )

    @asynccontextmanager
    async def writing(self, conflict_message: str = "Resource already exists"):
        """Commit the enclosed mutations; a duplicate key becomes Conflict."""
        try:
            yield
            await self.db.commit()
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Integrity error on {self.keys.singular}: {e.orig}")
            raise Conflict(conflict_message) from e

    async def get_or_404(
        self, record_id: Any, options: Iterable[Any] = (), include_deleted: bool = False
    ) -> ModelT:
        pk = parse_id(record_id, self.label)
        instance = await self.repo.get(
            pk, options=options, include_deleted=include_deleted
        )
        if instance is None:
            raise NotFound(f"{self.label.capitalize()} not found")
        return instance


def merge_info(current: Optional[dict], update: Optional[dict]) -> Optional[dict]:
    """Shallow-merge a partial language block into the stored one."""
    if not update:
        return current
    merged = dict(current or {})
    merged.update({k: v for k, v in update.items() if v is not None})
    return merged
