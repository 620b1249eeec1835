from typing import Any, Generic, Iterable, Optional, Sequence, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.db.base import Base

ModelT = TypeVar("ModelT", bound=Base)


class Repository(Generic[ModelT]):
    """Thin query helpers over one mapped model.

    Rows with a ``deleted_at`` column are filtered to active ones unless
    ``include_deleted`` is passed.
    """

    def __init__(self, db: AsyncSession, model: type[ModelT]):
        self.db = db
        self.model = model

    @property
    def soft_deletes(self) -> bool:
        return hasattr(self.model, "deleted_at")

    def select(self, *criteria, include_deleted: bool = False) -> Select:
        stmt = select(self.model).where(*criteria)
        if self.soft_deletes and not include_deleted:
            stmt = stmt.where(self.model.deleted_at.is_(None))
        return stmt

    async def find(
        self,
        *criteria,
        order_by: Iterable[Any] = (),
        offset: Optional[int] = None,
        limit: Optional[int] = None,
        options: Iterable[Any] = (),
        include_deleted: bool = False,
    ) -> Sequence[ModelT]:
        stmt = self.select(*criteria, include_deleted=include_deleted)
        stmt = stmt.order_by(*order_by).options(*options)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def find_one(
        self, *criteria, options: Iterable[Any] = (), include_deleted: bool = False
    ) -> Optional[ModelT]:
        options = tuple(options)
        stmt = self.select(*criteria, include_deleted=include_deleted).options(*options)
        if options:
            # eager loaders must refresh rows already in the identity map
            stmt = stmt.execution_options(populate_existing=True)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get(self, record_id, **kwargs) -> Optional[ModelT]:
        return await self.find_one(self.model.id == record_id, **kwargs)

    async def count(self, *criteria, include_deleted: bool = False) -> int:
        inner = self.select(*criteria, include_deleted=include_deleted).subquery()
        result = await self.db.execute(select(func.count()).select_from(inner))
        return result.scalar_one()

    async def exists(self, *criteria, include_deleted: bool = False) -> bool:
        stmt = self.select(*criteria, include_deleted=include_deleted).limit(1)
        result = await self.db.execute(stmt.with_only_columns(self.model.id))
        return result.first() is not None

    async def distinct(self, column, *criteria, include_deleted: bool = False) -> list:
        stmt = (
            self.select(*criteria, include_deleted=include_deleted)
            .with_only_columns(column)
            .where(column.is_not(None))
            .distinct()
            .order_by(column)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def create(self, **fields) -> ModelT:
        instance = self.model(**fields)
        self.db.add(instance)
        await self.db.flush()
        return instance

    async def save(self, instance: ModelT) -> ModelT:
        self.db.add(instance)
        await self.db.flush()
        return instance

    async def delete_one(self, instance: ModelT) -> ModelT:
        await self.db.delete(instance)
        await self.db.flush()
        return instance
