from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine

from cms.core.config import settings
from cms.db.base import Base

engine: AsyncEngine = create_async_engine(settings.DATABASE_URL)
SessionLocal = async_sessionmaker(
    autocommit=False, autoflush=False, bind=engine, expire_on_commit=False
)


async def init_db():
    # Import models so every table is registered on Base.metadata
    import cms.db  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
