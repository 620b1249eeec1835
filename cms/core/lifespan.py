from contextlib import asynccontextmanager

from fastapi import FastAPI

from cms.db.session import SessionLocal, init_db
from cms.services.auth import AuthService
from cms.utils.caching import cache
from cms.utils.logging import get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger = get_logger()
    # Startup
    await init_db()
    await cache.init(SessionLocal)
    async with SessionLocal() as db:
        await AuthService(db).seed_admin_account()
    logger.bind(startup=True).info(f"Startup: {app.title} v{app.version} starting...")
    yield
    # Shutdown
    await cache.close()
    logger.info("Shutdown: App shutting down...")
