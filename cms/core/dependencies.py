from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from cms.core.exceptions.errors import AppException
from cms.db.session import SessionLocal
from cms.utils.caching import Cache, cache

from cms.utils.logging import get_logger

logger = get_logger()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with SessionLocal() as session:
        try:
            yield session
            await session.commit()
        except AppException:
            await session.rollback()
            raise
        except Exception as e:
            await session.rollback()
            logger.exception(f"Database transaction rolled back: {e}")
            raise
        finally:
            await session.close()


def get_cache() -> Cache:
    return cache


DBDependency = Annotated[AsyncSession, Depends(get_db)]
CacheDependency = Annotated[Cache, Depends(get_cache)]


def query_model(model: type[BaseModel]):
    """Dependency validating the raw query string into ``model``.

    Aliases (``sortBy``) and field names are both accepted; parameters the
    model does not declare are dropped.
    """

    async def dependency(request: Request):
        try:
            return model.model_validate(dict(request.query_params))
        except ValidationError as e:
            raise RequestValidationError(
                [{**err, "loc": ("query", *err["loc"])} for err in e.errors()]
            )

    return Depends(dependency)
