import traceback

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from sqlalchemy.exc import IntegrityError, NoResultFound
from starlette.exceptions import HTTPException as StarletteHTTPException

from cms.core.exceptions.errors import AppException
from cms.core.responses import error_response
from cms.utils.logging import get_logger

logger = get_logger()


def _friendly_errors(exc: RequestValidationError) -> dict[str, str]:
    """``{"en.name": "String should have at least 1 character", ...}``"""
    errors = {}
    for error in exc.errors():
        loc = list(error["loc"])
        if loc and loc[0] in ("body", "query", "path"):
            loc = loc[1:]
        errors[".".join(map(str, loc)) or "request"] = error["msg"]
    return errors


def register_exception_handlers(app):
    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        logger.error(
            f"Unhandled exception for {request.method} {request.url}: {exc}\n"
            f"Traceback: {traceback.format_exc()}"
        )
        return error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR, "An unexpected error occurred."
        )

    @app.exception_handler(AppException)
    async def app_exception_handler(request: Request, exc: AppException):
        logger.info(
            f"{type(exc).__name__} for {request.method} {request.url.path}: {exc.message}"
        )
        return error_response(exc.status_code, exc.message, exc.data)

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        errors = _friendly_errors(exc)
        logger.info(f"Validation failed for {request.method} {request.url.path}: {errors}")
        return error_response(
            422, "Validation failed", {"errors": errors}
        )

    # Services map known duplicates to Conflict; these are the ones that slip past
    @app.exception_handler(IntegrityError)
    async def integrity_exception_handler(request: Request, exc: IntegrityError):
        logger.warning(
            f"Integrity error for {request.method} {request.url.path}: {exc.orig}"
        )
        return error_response(
            status.HTTP_409_CONFLICT, "Resource conflicts with an existing record"
        )

    @app.exception_handler(NoResultFound)
    async def not_found_exception_handler(request: Request, exc: NoResultFound):
        return error_response(status.HTTP_404_NOT_FOUND, "Resource not found")

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        if exc.status_code >= 500:
            logger.error(f"HTTP {exc.status_code} for {request.url.path}: {exc.detail}")
        return error_response(
            exc.status_code, str(exc.detail), headers=getattr(exc, "headers", None)
        )
