from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from cms.api.v1.router import router as v1_router
from cms.core.config import settings
from cms.core.exceptions.handlers import register_exception_handlers
from cms.core.lifespan import lifespan
from cms.core.logging import setup_early_logging
from cms.core.middlewares import LogRequestsMiddleware
from cms.core.openapi import custom_openapi
from cms.core.rate_limiting import setup_rate_limiting
from cms.core.responses import send_success

# Setup early logging for startup errors
setup_early_logging()

app = FastAPI(
    title=settings.APP_NAME,
    version=settings.PROJECT_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    openapi_tags=[
        {"name": "auth", "description": "Admin authentication"},
        {"name": "ministries", "description": "Ministries referenced as resource sources"},
        {"name": "members", "description": "Organization members and their positions"},
        {"name": "resources", "description": "Published documents and the combined feed"},
        {"name": "contents", "description": "Blog contents"},
        {"name": "cache", "description": "Cache maintenance"},
    ],
)

app.openapi = lambda: custom_openapi(app)

setup_rate_limiting(app)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(LogRequestsMiddleware)

register_exception_handlers(app)

app.include_router(v1_router)


@app.get("/health")
async def health_check():
    return send_success(
        message="OK", data={"status": "healthy", "version": settings.PROJECT_VERSION}
    )
