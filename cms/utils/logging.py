import os

from loguru import logger

from cms.core.config import settings

LOG_DIR = settings.LOG_DIR
LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {name}:{line} | {message}"

APP_LOG_PATH = os.path.join(LOG_DIR, "app.log")
# cache outages, integrity errors and 5xx land here as well
ERROR_LOG_PATH = os.path.join(LOG_DIR, "errors.log")
STARTUP_LOG_PATH = os.path.join(LOG_DIR, "startup", "startup.log")


def _is_startup(record) -> bool:
    return record["extra"].get("startup", False)


SINKS = [
    (APP_LOG_PATH, {"level": settings.LOG_LEVEL, "format": LOG_FORMAT}),
    (ERROR_LOG_PATH, {"level": "WARNING", "format": LOG_FORMAT}),
    (
        STARTUP_LOG_PATH,
        {
            "level": "INFO",
            "filter": _is_startup,
            "format": "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message}",
        },
    ),
]

for path, options in SINKS:
    os.makedirs(os.path.dirname(path), exist_ok=True)
    logger.add(path, rotation="10 MB", enqueue=True, backtrace=True, diagnose=False, **options)


def get_logger():
    """Return the global logger."""
    return logger
