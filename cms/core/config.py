from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_ignore_empty=True)

    # App Settings
    APP_NAME: str = "Ministry CMS"
    PROJECT_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ALLOWED_ORIGINS: str = "*"  # Comma-separated string or "*"

    # Rate Limiting
    RATE_LIMIT_ENABLED: bool = False
    RATE_LIMIT_DEFAULT: str = "120/minute"

    DATABASE_URL: str

    # Cache
    CACHE_TYPE: str = "inmemory"  # inmemory, redis, or database
    REDIS_URL: str | None = None
    CACHE_PREFIX: str = "cms:"
    CACHE_TTL_RECORD: int = 3600  # single records and plain collections
    CACHE_TTL_QUERY: int = 1800  # parameterized list queries
    CACHE_TTL_TAXONOMY: int = 7200  # category aggregates

    SECRET_KEY: str = ""  # Required; validate below
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Seeded on startup when missing
    ADMIN_NAME: str = "admin"
    ADMIN_EMAIL: str = "admin@example.com"
    ADMIN_PASSWORD: str = "change-me-please"

    LOG_LEVEL: str = "INFO"
    LOG_DIR: str = "logs"

    # Parse ALLOWED_ORIGINS
    @property
    def allowed_origins_list(self) -> List[str]:
        if self.ALLOWED_ORIGINS == "*":
            return ["*"]
        return [o.strip() for o in self.ALLOWED_ORIGINS.split(",") if o.strip()]

    @property
    def secret_key_valid(self) -> bool:
        return bool(self.SECRET_KEY and self.SECRET_KEY != "your-secret-key")


settings = Settings()

# Validate SECRET_KEY on import (will raise ValidationError if invalid)
if not settings.secret_key_valid:
    raise ValueError(
        "SECRET_KEY must be set in .env (run python generate_secret.py to generate one)."
    )
