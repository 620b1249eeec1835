from datetime import timedelta

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from cms.core.config import settings
from cms.core.security import create_access_token, get_password_hash, verify_password
from cms.db.models.admin import Admin
from cms.utils.logging import get_logger

logger = get_logger()


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def seed_admin_account(self) -> Admin:
        """Create the configured admin on first start; existing accounts are left alone."""
        result = await self.db.execute(
            select(Admin).where(Admin.email == settings.ADMIN_EMAIL)
        )
        admin = result.scalar_one_or_none()
        if admin is None:
            admin = Admin(
                name=settings.ADMIN_NAME,
                email=settings.ADMIN_EMAIL,
                hashed_password=get_password_hash(settings.ADMIN_PASSWORD),
                role="admin",
            )
            self.db.add(admin)
            await self.db.commit()
            logger.bind(startup=True).info(f"Seeded admin account {admin.email}")
        return admin

    async def login(self, email: str, password: str) -> tuple[str, Admin] | None:
        result = await self.db.execute(select(Admin).where(Admin.email == email))
        admin = result.scalar_one_or_none()
        if admin is None or not verify_password(password, admin.hashed_password):
            return None
        token = create_access_token(
            data={"sub": admin.email, "role": admin.role},
            expires_delta=timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES),
        )
        return token, admin
