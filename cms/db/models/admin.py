from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, TimestampMixin


class Admin(IdMixin, TimestampMixin, Base):
    __tablename__ = "admins"

    name: Mapped[str] = mapped_column(String(120), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    hashed_password: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(32), default="admin", nullable=False)
