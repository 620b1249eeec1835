from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Partner(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "partners"

    en: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    kh: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    logo: Mapped[str | None] = mapped_column(String(1024), nullable=True)


class PartnerRequest(IdMixin, TimestampMixin, Base):
    __tablename__ = "partner_requests"

    status: Mapped[str] = mapped_column(String(32), default="pending", nullable=False)
    email: Mapped[str] = mapped_column(String(255), nullable=False)
    reason: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(String(4000), nullable=True)
