import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cms.db.base import Base
from cms.db.models.ministry import Ministry
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Resource(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "resources"
    __table_args__ = (UniqueConstraint("title", "lang", name="uq_resources_title_lang"),)

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    lang: Mapped[str] = mapped_column(String(8), nullable=False)
    cover: Mapped[str] = mapped_column(String(1024), nullable=False)
    file: Mapped[str] = mapped_column(String(1024), nullable=False)
    type: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    published_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("ministries.id"), nullable=False, index=True
    )

    source: Mapped[Ministry] = relationship(Ministry, lazy="raise")
