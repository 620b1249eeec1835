import uuid

from sqlalchemy import JSON, ForeignKey, String, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Content(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    """Blog post with per-language rich-text documents."""

    __tablename__ = "contents"

    # {"title": ..., "document": {...}, "description": ...}
    en: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    kh: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("contents.id"), nullable=True
    )
    category: Mapped[str | None] = mapped_column(String(120), nullable=True, index=True)
    status: Mapped[str] = mapped_column(String(32), default="draft", nullable=False)
    tag_ids: Mapped[list] = mapped_column(JSON, default=list, nullable=False)
    source_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("ministries.id"), nullable=True
    )
