import uuid

from sqlalchemy import JSON, ForeignKey, Uuid
from sqlalchemy.orm import Mapped, mapped_column, relationship

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Position(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "positions"

    # {"title": ..., "level": int}; (en.title, en.level) is unique among active rows
    en: Mapped[dict] = mapped_column(JSON, nullable=False)
    kh: Mapped[dict] = mapped_column(JSON, nullable=False)


class Member(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "members"

    en: Mapped[dict] = mapped_column(JSON, nullable=False)
    kh: Mapped[dict] = mapped_column(JSON, nullable=False)
    position_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("positions.id"), nullable=False, index=True
    )
    parent_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("members.id"), nullable=True
    )

    position: Mapped[Position] = relationship(Position, lazy="raise")
    parent: Mapped["Member | None"] = relationship(
        "Member", remote_side="Member.id", lazy="raise"
    )
