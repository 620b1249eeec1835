from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Tag(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "tags"

    en: Mapped[dict] = mapped_column(JSON, nullable=False)
    kh: Mapped[dict] = mapped_column(JSON, nullable=False)
