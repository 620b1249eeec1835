from sqlalchemy import JSON
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Ministry(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "ministries"

    # {"name": ..., "lang": ...}; names are unique per language
    en: Mapped[dict] = mapped_column(JSON, nullable=False)
    kh: Mapped[dict] = mapped_column(JSON, nullable=False)
