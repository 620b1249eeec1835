from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Banner(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "banners"

    title: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    image_url: Mapped[str] = mapped_column(String(1024), nullable=False)
