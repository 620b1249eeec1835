from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, mapped_column

from cms.db.base import Base
from cms.db.models.mixins import IdMixin, SoftDeleteMixin, TimestampMixin


class Module(IdMixin, TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "modules"

    en: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    kh: Mapped[dict | None] = mapped_column(JSON(none_as_null=True), nullable=True)
    main_category: Mapped[str] = mapped_column(String(120), nullable=False, index=True)
    sub_category: Mapped[str | None] = mapped_column(String(120), nullable=True)
    cover: Mapped[str | None] = mapped_column(String(1024), nullable=True)
