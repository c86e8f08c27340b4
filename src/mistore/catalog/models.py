"""SQLAlchemy model for catalog app records."""

from sqlalchemy import CheckConstraint, Float, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from mistore.common.models import Base, TimestampMixin


class AppModel(Base, TimestampMixin):
    __tablename__ = "apps"
    __table_args__ = (
        CheckConstraint("price >= 0", name="ck_apps_price_nonnegative"),
        CheckConstraint("length(trim(name)) > 0", name="ck_apps_name_nonempty"),
        Index("ix_apps_created_id", "created_at", "id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    image_key: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    artifact_key: Mapped[str] = mapped_column(String(1024), nullable=False)
    price: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)

    @property
    def is_paid(self) -> bool:
        return self.price > 0
