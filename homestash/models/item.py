"""Item model for physical belongings stored in a spot."""

from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestash.models.base import Base, TimestampMixin


class Item(Base, TimestampMixin):
    """Item model with free-text search fields and lending state."""

    __tablename__ = "items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    spot_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("spots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    category: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)
    keywords: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    image_path: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    is_lent: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    lent_to: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    lent_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)

    # Relationships
    spot: Mapped["Spot"] = relationship("Spot", back_populates="items")

    def __repr__(self) -> str:
        return f"<Item(id={self.id!r}, name={self.name!r}, spot_id={self.spot_id!r})>"
