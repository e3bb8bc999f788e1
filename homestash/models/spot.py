"""Spot model for addressable locations inside a container."""

from typing import Optional

from sqlalchemy import Boolean, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestash.models.base import Base, TimestampMixin


class Spot(Base, TimestampMixin):
    """Spot model identified by a globally unique, immutable code."""

    __tablename__ = "spots"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    container_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("containers.id", ondelete="CASCADE"), nullable=False, index=True
    )
    label: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    code: Mapped[str] = mapped_column(String(64), nullable=False, unique=True, index=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    # Relationships
    container: Mapped["Container"] = relationship("Container", back_populates="spots")
    items: Mapped[list["Item"]] = relationship(
        "Item", back_populates="spot", cascade="all, delete-orphan"
    )
    documents: Mapped[list["Document"]] = relationship(
        "Document", back_populates="spot", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Spot(id={self.id!r}, code={self.code!r}, label={self.label!r})>"
