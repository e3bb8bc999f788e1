"""Document model for paper documents stored in a spot."""

from datetime import datetime
from typing import Optional

from sqlalchemy import JSON, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestash.models.base import Base, TimestampMixin


class Document(Base, TimestampMixin):
    """Document model with an optional expiry date and attached file paths."""

    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    spot_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("spots.id", ondelete="CASCADE"), nullable=False, index=True
    )
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    doc_type: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)
    person: Mapped[Optional[str]] = mapped_column(String(200), nullable=True, index=True)
    expiry_date: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True, index=True)
    tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    # Ordered list of attachment paths; the files themselves live elsewhere
    file_paths: Mapped[list[str]] = mapped_column(
        JSON().with_variant(JSONB, "postgresql"), nullable=False, default=list
    )

    # Relationships
    spot: Mapped["Spot"] = relationship("Spot", back_populates="documents")

    def __repr__(self) -> str:
        return f"<Document(id={self.id!r}, title={self.title!r}, spot_id={self.spot_id!r})>"
