"""Room model, the top of the location hierarchy."""

from typing import Optional

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestash.models.base import Base, TimestampMixin


class Room(Base, TimestampMixin):
    """A physical room of the house (e.g. a bedroom)."""

    __tablename__ = "rooms"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    icon: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)

    # Relationships
    containers: Mapped[list["Container"]] = relationship(
        "Container", back_populates="room", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Room(id={self.id!r}, name={self.name!r})>"
