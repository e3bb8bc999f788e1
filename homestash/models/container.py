"""Container model for furniture and storage units inside a room."""

import enum
from typing import Optional

from sqlalchemy import Boolean, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from homestash.models.base import Base, TimestampMixin


class ContainerType(str, enum.Enum):
    """Closed set of container kinds."""

    WARDROBE = "WARDROBE"
    DRAWER = "DRAWER"
    SHELF = "SHELF"
    FOLDER = "FOLDER"
    OTHER = "OTHER"


# Names written by the first generation of the app
LEGACY_CONTAINER_TYPES = {
    "ARMADIO": ContainerType.WARDROBE,
    "CASSETTO": ContainerType.DRAWER,
    "SCAFFALE": ContainerType.SHELF,
    "CARTELLINA": ContainerType.FOLDER,
    "ALTRO": ContainerType.OTHER,
}


class Container(Base, TimestampMixin):
    """Container model representing a storage unit that belongs to one room."""

    __tablename__ = "containers"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    room_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("rooms.id", ondelete="CASCADE"), nullable=False, index=True
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False, index=True)
    type: Mapped[ContainerType] = mapped_column(
        Enum(ContainerType, native_enum=False, length=20, validate_strings=True),
        nullable=False,
        default=ContainerType.OTHER,
    )
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    is_favorite: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, index=True)

    # Relationships
    room: Mapped["Room"] = relationship("Room", back_populates="containers")
    spots: Mapped[list["Spot"]] = relationship(
        "Spot", back_populates="container", cascade="all, delete-orphan"
    )

    def __repr__(self) -> str:
        return f"<Container(id={self.id!r}, name={self.name!r}, room_id={self.room_id!r})>"
