"""Database models for homestash."""

from homestash.models.base import Base, TimestampMixin, utcnow
from homestash.models.room import Room
from homestash.models.container import Container, ContainerType, LEGACY_CONTAINER_TYPES
from homestash.models.spot import Spot
from homestash.models.item import Item
from homestash.models.document import Document

__all__ = [
    "Base",
    "TimestampMixin",
    "utcnow",
    "Room",
    "Container",
    "ContainerType",
    "LEGACY_CONTAINER_TYPES",
    "Spot",
    "Item",
    "Document",
]
