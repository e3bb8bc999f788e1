"""Storage layer for homestash."""

from homestash.storage.database import Database
from homestash.storage.repositories import (
    ContainerRepository,
    DocumentRepository,
    ItemRepository,
    RoomRepository,
    SpotRepository,
)

__all__ = [
    "Database",
    "RoomRepository",
    "ContainerRepository",
    "SpotRepository",
    "ItemRepository",
    "DocumentRepository",
]
