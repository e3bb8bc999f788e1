"""Service layer for business logic and validation."""

from homestash.services.backup_service import BackupService, ImportStats
from homestash.services.container_service import ContainerService
from homestash.services.document_service import DocumentService
from homestash.services.item_service import ItemService
from homestash.services.room_service import RoomService
from homestash.services.search_dispatch import SearchDispatcher
from homestash.services.search_service import (
    FavoriteEntry,
    FavoriteKind,
    ResultKind,
    SearchOutcome,
    SearchResult,
    SearchService,
)
from homestash.services.spot_service import SpotService

__all__ = [
    "RoomService",
    "ContainerService",
    "SpotService",
    "ItemService",
    "DocumentService",
    "SearchService",
    "SearchDispatcher",
    "SearchOutcome",
    "SearchResult",
    "ResultKind",
    "FavoriteEntry",
    "FavoriteKind",
    "BackupService",
    "ImportStats",
]
