"""Backup export and import of the whole inventory as JSON."""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable

from sqlalchemy import text
from sqlalchemy.orm import Session

from homestash.exceptions import (
    BackupError,
    BackupFormatError,
    DatabaseError,
    DuplicateError,
    ImportVersionError,
    ValidationError,
)
from homestash.models import Container, Document, Item, Room, Spot
from homestash.models.base import utcnow
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.repositories import (
    ContainerRepository,
    DocumentRepository,
    ItemRepository,
    RoomRepository,
    SpotRepository,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 3
APP_NAME = "homestash"
BACKUP_FILENAME_FORMAT = "homestash_backup_%Y%m%d_%H%M%S.json"

# Tables whose integer ids are restored verbatim
RESTORED_TABLES = ("rooms", "containers", "spots", "items", "documents")


@dataclass
class ImportStats:
    """Number of records restored per entity type."""

    rooms: int = 0
    containers: int = 0
    spots: int = 0
    items: int = 0
    documents: int = 0

    @property
    def total(self) -> int:
        return self.rooms + self.containers + self.spots + self.items + self.documents


def generate_backup_filename(now: datetime | None = None) -> str:
    """Suggest a file name such as homestash_backup_20240131_154500.json."""
    return (now or datetime.now()).strftime(BACKUP_FILENAME_FORMAT)


def _format_timestamp(value: datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def _parse_timestamp(value: Any, field: str, required: bool = True) -> datetime | None:
    """Accept ISO-8601 strings or epoch milliseconds (older backups)."""
    if value is None:
        if required:
            raise BackupFormatError(f"Missing timestamp '{field}'")
        return None
    if isinstance(value, bool):
        raise BackupFormatError(f"Invalid timestamp '{field}': {value!r}")
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc).replace(tzinfo=None)
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value)
        except ValueError as e:
            raise BackupFormatError(f"Invalid timestamp '{field}': {value!r}") from e
        if parsed.tzinfo is not None:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        return parsed
    raise BackupFormatError(f"Invalid timestamp '{field}': {value!r}")


def _parse_file_paths(record: dict[str, Any]) -> list[str]:
    """Read filePaths, converting the legacy formats.

    filePaths may be a list or a JSON-encoded list string; a lone legacy
    filePath becomes a one-element list.
    """
    paths = record.get("filePaths")
    if isinstance(paths, str):
        if not paths.strip():
            paths = None
        else:
            try:
                paths = json.loads(paths)
            except json.JSONDecodeError as e:
                raise BackupFormatError(f"Invalid filePaths value: {paths!r}") from e
    if paths:
        if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
            raise BackupFormatError(f"filePaths must be a list of strings: {paths!r}")
        return [p for p in paths if p]

    legacy = record.get("filePath")
    if isinstance(legacy, str) and legacy.strip():
        return [legacy]
    return []


def _require(record: dict[str, Any], key: str, entity: str) -> Any:
    if key not in record or record[key] is None:
        raise BackupFormatError(f"{entity} record is missing '{key}': {record!r}")
    return record[key]


class BackupService:
    """Exports the inventory to a versioned JSON document and restores it.

    A restore replaces everything: all rows are deleted and the backup's
    records inserted in a single transaction, so a failing import leaves
    the previous data untouched.
    """

    def __init__(self, session: Session):
        """
        Initialize backup service with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.room_repo = RoomRepository(session)
        self.container_repo = ContainerRepository(session)
        self.spot_repo = SpotRepository(session)
        self.item_repo = ItemRepository(session)
        self.document_repo = DocumentRepository(session)

    # Export

    def export_data(self) -> dict[str, Any]:
        """
        Build the backup document for every entity in the store.

        Returns:
            Dictionary with schemaVersion, appName, exportedAt and data
        """
        try:
            data = {
                "rooms": [self._room_to_dict(r) for r in self.room_repo.get_all()],
                "containers": [self._container_to_dict(c) for c in self.container_repo.get_all()],
                "spots": [self._spot_to_dict(s) for s in self.spot_repo.get_all()],
                "items": [self._item_to_dict(i) for i in self.item_repo.get_all()],
                "documents": [self._document_to_dict(d) for d in self.document_repo.get_all()],
            }
        except Exception as e:
            raise DatabaseError(f"Failed to export data: {str(e)}", e) from e

        return {
            "schemaVersion": SCHEMA_VERSION,
            "appName": APP_NAME,
            "exportedAt": _format_timestamp(utcnow()),
            "data": data,
        }

    def export_json(self, indent: int | None = 2) -> str:
        """Export the store as a JSON string."""
        return json.dumps(self.export_data(), indent=indent, ensure_ascii=False)

    def export_to_file(self, path: str | Path) -> Path:
        """
        Write a backup file.

        Returns:
            The path written to
        """
        path = Path(path)
        payload = self.export_json()
        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as e:
            raise BackupError(f"Cannot write backup file {path}: {e}") from e
        logger.info("Exported backup to %s", path)
        return path

    @staticmethod
    def _room_to_dict(room: Room) -> dict[str, Any]:
        return {
            "id": room.id,
            "name": room.name,
            "icon": room.icon,
            "createdAt": _format_timestamp(room.created_at),
            "updatedAt": _format_timestamp(room.updated_at),
        }

    @staticmethod
    def _container_to_dict(container: Container) -> dict[str, Any]:
        return {
            "id": container.id,
            "roomId": container.room_id,
            "name": container.name,
            "type": container.type.value,
            "note": container.note,
            "isFavorite": container.is_favorite,
            "createdAt": _format_timestamp(container.created_at),
            "updatedAt": _format_timestamp(container.updated_at),
        }

    @staticmethod
    def _spot_to_dict(spot: Spot) -> dict[str, Any]:
        return {
            "id": spot.id,
            "containerId": spot.container_id,
            "label": spot.label,
            "code": spot.code,
            "note": spot.note,
            "isFavorite": spot.is_favorite,
            "createdAt": _format_timestamp(spot.created_at),
            "updatedAt": _format_timestamp(spot.updated_at),
        }

    @staticmethod
    def _item_to_dict(item: Item) -> dict[str, Any]:
        return {
            "id": item.id,
            "spotId": item.spot_id,
            "name": item.name,
            "category": item.category,
            "keywords": item.keywords,
            "tags": item.tags,
            "note": item.note,
            "imagePath": item.image_path,
            "isLent": item.is_lent,
            "lentTo": item.lent_to,
            "lentDate": _format_timestamp(item.lent_date),
            "createdAt": _format_timestamp(item.created_at),
            "updatedAt": _format_timestamp(item.updated_at),
        }

    @staticmethod
    def _document_to_dict(document: Document) -> dict[str, Any]:
        return {
            "id": document.id,
            "spotId": document.spot_id,
            "title": document.title,
            "docType": document.doc_type,
            "person": document.person,
            "expiryDate": _format_timestamp(document.expiry_date),
            "tags": document.tags,
            "note": document.note,
            "filePaths": list(document.file_paths or []),
            "createdAt": _format_timestamp(document.created_at),
            "updatedAt": _format_timestamp(document.updated_at),
        }

    # Import

    def import_json(self, text: str) -> ImportStats:
        """Restore from a JSON string."""
        try:
            payload = json.loads(text)
        except json.JSONDecodeError as e:
            raise BackupFormatError(f"Backup is not valid JSON: {e}") from e
        return self.import_data(payload)

    def import_from_file(self, path: str | Path) -> ImportStats:
        """Restore from a backup file."""
        path = Path(path)
        try:
            text = path.read_text(encoding="utf-8")
        except OSError as e:
            raise BackupError(f"Cannot read backup file {path}: {e}") from e
        stats = self.import_json(text)
        logger.info("Imported backup from %s (%d records)", path, stats.total)
        return stats

    def import_data(self, payload: dict[str, Any]) -> ImportStats:
        """
        Replace the whole store with the contents of a backup document.

        Args:
            payload: Parsed backup document

        Returns:
            ImportStats with per-entity counts

        Raises:
            ImportVersionError: If the backup was written by a newer schema
            BackupFormatError: If the document is malformed or references
                parents that are not part of it
            DuplicateError: If two spots share a code
            DatabaseError: If the restore transaction fails (nothing is changed)
        """
        if not isinstance(payload, dict):
            raise BackupFormatError("Backup must be a JSON object")

        version = payload.get("schemaVersion")
        if isinstance(version, bool) or not isinstance(version, int):
            raise BackupFormatError(f"Invalid schemaVersion: {version!r}")
        if version > SCHEMA_VERSION:
            raise ImportVersionError(version, SCHEMA_VERSION)

        data = payload.get("data")
        if not isinstance(data, dict):
            raise BackupFormatError("Backup is missing the 'data' object")

        rooms = self._parse_records(data, "rooms", self._room_from_dict)
        containers = self._parse_records(data, "containers", self._container_from_dict)
        spots = self._parse_records(data, "spots", self._spot_from_dict)
        items = self._parse_records(data, "items", self._item_from_dict)
        documents = self._parse_records(data, "documents", self._document_from_dict)

        self._check_references(rooms, containers, spots, items, documents)

        try:
            # Children first so no delete trips a foreign key
            self.document_repo.delete_all()
            self.item_repo.delete_all()
            self.spot_repo.delete_all()
            self.container_repo.delete_all()
            self.room_repo.delete_all()
            self.session.expunge_all()

            for group in (rooms, containers, spots, items, documents):
                self.session.add_all(group)
                self.session.flush()
            self._sync_id_sequences()
            self.session.commit()
        except Exception as e:
            self.session.rollback()
            logger.error("Restore failed, previous data kept: %s", e)
            raise DatabaseError(f"Failed to restore backup: {str(e)}", e) from e

        stats = ImportStats(
            rooms=len(rooms),
            containers=len(containers),
            spots=len(spots),
            items=len(items),
            documents=len(documents),
        )
        logger.info("Restored %d records", stats.total)
        return stats

    @staticmethod
    def _parse_records(data: dict[str, Any], key: str, convert: Callable[[dict[str, Any]], Any]) -> list:
        records = data.get(key, [])
        if records is None:
            return []
        if not isinstance(records, list):
            raise BackupFormatError(f"'{key}' must be a list")
        parsed = []
        for record in records:
            if not isinstance(record, dict):
                raise BackupFormatError(f"'{key}' entries must be objects")
            try:
                parsed.append(convert(record))
            except ValidationError as e:
                raise BackupFormatError(f"Invalid {key} record: {e}") from e
        return parsed

    @staticmethod
    def _check_references(
        rooms: list[Room],
        containers: list[Container],
        spots: list[Spot],
        items: list[Item],
        documents: list[Document],
    ) -> None:
        def unique_ids(records: list, entity: str) -> set[int]:
            ids = set()
            for record in records:
                if record.id in ids:
                    raise DuplicateError(entity, "id", str(record.id))
                ids.add(record.id)
            return ids

        room_ids = unique_ids(rooms, "Room")
        container_ids = unique_ids(containers, "Container")
        spot_ids = unique_ids(spots, "Spot")
        unique_ids(items, "Item")
        unique_ids(documents, "Document")

        codes: set[str] = set()
        for spot in spots:
            if spot.code in codes:
                raise DuplicateError("Spot", "code", spot.code)
            codes.add(spot.code)

        for container in containers:
            if container.room_id not in room_ids:
                raise BackupFormatError(
                    f"Container {container.id} references unknown room {container.room_id}"
                )
        for spot in spots:
            if spot.container_id not in container_ids:
                raise BackupFormatError(
                    f"Spot {spot.id} references unknown container {spot.container_id}"
                )
        for record in [*items, *documents]:
            if record.spot_id not in spot_ids:
                raise BackupFormatError(
                    f"{type(record).__name__} {record.id} references unknown spot {record.spot_id}"
                )

    def _sync_id_sequences(self) -> list[str]:
        """
        Move PostgreSQL id sequences past the restored ids.

        Explicit ids bypass the serial sequences, so without this the next
        insert would reuse id 1. Other backends derive the next id from the
        table itself.

        Returns:
            The tables whose sequence was reset
        """
        if self.session.get_bind().dialect.name != "postgresql":
            return []
        for table in RESTORED_TABLES:
            # An empty table restarts at 1; otherwise continue after MAX(id)
            self.session.execute(
                text(
                    f"SELECT setval(pg_get_serial_sequence('{table}', 'id'), "
                    f"COALESCE((SELECT MAX(id) FROM {table}), 1), "
                    f"(SELECT MAX(id) FROM {table}) IS NOT NULL)"
                )
            )
        logger.debug("Reset id sequences for %s", ", ".join(RESTORED_TABLES))
        return list(RESTORED_TABLES)

    @staticmethod
    def _room_from_dict(record: dict[str, Any]) -> Room:
        return Room(
            id=_require(record, "id", "Room"),
            name=_require(record, "name", "Room"),
            icon=record.get("icon"),
            created_at=_parse_timestamp(record.get("createdAt"), "createdAt"),
            updated_at=_parse_timestamp(record.get("updatedAt"), "updatedAt"),
        )

    @staticmethod
    def _container_from_dict(record: dict[str, Any]) -> Container:
        return Container(
            id=_require(record, "id", "Container"),
            room_id=_require(record, "roomId", "Container"),
            name=_require(record, "name", "Container"),
            type=HierarchyValidator.parse_container_type(record.get("type")),
            note=record.get("note"),
            is_favorite=bool(record.get("isFavorite", False)),
            created_at=_parse_timestamp(record.get("createdAt"), "createdAt"),
            updated_at=_parse_timestamp(record.get("updatedAt"), "updatedAt"),
        )

    @staticmethod
    def _spot_from_dict(record: dict[str, Any]) -> Spot:
        return Spot(
            id=_require(record, "id", "Spot"),
            container_id=_require(record, "containerId", "Spot"),
            label=_require(record, "label", "Spot"),
            code=_require(record, "code", "Spot"),
            note=record.get("note"),
            is_favorite=bool(record.get("isFavorite", False)),
            created_at=_parse_timestamp(record.get("createdAt"), "createdAt"),
            updated_at=_parse_timestamp(record.get("updatedAt"), "updatedAt"),
        )

    @staticmethod
    def _item_from_dict(record: dict[str, Any]) -> Item:
        return Item(
            id=_require(record, "id", "Item"),
            spot_id=_require(record, "spotId", "Item"),
            name=_require(record, "name", "Item"),
            category=record.get("category"),
            keywords=record.get("keywords"),
            tags=record.get("tags"),
            note=record.get("note"),
            image_path=record.get("imagePath"),
            is_lent=bool(record.get("isLent", False)),
            lent_to=record.get("lentTo"),
            lent_date=_parse_timestamp(record.get("lentDate"), "lentDate", required=False),
            created_at=_parse_timestamp(record.get("createdAt"), "createdAt"),
            updated_at=_parse_timestamp(record.get("updatedAt"), "updatedAt"),
        )

    @staticmethod
    def _document_from_dict(record: dict[str, Any]) -> Document:
        return Document(
            id=_require(record, "id", "Document"),
            spot_id=_require(record, "spotId", "Document"),
            title=_require(record, "title", "Document"),
            doc_type=record.get("docType"),
            person=record.get("person"),
            expiry_date=_parse_timestamp(record.get("expiryDate"), "expiryDate", required=False),
            tags=record.get("tags"),
            note=record.get("note"),
            file_paths=_parse_file_paths(record),
            created_at=_parse_timestamp(record.get("createdAt"), "createdAt"),
            updated_at=_parse_timestamp(record.get("updatedAt"), "updatedAt"),
        )

    def clear_all_data(self) -> None:
        """Delete every record in the store."""
        try:
            self.document_repo.delete_all()
            self.item_repo.delete_all()
            self.spot_repo.delete_all()
            self.container_repo.delete_all()
            self.room_repo.delete_all()
            self.session.commit()
            self.session.expunge_all()
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to clear data: {str(e)}", e) from e
        logger.info("Cleared all data")
