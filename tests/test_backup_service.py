"""Tests for backup export and restore."""

import json
import os
import tempfile
from datetime import datetime
from unittest.mock import MagicMock, patch

import pytest

pytestmark = pytest.mark.unit

from homestash.exceptions import (
    BackupError,
    BackupFormatError,
    DatabaseError,
    DuplicateError,
    ImportVersionError,
)
from homestash.models import ContainerType
from homestash.services.backup_service import (
    SCHEMA_VERSION,
    BackupService,
    generate_backup_filename,
)
from homestash.services.container_service import ContainerService
from homestash.services.document_service import DocumentService
from homestash.services.item_service import ItemService
from homestash.services.room_service import RoomService
from homestash.services.spot_service import SpotService
from homestash.storage.database import Database


@pytest.fixture
def second_db():
    """A second empty database to restore into."""
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    database = Database(f"sqlite:///{db_path}")
    database.create_tables()
    yield database
    database.drop_tables()
    database.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


def _minimal_backup(**overrides):
    payload = {
        "schemaVersion": SCHEMA_VERSION,
        "appName": "homestash",
        "exportedAt": "2026-01-01T00:00:00",
        "data": {
            "rooms": [
                {"id": 7, "name": "Garage", "createdAt": "2026-01-01T00:00:00", "updatedAt": "2026-01-01T00:00:00"}
            ],
            "containers": [
                {
                    "id": 8,
                    "roomId": 7,
                    "name": "Workbench",
                    "type": "SHELF",
                    "createdAt": "2026-01-01T00:00:00",
                    "updatedAt": "2026-01-01T00:00:00",
                }
            ],
            "spots": [
                {
                    "id": 9,
                    "containerId": 8,
                    "label": "Top",
                    "code": "GAR-WOR-TO",
                    "createdAt": "2026-01-01T00:00:00",
                    "updatedAt": "2026-01-01T00:00:00",
                }
            ],
            "items": [],
            "documents": [],
        },
    }
    payload["data"].update(overrides)
    return payload


def _counts(database):
    with database.session() as session:
        return (
            len(RoomService(session).list_rooms()),
            len(ContainerService(session).list_containers()),
            len(SpotService(session).list_spots()),
            len(ItemService(session).list_items()),
            len(DocumentService(session).list_documents()),
        )


class TestExport:
    """Tests for the export side."""

    def test_document_shape(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            payload = BackupService(session).export_data()

        assert payload["schemaVersion"] == SCHEMA_VERSION
        assert payload["appName"] == "homestash"
        assert payload["exportedAt"]
        data = payload["data"]
        assert [len(data[k]) for k in ("rooms", "containers", "spots", "items", "documents")] == [2, 2, 3, 2, 2]

        spot = next(s for s in data["spots"] if s["code"] == "CAM-ARM-C1")
        assert spot["containerId"] == sample_hierarchy.wardrobe_id
        container = next(c for c in data["containers"] if c["name"] == "Armadio grande")
        assert container["type"] == "WARDROBE"
        passport = next(d for d in data["documents"] if d["title"] == "Passport")
        assert passport["filePaths"] == []
        assert passport["person"] == "Anna"

    def test_export_json_is_parseable(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            text = BackupService(session).export_json()
        assert json.loads(text)["data"]["rooms"][0]["name"] == "Camera da letto"

    def test_filename(self):
        assert generate_backup_filename(datetime(2024, 1, 31, 15, 45, 0)) == "homestash_backup_20240131_154500.json"


class TestRoundTrip:
    """Tests for export followed by import."""

    def test_restore_into_fresh_database(self, temp_db, second_db, sample_hierarchy):
        with temp_db.session() as session:
            ItemService(session).lend_item(sample_hierarchy.drill_id, "Marco", datetime(2026, 2, 1, 9, 30))
            DocumentService(session).create_document(
                sample_hierarchy.pantry_spot_id,
                "Oven manual",
                expiry_date=datetime(2030, 5, 1),
                file_paths=["manuals/oven.pdf", "manuals/oven-2.pdf"],
            )
            text = BackupService(session).export_json()

        with second_db.session() as session:
            stats = BackupService(session).import_json(text)
        assert (stats.rooms, stats.containers, stats.spots, stats.items, stats.documents) == (2, 2, 3, 2, 3)
        assert stats.total == 12

        with second_db.session() as session:
            spot = SpotService(session).get_spot_by_code("CAM-ARM-C1")
            assert spot.id == sample_hierarchy.drawer_spot_id
            container = ContainerService(session).get_container(sample_hierarchy.wardrobe_id)
            assert container.type is ContainerType.WARDROBE
            drill = ItemService(session).get_item(sample_hierarchy.drill_id)
            assert drill.is_lent is True
            assert drill.lent_to == "Marco"
            assert drill.lent_date == datetime(2026, 2, 1, 9, 30)
            manual = next(d for d in DocumentService(session).list_documents() if d.title == "Oven manual")
            assert manual.file_paths == ["manuals/oven.pdf", "manuals/oven-2.pdf"]
            assert manual.expiry_date == datetime(2030, 5, 1)

        with temp_db.session() as session:
            original = BackupService(session).export_data()["data"]
        with second_db.session() as session:
            restored = BackupService(session).export_data()["data"]
        assert restored == original

    def test_restore_replaces_existing_data(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            BackupService(session).import_data(_minimal_backup())

        assert _counts(temp_db) == (1, 1, 1, 0, 0)
        with temp_db.session() as session:
            assert SpotService(session).get_spot(9).code == "GAR-WOR-TO"

    def test_file_round_trip(self, temp_db, second_db, sample_hierarchy, tmp_path):
        target = tmp_path / generate_backup_filename()
        with temp_db.session() as session:
            written = BackupService(session).export_to_file(target)
        assert written == target

        with second_db.session() as session:
            BackupService(session).import_from_file(target)
        assert _counts(second_db) == (2, 2, 3, 2, 2)

    def test_unreadable_file(self, temp_db, tmp_path):
        with temp_db.session() as session:
            with pytest.raises(BackupError):
                BackupService(session).import_from_file(tmp_path / "missing.json")

    def test_codes_are_kept_not_regenerated(self, temp_db, second_db, sample_hierarchy):
        with temp_db.session() as session:
            text = BackupService(session).export_json()
        with second_db.session() as session:
            BackupService(session).import_json(text)
            spots = SpotService(session)
            # A new spot after restore must not reuse a restored code
            spot = spots.create_spot_with_code(sample_hierarchy.wardrobe_id, "Cassetto 1")
            assert spot.code == "CAM-ARM-C12"


class TestLegacyFormats:
    """Tests for backups written by older versions."""

    def test_legacy_file_path_and_epoch_timestamps(self, temp_db):
        payload = _minimal_backup(
            documents=[
                {
                    "id": 1,
                    "spotId": 9,
                    "title": "Old scan",
                    "filePath": "scans/old.jpg",
                    "expiryDate": 1767225600000,
                    "createdAt": 1767225600000,
                    "updatedAt": 1767225600000,
                }
            ]
        )
        payload["schemaVersion"] = 1

        with temp_db.session() as session:
            BackupService(session).import_data(payload)
            document = DocumentService(session).get_document(1)
            assert document.file_paths == ["scans/old.jpg"]
            assert document.expiry_date == datetime(2026, 1, 1, 0, 0, 0)

    def test_json_encoded_file_paths(self, temp_db):
        payload = _minimal_backup(
            documents=[
                {
                    "id": 1,
                    "spotId": 9,
                    "title": "Receipt",
                    "filePaths": json.dumps(["a.pdf", "b.pdf"]),
                    "createdAt": "2026-01-01T00:00:00",
                    "updatedAt": "2026-01-01T00:00:00",
                }
            ]
        )

        with temp_db.session() as session:
            BackupService(session).import_data(payload)
            assert DocumentService(session).get_document(1).file_paths == ["a.pdf", "b.pdf"]

    def test_legacy_container_type(self, temp_db):
        payload = _minimal_backup()
        payload["data"]["containers"][0]["type"] = "armadio"

        with temp_db.session() as session:
            BackupService(session).import_data(payload)
            assert ContainerService(session).get_container(8).type is ContainerType.WARDROBE

    def test_timezone_aware_timestamp_is_stored_as_utc(self, temp_db):
        payload = _minimal_backup()
        payload["data"]["rooms"][0]["updatedAt"] = "2026-01-01T02:00:00+02:00"

        with temp_db.session() as session:
            BackupService(session).import_data(payload)
            assert RoomService(session).get_room(7).updated_at == datetime(2026, 1, 1, 0, 0, 0)


class TestRejectedBackups:
    """Tests for backups that must not change the store."""

    def test_newer_version(self, temp_db, sample_hierarchy):
        payload = _minimal_backup()
        payload["schemaVersion"] = SCHEMA_VERSION + 1

        with temp_db.session() as session:
            with pytest.raises(ImportVersionError) as exc_info:
                BackupService(session).import_data(payload)
        assert exc_info.value.found == SCHEMA_VERSION + 1
        assert _counts(temp_db) == (2, 2, 3, 2, 2)

    @pytest.mark.parametrize("version", [None, "3", True])
    def test_invalid_version(self, temp_db, version):
        payload = _minimal_backup()
        payload["schemaVersion"] = version
        with temp_db.session() as session:
            with pytest.raises(BackupFormatError):
                BackupService(session).import_data(payload)

    def test_not_json(self, temp_db):
        with temp_db.session() as session:
            with pytest.raises(BackupFormatError):
                BackupService(session).import_json("{not json")

    def test_duplicate_codes(self, temp_db, sample_hierarchy):
        payload = _minimal_backup()
        spot = dict(payload["data"]["spots"][0], id=10, label="Top again")
        payload["data"]["spots"].append(spot)

        with temp_db.session() as session:
            with pytest.raises(DuplicateError) as exc_info:
                BackupService(session).import_data(payload)
        assert exc_info.value.field == "code"
        assert _counts(temp_db) == (2, 2, 3, 2, 2)

    def test_duplicate_ids(self, temp_db):
        payload = _minimal_backup()
        payload["data"]["rooms"].append(dict(payload["data"]["rooms"][0], name="Other"))

        with temp_db.session() as session:
            with pytest.raises(DuplicateError) as exc_info:
                BackupService(session).import_data(payload)
        assert exc_info.value.field == "id"

    def test_broken_parent_reference(self, temp_db, sample_hierarchy):
        payload = _minimal_backup(
            items=[
                {
                    "id": 1,
                    "spotId": 404,
                    "name": "Lost",
                    "createdAt": "2026-01-01T00:00:00",
                    "updatedAt": "2026-01-01T00:00:00",
                }
            ]
        )

        with temp_db.session() as session:
            with pytest.raises(BackupFormatError):
                BackupService(session).import_data(payload)
        assert _counts(temp_db) == (2, 2, 3, 2, 2)

    def test_missing_required_field(self, temp_db):
        payload = _minimal_backup()
        del payload["data"]["spots"][0]["code"]
        with temp_db.session() as session:
            with pytest.raises(BackupFormatError):
                BackupService(session).import_data(payload)

    def test_unknown_container_type(self, temp_db):
        payload = _minimal_backup()
        payload["data"]["containers"][0]["type"] = "SPACESHIP"
        with temp_db.session() as session:
            with pytest.raises(BackupFormatError):
                BackupService(session).import_data(payload)

    def test_failure_midway_keeps_previous_data(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            service = BackupService(session)
            real_add_all = session.add_all
            calls = []

            def fail_on_spots(instances):
                calls.append(instances)
                if len(calls) == 3:
                    raise RuntimeError("disk full")
                return real_add_all(instances)

            session.add_all = fail_on_spots
            try:
                with pytest.raises(DatabaseError):
                    service.import_data(_minimal_backup())
            finally:
                del session.add_all

        assert _counts(temp_db) == (2, 2, 3, 2, 2)
        with temp_db.session() as session:
            assert SpotService(session).get_spot_by_code("CAM-ARM-C1").id == sample_hierarchy.drawer_spot_id


class TestClear:
    """Tests for clear_all_data."""

    def test_clear(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            BackupService(session).clear_all_data()
        assert _counts(temp_db) == (0, 0, 0, 0, 0)


class TestIdsAfterRestore:
    """Tests for inserting new records after a restore with explicit ids."""

    def test_new_records_follow_restored_ids(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            BackupService(session).import_data(_minimal_backup())

        with temp_db.session() as session:
            room = RoomService(session).create_room("Cantina")
            container = ContainerService(session).create_container(room.id, "Scaffale")
            spot = SpotService(session).create_spot_with_code(8, "Top")
            assert room.id == 8
            assert container.id == 9
            assert spot.id == 10
            assert spot.code == "GAR-WOR-TO2"

    def test_sequences_untouched_outside_postgresql(self, temp_db):
        with temp_db.session() as session:
            assert BackupService(session)._sync_id_sequences() == []

    def test_postgresql_sequences_are_reset(self, temp_db):
        with temp_db.session() as session:
            service = BackupService(session)
            bind = MagicMock()
            bind.dialect.name = "postgresql"
            with patch.object(session, "get_bind", return_value=bind), patch.object(session, "execute") as execute:
                tables = service._sync_id_sequences()

        assert tables == ["rooms", "containers", "spots", "items", "documents"]
        statements = [str(call.args[0]) for call in execute.call_args_list]
        assert len(statements) == 5
        for table, statement in zip(tables, statements):
            assert f"pg_get_serial_sequence('{table}', 'id')" in statement
            assert f"MAX(id) FROM {table}" in statement


POSTGRES_URL = os.environ.get("HOMESTASH_TEST_POSTGRES_URL")


@pytest.mark.integration
@pytest.mark.skipif(not POSTGRES_URL, reason="HOMESTASH_TEST_POSTGRES_URL not set")
class TestPostgresRestore:
    """Restore against a real PostgreSQL server."""

    @pytest.fixture
    def pg_db(self):
        database = Database(POSTGRES_URL)
        database.drop_tables()
        database.create_tables()
        yield database
        database.drop_tables()
        database.dispose()

    def test_create_after_restore(self, pg_db):
        with pg_db.session() as session:
            BackupService(session).import_data(_minimal_backup())

        with pg_db.session() as session:
            room = RoomService(session).create_room("Cantina")
            spot = SpotService(session).create_spot_with_code(8, "Bottom")
            assert room.id == 8
            assert spot.id == 10
            assert spot.code == "GAR-WOR-BO"
