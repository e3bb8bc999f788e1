"""Tests for the Alembic migration chain."""

import os
import tempfile
from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import create_engine, inspect

pytestmark = pytest.mark.integration

import homestash
from homestash.services.container_service import ContainerService
from homestash.services.room_service import RoomService
from homestash.services.search_service import SearchService
from homestash.services.spot_service import SpotService
from homestash.services.item_service import ItemService
from homestash.storage.database import Database

TABLES = {"rooms", "containers", "spots", "items", "documents"}


@pytest.fixture
def migration_url():
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)
    yield f"sqlite:///{db_path}"
    if os.path.exists(db_path):
        os.unlink(db_path)


def _alembic_config(url: str) -> Config:
    config = Config()
    config.set_main_option("script_location", str(Path(homestash.__file__).parent / "migrations"))
    config.set_main_option("sqlalchemy.url", url)
    return config


def _tables(url: str) -> set[str]:
    engine = create_engine(url)
    try:
        return set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_upgrade_creates_schema(migration_url):
    command.upgrade(_alembic_config(migration_url), "head")

    assert TABLES <= _tables(migration_url)

    engine = create_engine(migration_url)
    try:
        indexes = {ix["name"]: ix for ix in inspect(engine).get_indexes("spots")}
    finally:
        engine.dispose()
    assert indexes["ix_spots_code"]["unique"]


def test_services_run_on_migrated_schema(migration_url):
    command.upgrade(_alembic_config(migration_url), "head")

    database = Database(migration_url)
    try:
        with database.session() as session:
            room = RoomService(session).create_room("Camera da letto")
            container = ContainerService(session).create_container(room.id, "Armadio grande", type="WARDROBE")
            spot = SpotService(session).create_spot_with_code(container.id, "Cassetto 1")
            ItemService(session).create_item(spot.id, "Wool scarf")
            assert spot.code == "CAM-ARM-C1"

        with database.session() as session:
            outcome = SearchService(session).search("scarf")
            assert outcome.ok is True
            assert [r.breadcrumb for r in outcome.results] == ["Camera da letto > Armadio grande > Cassetto 1"]
    finally:
        database.dispose()


def test_downgrade_removes_schema(migration_url):
    config = _alembic_config(migration_url)
    command.upgrade(config, "head")
    command.downgrade(config, "base")

    assert not TABLES & _tables(migration_url)
