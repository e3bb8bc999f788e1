"""Shared pytest fixtures and test utilities for homestash tests."""

import os
import tempfile
from dataclasses import dataclass
from typing import Generator

import pytest

from homestash.services.container_service import ContainerService
from homestash.services.document_service import DocumentService
from homestash.services.item_service import ItemService
from homestash.services.room_service import RoomService
from homestash.services.spot_service import SpotService
from homestash.storage.database import Database


@pytest.fixture(scope="function")
def temp_db() -> Generator[Database, None, None]:
    """
    Create a temporary SQLite database for testing.

    Yields:
        Database instance with tables created
    """
    fd, db_path = tempfile.mkstemp(suffix=".db")
    os.close(fd)

    database = Database(f"sqlite:///{db_path}")
    database.create_tables()

    yield database

    # Cleanup
    database.drop_tables()
    database.dispose()
    if os.path.exists(db_path):
        os.unlink(db_path)


@pytest.fixture
def db_session(temp_db):
    """Get a database session from temp_db."""
    with temp_db.session() as session:
        yield session


@pytest.fixture
def room_service(db_session):
    return RoomService(db_session)


@pytest.fixture
def container_service(db_session):
    return ContainerService(db_session)


@pytest.fixture
def spot_service(db_session):
    return SpotService(db_session)


@pytest.fixture
def item_service(db_session):
    return ItemService(db_session)


@pytest.fixture
def document_service(db_session):
    return DocumentService(db_session)


@dataclass
class SampleHierarchy:
    """IDs of a small bedroom/kitchen inventory."""

    bedroom_id: int
    kitchen_id: int
    wardrobe_id: int
    pantry_id: int
    drawer_spot_id: int
    shelf_spot_id: int
    pantry_spot_id: int
    drill_id: int
    scarf_id: int
    passport_id: int
    warranty_id: int


@pytest.fixture
def sample_hierarchy(temp_db) -> SampleHierarchy:
    """
    Create a sample hierarchy:

        Camera da letto > Armadio grande > Cassetto 1 (CAM-ARM-C1): scarf, passport
        Camera da letto > Armadio grande > Mensola alta (CAM-ARM-MA): drill
        Cucina > Dispensa > Ripiano in alto (CUC-DIS-RIA): warranty
    """
    with temp_db.session() as session:
        bedroom = RoomService(session).create_room("Camera da letto", icon="bed")
        kitchen = RoomService(session).create_room("Cucina")
        wardrobe = ContainerService(session).create_container(
            bedroom.id, "Armadio grande", type="WARDROBE"
        )
        pantry = ContainerService(session).create_container(kitchen.id, "Dispensa", type="SHELF")

        spots = SpotService(session)
        drawer_spot = spots.create_spot_with_code(wardrobe.id, "Cassetto 1")
        shelf_spot = spots.create_spot_with_code(wardrobe.id, "Mensola alta")
        pantry_spot = spots.create_spot_with_code(pantry.id, "Ripiano in alto")

        items = ItemService(session)
        scarf = items.create_item(drawer_spot.id, "Wool scarf", category="Clothes", tags="winter")
        drill = items.create_item(shelf_spot.id, "Cordless drill", category="Tools", keywords="bosch")

        documents = DocumentService(session)
        passport = documents.create_document(drawer_spot.id, "Passport", doc_type="ID", person="Anna")
        warranty = documents.create_document(
            pantry_spot.id, "Fridge warranty", doc_type="Warranty", tags="appliance"
        )

        return SampleHierarchy(
            bedroom_id=bedroom.id,
            kitchen_id=kitchen.id,
            wardrobe_id=wardrobe.id,
            pantry_id=pantry.id,
            drawer_spot_id=drawer_spot.id,
            shelf_spot_id=shelf_spot.id,
            pantry_spot_id=pantry_spot.id,
            drill_id=drill.id,
            scarf_id=scarf.id,
            passport_id=passport.id,
            warranty_id=warranty.id,
        )


@pytest.fixture
def delete_without_cascade(temp_db):
    """Delete a row with foreign keys disabled, leaving its children orphaned."""

    def delete(table: str, row_id: int) -> None:
        with temp_db.engine.connect() as conn:
            conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
            conn.exec_driver_sql(f"DELETE FROM {table} WHERE id = ?", (row_id,))
            conn.commit()
            conn.exec_driver_sql("PRAGMA foreign_keys=ON")

    return delete
