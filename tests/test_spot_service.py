"""Tests for spot creation with code assignment, lookups and favorites."""

import threading
from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError

pytestmark = pytest.mark.unit

from homestash.exceptions import (
    CollisionExhaustedError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from homestash.models import Spot
from homestash.services.container_service import ContainerService
from homestash.services.room_service import RoomService
from homestash.services.spot_service import SpotService


@pytest.fixture
def wardrobe_id(temp_db):
    with temp_db.session() as session:
        room = RoomService(session).create_room("Camera da letto")
        return ContainerService(session).create_container(room.id, "Armadio grande", type="WARDROBE").id


class TestCreateSpotWithCode:
    """Tests for spot creation."""

    def test_reference_codes(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            first = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            second = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            shelf = service.create_spot_with_code(wardrobe_id, "Mensola alta")

            assert first.code == "CAM-ARM-C1"
            assert second.code == "CAM-ARM-C12"
            assert shelf.code == "CAM-ARM-MA"

    def test_collision_sequence(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            codes = [service.create_spot_with_code(wardrobe_id, "Mensola alta").code for _ in range(4)]
            assert codes == ["CAM-ARM-MA", "CAM-ARM-MA2", "CAM-ARM-MA3", "CAM-ARM-MA4"]

    def test_codes_are_unique_across_containers(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            room = RoomService(session).create_room("Camera ospiti")
            other = ContainerService(session).create_container(room.id, "Armadietto")
            service = SpotService(session)
            first = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            second = service.create_spot_with_code(other.id, "Cassetto 1")
            assert first.code == "CAM-ARM-C1"
            assert second.code == "CAM-ARM-C12"

    def test_missing_container(self, spot_service):
        with pytest.raises(NotFoundError):
            spot_service.create_spot_with_code(999, "Cassetto 1")

    def test_blank_label(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            with pytest.raises(ValidationError):
                SpotService(session).create_spot_with_code(wardrobe_id, "   ")

    def test_missing_room_is_not_found(self, temp_db, wardrobe_id, delete_without_cascade):
        with temp_db.session() as session:
            room_id = ContainerService(session).get_container(wardrobe_id).room_id
        delete_without_cascade("rooms", room_id)

        with temp_db.session() as session:
            with pytest.raises(NotFoundError) as exc_info:
                SpotService(session).create_spot_with_code(wardrobe_id, "Cassetto 1")
            assert exc_info.value.resource_type == "Room"
            assert SpotService(session).list_spots() == []

    def test_retries_on_concurrent_insert(self, temp_db, wardrobe_id):
        """A conflicting insert from elsewhere is retried with a fresh code snapshot."""
        with temp_db.session() as session:
            service = SpotService(session)
            real_snapshot = service.spot_repo.get_codes_with_prefix
            calls = []

            def stale_then_fresh(prefix):
                calls.append(prefix)
                if len(calls) == 1:
                    return set()
                return real_snapshot(prefix)

            service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            with patch.object(service.spot_repo, "get_codes_with_prefix", side_effect=stale_then_fresh):
                spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1")

            assert len(calls) == 2
            assert spot.code == "CAM-ARM-C12"

    def test_gives_up_after_max_retries(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            SpotService(session).create_spot_with_code(wardrobe_id, "Cassetto 1")

            service = SpotService(session, max_retries=3)
            with patch.object(service.spot_repo, "get_codes_with_prefix", return_value=set()):
                with pytest.raises(DuplicateError) as exc_info:
                    service.create_spot_with_code(wardrobe_id, "Cassetto 1")

            assert exc_info.value.value == "CAM-ARM-C1"
            assert len(service.list_spots()) == 1

    def test_collision_exhausted_propagates(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            with patch(
                "homestash.services.spot_service.generate_code",
                side_effect=CollisionExhaustedError("CAM-ARM-C1", 2),
            ):
                with pytest.raises(CollisionExhaustedError):
                    service.create_spot_with_code(wardrobe_id, "Cassetto 1")

    def test_integrity_error_is_not_leaked(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session, max_retries=1)
            error = IntegrityError("INSERT", {}, Exception("UNIQUE constraint failed"))
            with patch.object(service.spot_repo, "create", side_effect=error):
                with pytest.raises(DuplicateError):
                    service.create_spot_with_code(wardrobe_id, "Cassetto 1")


@pytest.mark.integration
class TestConcurrentCreation:
    """Tests for parallel spot creation against one database."""

    def test_parallel_creation_yields_distinct_codes(self, temp_db, wardrobe_id):
        codes: list[str] = []
        errors: list[Exception] = []
        start = threading.Barrier(8)

        def create():
            start.wait()
            try:
                with temp_db.session() as session:
                    spot = SpotService(session).create_spot_with_code(wardrobe_id, "Cassetto 1")
                    codes.append(spot.code)
            except Exception as e:
                errors.append(e)

        threads = [threading.Thread(target=create) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert len(codes) == 8
        assert len(set(codes)) == 8
        assert "CAM-ARM-C1" in codes
        assert {f"CAM-ARM-C1{n}" for n in range(2, 9)} <= set(codes)


class TestSpotLookupsAndUpdates:
    """Tests for spot reads, updates and favorites."""

    def test_get_by_code(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            assert service.get_spot_by_code("  cam-arm-c1 ").id == spot.id
            with pytest.raises(NotFoundError):
                service.get_spot_by_code("CAM-ARM-ZZ")
            with pytest.raises(ValidationError):
                service.get_spot_by_code("")

    def test_update_keeps_code(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            before = spot.updated_at

            spot.label = "Cassetto in alto"
            spot.note = "socks"
            updated = service.update_spot(spot)

            assert updated.code == "CAM-ARM-C1"
            assert updated.label == "Cassetto in alto"
            assert updated.updated_at >= before

    def test_update_rejects_code_change(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            spot_id = spot.id

            copy = Spot(id=spot_id, container_id=wardrobe_id, label="Cassetto 1", code="XXX-YYY-ZZ")
            with pytest.raises(ValidationError) as exc_info:
                service.update_spot(copy)
            assert exc_info.value.field == "code"
            assert service.get_spot(spot_id).code == "CAM-ARM-C1"

    def test_rejected_code_change_on_attached_spot_is_discarded(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            spot.code = "XXX-YYY-ZZ"
            with pytest.raises(ValidationError):
                service.update_spot(spot)
            assert service.get_spot(spot.id).code == "CAM-ARM-C1"

    def test_renaming_room_keeps_code(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            spot = SpotService(session).create_spot_with_code(wardrobe_id, "Cassetto 1")
            container = ContainerService(session).get_container(wardrobe_id)
            room = RoomService(session).get_room(container.room_id)
            room.name = "Soggiorno"
            RoomService(session).update_room(room)
            assert SpotService(session).get_spot(spot.id).code == "CAM-ARM-C1"

    def test_favorites(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1", note="keep")
            service.toggle_favorite(spot.id, True)
            assert [s.id for s in service.list_favorite_spots()] == [spot.id]
            assert service.get_spot(spot.id).note == "keep"

    def test_search_label_and_code(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            service.create_spot_with_code(wardrobe_id, "Mensola alta")
            assert [s.label for s in service.search_spots("mensola")] == ["Mensola alta"]
            assert [s.label for s in service.search_spots("arm-c1")] == ["Cassetto 1"]
            assert service.get_codes_with_prefix("CAM-ARM-M") == {"CAM-ARM-MA"}

    def test_search_keeps_surrounding_spaces(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            service.create_spot_with_code(wardrobe_id, "Mensola")
            service.create_spot_with_code(wardrobe_id, "Mensola alta")
            assert [s.label for s in service.search_spots("mensola ")] == ["Mensola alta"]
            assert service.search_spots("   ") == []

    def test_delete(self, temp_db, wardrobe_id):
        with temp_db.session() as session:
            service = SpotService(session)
            spot = service.create_spot_with_code(wardrobe_id, "Cassetto 1")
            assert service.delete_spot(spot.id) is True
            assert service.list_spots_by_container(wardrobe_id) == []
