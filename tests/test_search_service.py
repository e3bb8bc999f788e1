"""Tests for search, recent entries and favorites."""

from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

pytestmark = pytest.mark.unit

from homestash.exceptions import DatabaseError
from homestash.models import Document, Item
from homestash.services.container_service import ContainerService
from homestash.services.item_service import ItemService
from homestash.services.search_service import (
    FavoriteKind,
    ResultKind,
    SearchOutcome,
    SearchService,
)
from homestash.services.spot_service import SpotService


def _set_updated_at(session, model, record_id, when):
    record = session.get(model, record_id)
    record.updated_at = when
    session.commit()


class TestSearch:
    """Tests for SearchService.search."""

    @pytest.mark.parametrize("query", ["", "   ", None])
    def test_blank_query_matches_nothing(self, temp_db, sample_hierarchy, query):
        with temp_db.session() as session:
            outcome = SearchService(session).search(query)
            assert outcome == SearchOutcome()
            assert outcome.ok is True

    @pytest.mark.parametrize(
        "query,titles",
        [
            ("SCARF", ["Wool scarf"]),
            ("winter", ["Wool scarf"]),
            ("Bosch", ["Cordless drill"]),
            ("tools", ["Cordless drill"]),
            ("passport", ["Passport"]),
            ("anna", ["Passport"]),
            ("warranty", ["Fridge warranty"]),
            ("APPLIANCE", ["Fridge warranty"]),
        ],
    )
    def test_matches_each_field(self, temp_db, sample_hierarchy, query, titles):
        with temp_db.session() as session:
            outcome = SearchService(session).search(query)
            assert outcome.ok is True
            assert [r.title for r in outcome.results] == titles

    def test_no_match(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            outcome = SearchService(session).search("spaceship")
            assert outcome.ok is True
            assert outcome.results == []
            assert outcome.skipped == 0

    def test_wildcards_are_literal(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            assert SearchService(session).search("%").results == []
            assert SearchService(session).search("_").results == []

    def test_query_is_matched_as_typed(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            items = ItemService(session)
            items.create_item(sample_hierarchy.shelf_spot_id, "Cavo")
            items.create_item(sample_hierarchy.shelf_spot_id, "Cavo HDMI")

            service = SearchService(session)
            assert [r.title for r in service.search("Cavo ").results] == ["Cavo HDMI"]
            assert sorted(r.title for r in service.search("cavo").results) == ["Cavo", "Cavo HDMI"]

    def test_result_carries_location(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            (result,) = SearchService(session).search("scarf").results
            assert result.id == sample_hierarchy.scarf_id
            assert result.kind is ResultKind.ITEM
            assert result.spot_id == sample_hierarchy.drawer_spot_id
            assert result.spot_code == "CAM-ARM-C1"
            assert result.breadcrumb == "Camera da letto > Armadio grande > Cassetto 1"

    def test_sorted_newest_first(self, temp_db, sample_hierarchy):
        base = datetime(2026, 1, 1, 12, 0, 0)
        with temp_db.session() as session:
            _set_updated_at(session, Item, sample_hierarchy.scarf_id, base)
            _set_updated_at(session, Item, sample_hierarchy.drill_id, base + timedelta(hours=2))
            _set_updated_at(session, Document, sample_hierarchy.passport_id, base + timedelta(hours=1))
            _set_updated_at(session, Document, sample_hierarchy.warranty_id, base + timedelta(hours=3))

            # "r" appears in every sample title
            outcome = SearchService(session).search("r")
            assert [r.title for r in outcome.results] == [
                "Fridge warranty",
                "Cordless drill",
                "Passport",
                "Wool scarf",
            ]
            assert [r.kind for r in outcome.results] == [
                ResultKind.DOCUMENT,
                ResultKind.ITEM,
                ResultKind.DOCUMENT,
                ResultKind.ITEM,
            ]

    def test_orphaned_record_is_skipped(self, temp_db, sample_hierarchy, delete_without_cascade):
        delete_without_cascade("spots", sample_hierarchy.shelf_spot_id)

        with temp_db.session() as session:
            outcome = SearchService(session).search("drill")
            assert outcome.ok is True
            assert outcome.results == []
            assert outcome.skipped == 1

    def test_orphaned_record_does_not_hide_others(self, temp_db, sample_hierarchy, delete_without_cascade):
        delete_without_cascade("spots", sample_hierarchy.shelf_spot_id)

        with temp_db.session() as session:
            outcome = SearchService(session).search("r")
            assert outcome.skipped == 1
            assert sorted(r.title for r in outcome.results) == ["Fridge warranty", "Passport", "Wool scarf"]

    def test_failure_is_reported_not_raised(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            service = SearchService(session)
            with patch.object(service.item_repo, "search", side_effect=RuntimeError("disk gone")):
                outcome = service.search("scarf")

            assert outcome.ok is False
            assert outcome.error == "disk gone"
            assert outcome.results == []

    def test_breadcrumb_failure_skips_record(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            service = SearchService(session)
            with patch.object(service.breadcrumbs, "resolve", side_effect=RuntimeError("boom")):
                outcome = service.search("scarf")

            assert outcome.ok is True
            assert outcome.results == []
            assert outcome.skipped == 1


class TestRecentEntries:
    """Tests for SearchService.get_recent_entries."""

    def test_limit_and_order(self, temp_db, sample_hierarchy):
        base = datetime(2026, 3, 1)
        with temp_db.session() as session:
            _set_updated_at(session, Item, sample_hierarchy.scarf_id, base + timedelta(days=4))
            _set_updated_at(session, Item, sample_hierarchy.drill_id, base + timedelta(days=1))
            _set_updated_at(session, Document, sample_hierarchy.passport_id, base + timedelta(days=3))
            _set_updated_at(session, Document, sample_hierarchy.warranty_id, base + timedelta(days=2))

            outcome = SearchService(session).get_recent_entries(limit=3)
            assert outcome.ok is True
            assert [r.title for r in outcome.results] == ["Wool scarf", "Passport", "Fridge warranty"]

    def test_default_limit(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            spot_id = sample_hierarchy.drawer_spot_id
            items = ItemService(session)
            for n in range(12):
                items.create_item(spot_id, f"Sock {n}")

            outcome = SearchService(session).get_recent_entries()
            assert len(outcome.results) == 10

    def test_invalid_limit(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            outcome = SearchService(session).get_recent_entries(limit=-1)
            assert outcome.ok is False
            assert outcome.error


class TestFavorites:
    """Tests for SearchService.get_favorites."""

    def test_containers_then_spots(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            SpotService(session).toggle_favorite(sample_hierarchy.pantry_spot_id, True)
            ContainerService(session).toggle_favorite(sample_hierarchy.wardrobe_id, True)

            favorites = SearchService(session).get_favorites()
            assert [(f.kind, f.name, f.breadcrumb) for f in favorites] == [
                (FavoriteKind.CONTAINER, "Armadio grande", "Camera da letto > Armadio grande"),
                (FavoriteKind.SPOT, "Ripiano in alto", "Cucina > Dispensa > Ripiano in alto"),
            ]

    def test_no_favorites(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            assert SearchService(session).get_favorites() == []

    def test_failure_is_wrapped(self, temp_db, sample_hierarchy):
        with temp_db.session() as session:
            service = SearchService(session)
            with patch.object(service.container_repo, "get_favorites", side_effect=RuntimeError("boom")):
                with pytest.raises(DatabaseError):
                    service.get_favorites()
