"""Search, recent entries and favorites across items and documents."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from homestash.config import get_settings
from homestash.exceptions import DatabaseError
from homestash.models.document import Document
from homestash.models.item import Item
from homestash.services.hierarchy.breadcrumbs import BreadcrumbResolver
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.repositories import (
    ContainerRepository,
    DocumentRepository,
    ItemRepository,
    SpotRepository,
)

logger = logging.getLogger(__name__)


class ResultKind(str, Enum):
    """Kind of record a search result points at."""

    ITEM = "ITEM"
    DOCUMENT = "DOCUMENT"


class FavoriteKind(str, Enum):
    """Kind of record a favorite entry points at."""

    CONTAINER = "CONTAINER"
    SPOT = "SPOT"


@dataclass
class SearchResult:
    """One item or document matched by a search, with its location."""

    id: int
    title: str
    kind: ResultKind
    spot_id: int
    spot_code: str
    breadcrumb: str
    updated_at: datetime


@dataclass
class SearchOutcome:
    """Result of a search call.

    ok=False means the search itself failed (error carries the message),
    which is distinct from ok=True with no results. skipped counts matched
    records dropped because their location could not be resolved.
    """

    results: list[SearchResult] = field(default_factory=list)
    ok: bool = True
    error: Optional[str] = None
    skipped: int = 0


@dataclass
class FavoriteEntry:
    """A favorite container or spot with its breadcrumb."""

    id: int
    name: str
    kind: FavoriteKind
    breadcrumb: str


class SearchService:
    """Read-only queries that join items and documents with their location."""

    def __init__(self, session: Session):
        """
        Initialize search service with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.item_repo = ItemRepository(session)
        self.document_repo = DocumentRepository(session)
        self.spot_repo = SpotRepository(session)
        self.container_repo = ContainerRepository(session)
        self.breadcrumbs = BreadcrumbResolver(session)

    def search(self, query: str) -> SearchOutcome:
        """
        Find items and documents matching query, newest first.

        Items match on name, tags, keywords or category; documents on title,
        tags, doc_type or person. Matching is a case-insensitive substring
        test on the query as typed, surrounding spaces included. This
        method never raises: failures come back as ok=False.

        Args:
            query: Free-text query; blank queries match nothing

        Returns:
            SearchOutcome with results sorted by updated_at descending
        """
        if not isinstance(query, str) or not query.strip():
            return SearchOutcome()

        try:
            items = self.item_repo.search(query)
            documents = self.document_repo.search(query)
            return self._build_outcome(items, documents)
        except Exception as e:
            logger.exception("Search for %r failed", query)
            return SearchOutcome(ok=False, error=str(e))

    def get_recent_entries(self, limit: int | None = None) -> SearchOutcome:
        """
        Get the most recently updated items and documents, merged.

        Args:
            limit: Number of entries; defaults to RECENT_ENTRIES_LIMIT

        Returns:
            SearchOutcome with at most limit results, newest first
        """
        if limit is None:
            limit = get_settings().recent_entries_limit
        try:
            HierarchyValidator.validate_limit(limit)
            items = self.item_repo.get_recent(limit)
            documents = self.document_repo.get_recent(limit)
            outcome = self._build_outcome(items, documents)
            outcome.results = outcome.results[:limit]
            return outcome
        except Exception as e:
            logger.exception("Loading recent entries failed")
            return SearchOutcome(ok=False, error=str(e))

    def get_favorites(self) -> list[FavoriteEntry]:
        """List favorite containers then favorite spots, with breadcrumbs."""
        try:
            return self._collect_favorites()
        except Exception as e:
            raise DatabaseError(f"Failed to list favorites: {str(e)}", e) from e

    def _collect_favorites(self) -> list[FavoriteEntry]:
        favorites = [
            FavoriteEntry(
                id=container.id,
                name=container.name,
                kind=FavoriteKind.CONTAINER,
                breadcrumb=self.breadcrumbs.resolve_container(container.id),
            )
            for container in self.container_repo.get_favorites()
        ]
        favorites.extend(
            FavoriteEntry(
                id=spot.id,
                name=spot.label,
                kind=FavoriteKind.SPOT,
                breadcrumb=self.breadcrumbs.resolve(spot.id),
            )
            for spot in self.spot_repo.get_favorites()
        )
        return favorites

    def _build_outcome(
        self, items: Iterable[Item], documents: Iterable[Document]
    ) -> SearchOutcome:
        outcome = SearchOutcome()
        records = [(item, ResultKind.ITEM) for item in items]
        records.extend((document, ResultKind.DOCUMENT) for document in documents)

        for record, kind in records:
            try:
                result = self._to_result(record, kind)
            except Exception:
                logger.warning(
                    "Skipping %s %s: location lookup failed",
                    kind.value.lower(),
                    record.id,
                    exc_info=True,
                )
                result = None
            if result is None:
                outcome.skipped += 1
                continue
            outcome.results.append(result)

        # sort() is stable, so ties keep items ahead of documents
        outcome.results.sort(key=lambda r: r.updated_at, reverse=True)
        return outcome

    def _to_result(self, record: Item | Document, kind: ResultKind) -> SearchResult | None:
        spot = self.spot_repo.get_by_id(record.spot_id)
        if spot is None:
            logger.warning(
                "Skipping %s %s: spot %s is missing",
                kind.value.lower(),
                record.id,
                record.spot_id,
            )
            return None
        return SearchResult(
            id=record.id,
            title=record.name if kind is ResultKind.ITEM else record.title,
            kind=kind,
            spot_id=spot.id,
            spot_code=spot.code,
            breadcrumb=self.breadcrumbs.resolve(spot.id),
            updated_at=record.updated_at,
        )
