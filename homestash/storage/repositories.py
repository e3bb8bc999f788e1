"""Repository pattern implementation for data access layer."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete, func, or_, select
from sqlalchemy.orm import Session

from homestash.models.container import Container
from homestash.models.document import Document
from homestash.models.item import Item
from homestash.models.room import Room
from homestash.models.spot import Spot


def _contains(column, query: str):
    """Case-insensitive substring condition on a column."""
    return column.icontains(query, autoescape=True)


class RoomRepository:
    """Repository for room operations."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def create(self, room: Room) -> Room:
        """Create a new room."""
        self.session.add(room)
        self.session.flush()
        return room

    def get_by_id(self, room_id: int) -> Optional[Room]:
        """Get room by ID."""
        return self.session.get(Room, room_id)

    def get_all(self) -> list[Room]:
        """Get all rooms ordered by name."""
        stmt = select(Room).order_by(Room.name, Room.id)
        return list(self.session.scalars(stmt))

    def search_by_name(self, query: str) -> list[Room]:
        """Search rooms by name."""
        stmt = select(Room).where(_contains(Room.name, query)).order_by(Room.name)
        return list(self.session.scalars(stmt))

    def count(self) -> int:
        """Count rooms."""
        return self.session.scalar(select(func.count(Room.id))) or 0

    def update(self, room: Room) -> Room:
        """Update an existing room."""
        self.session.flush()
        return room

    def delete(self, room_id: int) -> bool:
        """Delete a room by ID (cascades to containers)."""
        room = self.get_by_id(room_id)
        if room:
            self.session.delete(room)
            self.session.flush()
            return True
        return False

    def delete_all(self) -> None:
        """Delete every room row."""
        self.session.execute(delete(Room))


class ContainerRepository:
    """Repository for container operations."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def create(self, container: Container) -> Container:
        """Create a new container."""
        self.session.add(container)
        self.session.flush()
        return container

    def get_by_id(self, container_id: int) -> Optional[Container]:
        """Get container by ID."""
        return self.session.get(Container, container_id)

    def get_all(self) -> list[Container]:
        """Get all containers ordered by name."""
        stmt = select(Container).order_by(Container.name, Container.id)
        return list(self.session.scalars(stmt))

    def get_by_room_id(self, room_id: int) -> list[Container]:
        """Get all containers of a room."""
        stmt = (
            select(Container)
            .where(Container.room_id == room_id)
            .order_by(Container.name, Container.id)
        )
        return list(self.session.scalars(stmt))

    def get_favorites(self) -> list[Container]:
        """Get containers flagged as favorite."""
        stmt = (
            select(Container)
            .where(Container.is_favorite.is_(True))
            .order_by(Container.name, Container.id)
        )
        return list(self.session.scalars(stmt))

    def search_by_name(self, query: str) -> list[Container]:
        """Search containers by name."""
        stmt = select(Container).where(_contains(Container.name, query)).order_by(Container.name)
        return list(self.session.scalars(stmt))

    def update(self, container: Container) -> Container:
        """Update an existing container."""
        self.session.flush()
        return container

    def delete(self, container_id: int) -> bool:
        """Delete a container by ID (cascades to spots)."""
        container = self.get_by_id(container_id)
        if container:
            self.session.delete(container)
            self.session.flush()
            return True
        return False

    def delete_all(self) -> None:
        """Delete every container row."""
        self.session.execute(delete(Container))


class SpotRepository:
    """Repository for spot operations, including code lookups."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def create(self, spot: Spot) -> Spot:
        """Create a new spot."""
        self.session.add(spot)
        self.session.flush()
        return spot

    def get_by_id(self, spot_id: int) -> Optional[Spot]:
        """Get spot by ID."""
        return self.session.get(Spot, spot_id)

    def get_by_code(self, code: str) -> Optional[Spot]:
        """Get spot by its unique code."""
        return self.session.scalar(select(Spot).where(Spot.code == code))

    def get_all(self) -> list[Spot]:
        """Get all spots ordered by label."""
        stmt = select(Spot).order_by(Spot.label, Spot.id)
        return list(self.session.scalars(stmt))

    def get_by_container_id(self, container_id: int) -> list[Spot]:
        """Get all spots of a container."""
        stmt = (
            select(Spot)
            .where(Spot.container_id == container_id)
            .order_by(Spot.label, Spot.id)
        )
        return list(self.session.scalars(stmt))

    def get_favorites(self) -> list[Spot]:
        """Get spots flagged as favorite."""
        stmt = select(Spot).where(Spot.is_favorite.is_(True)).order_by(Spot.label, Spot.id)
        return list(self.session.scalars(stmt))

    def search(self, query: str) -> list[Spot]:
        """Search spots by label or code."""
        stmt = (
            select(Spot)
            .where(or_(_contains(Spot.label, query), _contains(Spot.code, query)))
            .order_by(Spot.label)
        )
        return list(self.session.scalars(stmt))

    def get_codes_with_prefix(self, prefix: str) -> set[str]:
        """
        Get every spot code starting with prefix.

        An empty prefix returns all codes. The prefix is matched literally,
        so LIKE wildcards inside it are not interpreted.
        """
        stmt = select(Spot.code)
        if prefix:
            stmt = stmt.where(func.substr(Spot.code, 1, len(prefix)) == prefix)
        return set(self.session.scalars(stmt))

    def update(self, spot: Spot) -> Spot:
        """Update an existing spot."""
        self.session.flush()
        return spot

    def delete(self, spot_id: int) -> bool:
        """Delete a spot by ID (cascades to items and documents)."""
        spot = self.get_by_id(spot_id)
        if spot:
            self.session.delete(spot)
            self.session.flush()
            return True
        return False

    def delete_all(self) -> None:
        """Delete every spot row."""
        self.session.execute(delete(Spot))


class ItemRepository:
    """Repository for item operations."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def create(self, item: Item) -> Item:
        """Create a new item."""
        self.session.add(item)
        self.session.flush()
        return item

    def get_by_id(self, item_id: int) -> Optional[Item]:
        """Get item by ID."""
        return self.session.get(Item, item_id)

    def get_all(self) -> list[Item]:
        """Get all items ordered by name."""
        stmt = select(Item).order_by(Item.name, Item.id)
        return list(self.session.scalars(stmt))

    def get_by_spot_id(self, spot_id: int) -> list[Item]:
        """Get all items stored in a spot."""
        stmt = select(Item).where(Item.spot_id == spot_id).order_by(Item.name, Item.id)
        return list(self.session.scalars(stmt))

    def get_recent(self, limit: int) -> list[Item]:
        """Get the most recently updated items."""
        stmt = select(Item).order_by(Item.updated_at.desc(), Item.id.desc()).limit(limit)
        return list(self.session.scalars(stmt))

    def search(self, query: str) -> list[Item]:
        """Search items by name, tags, keywords or category."""
        stmt = (
            select(Item)
            .where(
                or_(
                    _contains(Item.name, query),
                    _contains(Item.tags, query),
                    _contains(Item.keywords, query),
                    _contains(Item.category, query),
                )
            )
            .order_by(Item.updated_at.desc())
        )
        return list(self.session.scalars(stmt))

    def count_by_spot_id(self, spot_id: int) -> int:
        """Count items stored in a spot."""
        stmt = select(func.count(Item.id)).where(Item.spot_id == spot_id)
        return self.session.scalar(stmt) or 0

    def update(self, item: Item) -> Item:
        """Update an existing item."""
        self.session.flush()
        return item

    def delete(self, item_id: int) -> bool:
        """Delete an item by ID."""
        item = self.get_by_id(item_id)
        if item:
            self.session.delete(item)
            self.session.flush()
            return True
        return False

    def delete_all(self) -> None:
        """Delete every item row."""
        self.session.execute(delete(Item))


class DocumentRepository:
    """Repository for document operations."""

    def __init__(self, session: Session):
        """Initialize repository with a database session."""
        self.session = session

    def create(self, document: Document) -> Document:
        """Create a new document."""
        self.session.add(document)
        self.session.flush()
        return document

    def get_by_id(self, document_id: int) -> Optional[Document]:
        """Get document by ID."""
        return self.session.get(Document, document_id)

    def get_all(self) -> list[Document]:
        """Get all documents ordered by title."""
        stmt = select(Document).order_by(Document.title, Document.id)
        return list(self.session.scalars(stmt))

    def get_by_spot_id(self, spot_id: int) -> list[Document]:
        """Get all documents stored in a spot."""
        stmt = (
            select(Document)
            .where(Document.spot_id == spot_id)
            .order_by(Document.title, Document.id)
        )
        return list(self.session.scalars(stmt))

    def get_recent(self, limit: int) -> list[Document]:
        """Get the most recently updated documents."""
        stmt = (
            select(Document)
            .order_by(Document.updated_at.desc(), Document.id.desc())
            .limit(limit)
        )
        return list(self.session.scalars(stmt))

    def get_with_expiry(self) -> list[Document]:
        """Get documents that carry an expiry date, soonest first."""
        stmt = (
            select(Document)
            .where(Document.expiry_date.is_not(None))
            .order_by(Document.expiry_date)
        )
        return list(self.session.scalars(stmt))

    def search(self, query: str) -> list[Document]:
        """Search documents by title, tags, document type or person."""
        stmt = (
            select(Document)
            .where(
                or_(
                    _contains(Document.title, query),
                    _contains(Document.tags, query),
                    _contains(Document.doc_type, query),
                    _contains(Document.person, query),
                )
            )
            .order_by(Document.updated_at.desc())
        )
        return list(self.session.scalars(stmt))

    def count_by_spot_id(self, spot_id: int) -> int:
        """Count documents stored in a spot."""
        stmt = select(func.count(Document.id)).where(Document.spot_id == spot_id)
        return self.session.scalar(stmt) or 0

    def update(self, document: Document) -> Document:
        """Update an existing document."""
        self.session.flush()
        return document

    def delete(self, document_id: int) -> bool:
        """Delete a document by ID."""
        document = self.get_by_id(document_id)
        if document:
            self.session.delete(document)
            self.session.flush()
            return True
        return False

    def delete_all(self) -> None:
        """Delete every document row."""
        self.session.execute(delete(Document))
