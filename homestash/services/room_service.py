"""Room service layer for business logic and validation."""

import logging

from sqlalchemy.orm import Session

from homestash.exceptions import DatabaseError, NotFoundError, ValidationError
from homestash.models.base import utcnow
from homestash.models.room import Room
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.repositories import RoomRepository

logger = logging.getLogger(__name__)


class RoomService:
    """Service layer for room CRUD operations with validation and error handling."""

    def __init__(self, session: Session):
        """
        Initialize room service with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.room_repo = RoomRepository(session)
        self.validator = HierarchyValidator()

    def create_room(self, name: str, icon: str | None = None) -> Room:
        """
        Create a new room.

        Args:
            name: Room name (required, non-empty)
            icon: Optional icon identifier used by the presentation layer

        Returns:
            Created room with ID

        Raises:
            ValidationError: If name is invalid
            DatabaseError: If database operation fails
        """
        self.validator.validate_name(name)

        try:
            room = Room(name=name, icon=icon)
            self.room_repo.create(room)
            self.session.commit()
            return room

        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to create room: {str(e)}", e) from e

    def get_room(self, room_id: int) -> Room:
        """
        Get room by ID.

        Raises:
            ValidationError: If room_id is invalid
            NotFoundError: If room is not found
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(room_id, "room_id")

        try:
            room = self.room_repo.get_by_id(room_id)
            if room is None:
                raise NotFoundError("Room", room_id)
            return room

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to get room: {str(e)}", e) from e

    def update_room(self, room: Room) -> Room:
        """
        Replace a room with a modified copy and bump updated_at.

        Args:
            room: Room carrying the ID of an existing room and the new field values

        Returns:
            Updated room

        Raises:
            ValidationError: If fields are invalid
            NotFoundError: If no room has that ID
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(room.id, "room_id")
        self.validator.validate_name(room.name)

        try:
            if self.room_repo.get_by_id(room.id) is None:
                raise NotFoundError("Room", room.id)

            room.updated_at = utcnow()
            room = self.session.merge(room)
            self.room_repo.update(room)
            self.session.commit()
            return room

        except (NotFoundError, ValidationError):
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to update room: {str(e)}", e) from e

    def delete_room(self, room_id: int) -> bool:
        """
        Delete a room and everything stored in it.

        Returns:
            True if room was deleted, False if not found

        Raises:
            ValidationError: If room_id is invalid
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(room_id, "room_id")

        try:
            # Cascades to containers, spots, items and documents
            deleted = self.room_repo.delete(room_id)
            if deleted:
                self.session.commit()
                logger.info("Deleted room %s with all descendants", room_id)
            return deleted

        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to delete room: {str(e)}", e) from e

    def list_rooms(self) -> list[Room]:
        """List all rooms ordered by name."""
        try:
            return self.room_repo.get_all()
        except Exception as e:
            raise DatabaseError(f"Failed to list rooms: {str(e)}", e) from e

    def search_rooms(self, query: str) -> list[Room]:
        """Find rooms whose name contains query (case-insensitive)."""
        if not isinstance(query, str) or not query.strip():
            return []
        try:
            return self.room_repo.search_by_name(query.strip())
        except Exception as e:
            raise DatabaseError(f"Failed to search rooms: {str(e)}", e) from e
