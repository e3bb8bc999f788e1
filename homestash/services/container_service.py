"""Container service layer for business logic and validation."""

from sqlalchemy.orm import Session

from homestash.exceptions import DatabaseError, NotFoundError, ValidationError
from homestash.models.base import utcnow
from homestash.models.container import Container, ContainerType
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.repositories import ContainerRepository, RoomRepository


class ContainerService:
    """Service layer for container CRUD operations with validation and error handling."""

    def __init__(self, session: Session):
        """
        Initialize container service with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.container_repo = ContainerRepository(session)
        self.room_repo = RoomRepository(session)
        self.validator = HierarchyValidator()

    def create_container(
        self,
        room_id: int,
        name: str,
        type: ContainerType | str | None = None,
        note: str | None = None,
        is_favorite: bool = False,
    ) -> Container:
        """
        Create a new container inside a room.

        Args:
            room_id: Owning room ID (required, must exist)
            name: Container name (required, non-empty)
            type: Container type; enum member or name, defaults to OTHER
            note: Optional free-text note
            is_favorite: Initial favorite flag

        Returns:
            Created container with ID

        Raises:
            ValidationError: If name or type is invalid
            NotFoundError: If the room is not found
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(room_id, "room_id")
        self.validator.validate_name(name)
        container_type = self.validator.parse_container_type(type)

        try:
            if self.room_repo.get_by_id(room_id) is None:
                raise NotFoundError("Room", room_id)

            container = Container(
                room_id=room_id,
                name=name,
                type=container_type,
                note=note,
                is_favorite=bool(is_favorite),
            )
            self.container_repo.create(container)
            self.session.commit()
            return container

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to create container: {str(e)}", e) from e

    def get_container(self, container_id: int) -> Container:
        """
        Get container by ID.

        Raises:
            ValidationError: If container_id is invalid
            NotFoundError: If container is not found
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(container_id, "container_id")

        try:
            container = self.container_repo.get_by_id(container_id)
            if container is None:
                raise NotFoundError("Container", container_id)
            return container

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to get container: {str(e)}", e) from e

    def update_container(self, container: Container) -> Container:
        """
        Replace a container with a modified copy and bump updated_at.

        The type is re-validated against ContainerType; moving a container
        to another room requires that room to exist.

        Raises:
            ValidationError: If fields are invalid
            NotFoundError: If the container or its new room is not found
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(container.id, "container_id")
        self.validator.validate_name(container.name)
        container.type = self.validator.parse_container_type(container.type)

        try:
            if self.container_repo.get_by_id(container.id) is None:
                raise NotFoundError("Container", container.id)
            if self.room_repo.get_by_id(container.room_id) is None:
                raise NotFoundError("Room", container.room_id)

            container.updated_at = utcnow()
            container = self.session.merge(container)
            self.container_repo.update(container)
            self.session.commit()
            return container

        except (NotFoundError, ValidationError):
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to update container: {str(e)}", e) from e

    def delete_container(self, container_id: int) -> bool:
        """
        Delete a container and its spots, items and documents.

        Returns:
            True if container was deleted, False if not found
        """
        self.validator.validate_id(container_id, "container_id")

        try:
            deleted = self.container_repo.delete(container_id)
            if deleted:
                self.session.commit()
            return deleted

        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to delete container: {str(e)}", e) from e

    def list_containers(self) -> list[Container]:
        """List all containers."""
        try:
            return self.container_repo.get_all()
        except Exception as e:
            raise DatabaseError(f"Failed to list containers: {str(e)}", e) from e

    def list_containers_by_room(self, room_id: int) -> list[Container]:
        """List the containers of a room."""
        self.validator.validate_id(room_id, "room_id")
        try:
            return self.container_repo.get_by_room_id(room_id)
        except Exception as e:
            raise DatabaseError(f"Failed to list containers: {str(e)}", e) from e

    def list_favorite_containers(self) -> list[Container]:
        """List containers flagged as favorite."""
        try:
            return self.container_repo.get_favorites()
        except Exception as e:
            raise DatabaseError(f"Failed to list favorite containers: {str(e)}", e) from e

    def search_containers(self, query: str) -> list[Container]:
        """Find containers whose name contains query (case-insensitive)."""
        if not isinstance(query, str) or not query.strip():
            return []
        try:
            return self.container_repo.search_by_name(query.strip())
        except Exception as e:
            raise DatabaseError(f"Failed to search containers: {str(e)}", e) from e

    def toggle_favorite(self, container_id: int, is_favorite: bool) -> Container:
        """
        Set the favorite flag without touching other fields.

        Raises:
            NotFoundError: If container is not found
        """
        self.validator.validate_id(container_id, "container_id")

        try:
            container = self.container_repo.get_by_id(container_id)
            if container is None:
                raise NotFoundError("Container", container_id)

            container.is_favorite = bool(is_favorite)
            container.updated_at = utcnow()
            self.container_repo.update(container)
            self.session.commit()
            return container

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to toggle container favorite: {str(e)}", e) from e
