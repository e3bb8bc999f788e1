"""Spot service layer: code assignment, lookups and favorites."""

import logging
from contextlib import nullcontext

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from homestash.config import get_settings
from homestash.exceptions import (
    CollisionExhaustedError,
    DatabaseError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from homestash.models.base import utcnow
from homestash.models.spot import Spot
from homestash.services.hierarchy.code_generator import generate_code
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.database import SPOT_CODE_LOCK_KEY
from homestash.storage.repositories import (
    ContainerRepository,
    RoomRepository,
    SpotRepository,
)

logger = logging.getLogger(__name__)


class SpotService:
    """Service layer for spot operations with validation and error handling.

    create_spot_with_code is the only path that assigns a spot code. The
    read-existing-codes / insert sequence runs under the owning Database's
    spot-code lock, and the unique index on spots.code backs it up across
    processes: a conflicting insert is rolled back and retried with a fresh
    snapshot of the existing codes.
    """

    def __init__(self, session: Session, max_retries: int | None = None):
        """
        Initialize spot service with database session.

        Args:
            session: SQLAlchemy database session
            max_retries: Insert attempts on a code conflict; defaults to SPOT_CODE_MAX_RETRIES
        """
        self.session = session
        self.spot_repo = SpotRepository(session)
        self.container_repo = ContainerRepository(session)
        self.room_repo = RoomRepository(session)
        self.validator = HierarchyValidator()
        self.max_retries = max_retries or get_settings().spot_code_max_retries

    def _code_lock(self):
        return self.session.info.get(SPOT_CODE_LOCK_KEY) or nullcontext()

    def create_spot_with_code(
        self,
        container_id: int,
        label: str,
        note: str | None = None,
        is_favorite: bool = False,
    ) -> Spot:
        """
        Create a spot and assign it a unique code.

        Args:
            container_id: Owning container ID (required, must exist)
            label: Spot label (required, non-empty)
            note: Optional free-text note
            is_favorite: Initial favorite flag

        Returns:
            Created spot with ID and code

        Raises:
            ValidationError: If label is invalid
            NotFoundError: If the container or its room is not found
            DuplicateError: If the generated code kept colliding after all retries
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(container_id, "container_id")
        self.validator.validate_name(label, "label")

        last_code = ""
        for attempt in range(1, self.max_retries + 1):
            with self._code_lock():
                try:
                    container = self.container_repo.get_by_id(container_id)
                    if container is None:
                        raise NotFoundError("Container", container_id)
                    room = self.room_repo.get_by_id(container.room_id)
                    if room is None:
                        logger.error(
                            "Container %s references missing room %s",
                            container_id,
                            container.room_id,
                        )
                        raise NotFoundError("Room", container.room_id)

                    existing_codes = self.spot_repo.get_codes_with_prefix("")
                    last_code = generate_code(room.name, container.name, label, existing_codes)

                    spot = Spot(
                        container_id=container_id,
                        label=label,
                        code=last_code,
                        note=note,
                        is_favorite=bool(is_favorite),
                    )
                    self.spot_repo.create(spot)
                    self.session.commit()
                    logger.info("Created spot %s with code %s", spot.id, last_code)
                    return spot

                except IntegrityError:
                    self.session.rollback()
                    logger.warning(
                        "Spot code %s taken concurrently (attempt %d/%d)",
                        last_code,
                        attempt,
                        self.max_retries,
                    )
                except (NotFoundError, ValidationError, CollisionExhaustedError):
                    self.session.rollback()
                    raise
                except Exception as e:
                    self.session.rollback()
                    raise DatabaseError(f"Failed to create spot: {str(e)}", e) from e

        raise DuplicateError("Spot", "code", last_code)

    def get_spot(self, spot_id: int) -> Spot:
        """
        Get spot by ID.

        Raises:
            NotFoundError: If spot is not found
        """
        self.validator.validate_id(spot_id, "spot_id")

        try:
            spot = self.spot_repo.get_by_id(spot_id)
            if spot is None:
                raise NotFoundError("Spot", spot_id)
            return spot

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to get spot: {str(e)}", e) from e

    def get_spot_by_code(self, code: str) -> Spot:
        """
        Get spot by code, e.g. after scanning a printed label.

        Surrounding whitespace is ignored and the code is matched uppercased.

        Raises:
            ValidationError: If code is not a non-empty string
            NotFoundError: If no spot carries that code
        """
        if not isinstance(code, str) or not code.strip():
            raise ValidationError("Code must be a non-empty string", "code")
        normalized = code.strip().upper()

        try:
            spot = self.spot_repo.get_by_code(normalized)
            if spot is None:
                raise NotFoundError("Spot", normalized)
            return spot

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to get spot by code: {str(e)}", e) from e

    def update_spot(self, spot: Spot) -> Spot:
        """
        Replace a spot with a modified copy and bump updated_at.

        The code is immutable: a copy carrying a different code is rejected,
        and renaming the owning room or container never regenerates it.

        Raises:
            ValidationError: If fields are invalid or the code was changed
            NotFoundError: If the spot or its new container is not found
        """
        self.validator.validate_id(spot.id, "spot_id")
        self.validator.validate_name(spot.label, "label")

        try:
            stored_code = self.session.scalar(select(Spot.code).where(Spot.id == spot.id))
            if stored_code is None:
                raise NotFoundError("Spot", spot.id)
            if spot.code != stored_code:
                raise ValidationError("Spot code cannot be changed once assigned", "code")
            if self.container_repo.get_by_id(spot.container_id) is None:
                raise NotFoundError("Container", spot.container_id)

            spot.updated_at = utcnow()
            spot = self.session.merge(spot)
            self.spot_repo.update(spot)
            self.session.commit()
            return spot

        except (NotFoundError, ValidationError):
            # Discard the rejected changes if the copy was attached to this session
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to update spot: {str(e)}", e) from e

    def delete_spot(self, spot_id: int) -> bool:
        """
        Delete a spot with its items and documents.

        Returns:
            True if spot was deleted, False if not found
        """
        self.validator.validate_id(spot_id, "spot_id")

        try:
            deleted = self.spot_repo.delete(spot_id)
            if deleted:
                self.session.commit()
            return deleted

        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to delete spot: {str(e)}", e) from e

    def list_spots(self) -> list[Spot]:
        """List all spots."""
        try:
            return self.spot_repo.get_all()
        except Exception as e:
            raise DatabaseError(f"Failed to list spots: {str(e)}", e) from e

    def list_spots_by_container(self, container_id: int) -> list[Spot]:
        """List the spots of a container."""
        self.validator.validate_id(container_id, "container_id")
        try:
            return self.spot_repo.get_by_container_id(container_id)
        except Exception as e:
            raise DatabaseError(f"Failed to list spots: {str(e)}", e) from e

    def list_favorite_spots(self) -> list[Spot]:
        """List spots flagged as favorite."""
        try:
            return self.spot_repo.get_favorites()
        except Exception as e:
            raise DatabaseError(f"Failed to list favorite spots: {str(e)}", e) from e

    def search_spots(self, query: str) -> list[Spot]:
        """Find spots whose label or code contains query as typed (case-insensitive)."""
        if not isinstance(query, str) or not query.strip():
            return []
        try:
            return self.spot_repo.search(query)
        except Exception as e:
            raise DatabaseError(f"Failed to search spots: {str(e)}", e) from e

    def get_codes_with_prefix(self, prefix: str = "") -> set[str]:
        """Get the codes starting with prefix; "" returns every code."""
        try:
            return self.spot_repo.get_codes_with_prefix(prefix)
        except Exception as e:
            raise DatabaseError(f"Failed to read spot codes: {str(e)}", e) from e

    def toggle_favorite(self, spot_id: int, is_favorite: bool) -> Spot:
        """
        Set the favorite flag without touching other fields.

        Raises:
            NotFoundError: If spot is not found
        """
        self.validator.validate_id(spot_id, "spot_id")

        try:
            spot = self.spot_repo.get_by_id(spot_id)
            if spot is None:
                raise NotFoundError("Spot", spot_id)

            spot.is_favorite = bool(is_favorite)
            spot.updated_at = utcnow()
            self.spot_repo.update(spot)
            self.session.commit()
            return spot

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to toggle spot favorite: {str(e)}", e) from e
