"""Item service layer for business logic and validation."""

from datetime import datetime

from sqlalchemy.orm import Session

from homestash.exceptions import DatabaseError, NotFoundError, ValidationError
from homestash.models.base import utcnow
from homestash.models.item import Item
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.repositories import ItemRepository, SpotRepository


class ItemService:
    """Service layer for item CRUD, moves and lending."""

    def __init__(self, session: Session):
        """
        Initialize item service with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.item_repo = ItemRepository(session)
        self.spot_repo = SpotRepository(session)
        self.validator = HierarchyValidator()

    def create_item(
        self,
        spot_id: int,
        name: str,
        category: str | None = None,
        keywords: str | None = None,
        tags: str | None = None,
        note: str | None = None,
        image_path: str | None = None,
    ) -> Item:
        """
        Create a new item stored in a spot.

        Args:
            spot_id: Spot ID (required, must exist)
            name: Item name (required, non-empty)
            category: Optional category
            keywords: Optional free-text keywords
            tags: Optional comma separated tags
            note: Optional note
            image_path: Optional path of a photo managed by the presentation layer

        Returns:
            Created item with ID

        Raises:
            ValidationError: If name is invalid
            NotFoundError: If the spot is not found
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(spot_id, "spot_id")
        self.validator.validate_name(name, "name", HierarchyValidator.TITLE_MAX_LENGTH)

        try:
            if self.spot_repo.get_by_id(spot_id) is None:
                raise NotFoundError("Spot", spot_id)

            item = Item(
                spot_id=spot_id,
                name=name,
                category=category,
                keywords=keywords,
                tags=tags,
                note=note,
                image_path=image_path,
            )
            self.item_repo.create(item)
            self.session.commit()
            return item

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to create item: {str(e)}", e) from e

    def get_item(self, item_id: int) -> Item:
        """
        Get item by ID.

        Raises:
            NotFoundError: If item is not found
        """
        self.validator.validate_id(item_id, "item_id")

        try:
            item = self.item_repo.get_by_id(item_id)
            if item is None:
                raise NotFoundError("Item", item_id)
            return item

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to get item: {str(e)}", e) from e

    def update_item(self, item: Item) -> Item:
        """
        Replace an item with a modified copy and bump updated_at.

        Raises:
            ValidationError: If fields are invalid
            NotFoundError: If the item or its spot is not found
        """
        self.validator.validate_id(item.id, "item_id")
        self.validator.validate_name(item.name, "name", HierarchyValidator.TITLE_MAX_LENGTH)

        try:
            if self.item_repo.get_by_id(item.id) is None:
                raise NotFoundError("Item", item.id)
            if self.spot_repo.get_by_id(item.spot_id) is None:
                raise NotFoundError("Spot", item.spot_id)

            item.updated_at = utcnow()
            item = self.session.merge(item)
            self.item_repo.update(item)
            self.session.commit()
            return item

        except (NotFoundError, ValidationError):
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to update item: {str(e)}", e) from e

    def delete_item(self, item_id: int) -> bool:
        """
        Delete an item.

        Returns:
            True if item was deleted, False if not found
        """
        self.validator.validate_id(item_id, "item_id")

        try:
            deleted = self.item_repo.delete(item_id)
            if deleted:
                self.session.commit()
            return deleted

        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to delete item: {str(e)}", e) from e

    def list_items(self) -> list[Item]:
        """List all items."""
        try:
            return self.item_repo.get_all()
        except Exception as e:
            raise DatabaseError(f"Failed to list items: {str(e)}", e) from e

    def list_items_by_spot(self, spot_id: int) -> list[Item]:
        """List the items stored in a spot."""
        self.validator.validate_id(spot_id, "spot_id")
        try:
            return self.item_repo.get_by_spot_id(spot_id)
        except Exception as e:
            raise DatabaseError(f"Failed to list items: {str(e)}", e) from e

    def count_items_by_spot(self, spot_id: int) -> int:
        """Count the items stored in a spot."""
        self.validator.validate_id(spot_id, "spot_id")
        try:
            return self.item_repo.count_by_spot_id(spot_id)
        except Exception as e:
            raise DatabaseError(f"Failed to count items: {str(e)}", e) from e

    def move_item(self, item_id: int, new_spot_id: int) -> Item:
        """
        Move an item to another spot.

        Only spot_id changes (plus updated_at).

        Raises:
            NotFoundError: If the item or the target spot is not found
        """
        self.validator.validate_id(item_id, "item_id")
        self.validator.validate_id(new_spot_id, "new_spot_id")

        try:
            item = self.item_repo.get_by_id(item_id)
            if item is None:
                raise NotFoundError("Item", item_id)
            if self.spot_repo.get_by_id(new_spot_id) is None:
                raise NotFoundError("Spot", new_spot_id)

            item.spot_id = new_spot_id
            item.updated_at = utcnow()
            self.item_repo.update(item)
            self.session.commit()
            return item

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to move item: {str(e)}", e) from e

    def lend_item(self, item_id: int, lent_to: str, lent_date: datetime | None = None) -> Item:
        """
        Mark an item as lent to someone.

        Args:
            item_id: Item ID
            lent_to: Who borrowed the item (required, non-empty)
            lent_date: When it was lent; defaults to now

        Raises:
            ValidationError: If lent_to is invalid
            NotFoundError: If item is not found
        """
        self.validator.validate_id(item_id, "item_id")
        self.validator.validate_name(lent_to, "lent_to")

        try:
            item = self.item_repo.get_by_id(item_id)
            if item is None:
                raise NotFoundError("Item", item_id)

            item.is_lent = True
            item.lent_to = lent_to
            item.lent_date = lent_date or utcnow()
            item.updated_at = utcnow()
            self.item_repo.update(item)
            self.session.commit()
            return item

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to lend item: {str(e)}", e) from e

    def return_item(self, item_id: int) -> Item:
        """
        Clear the lending state of an item.

        Raises:
            NotFoundError: If item is not found
        """
        self.validator.validate_id(item_id, "item_id")

        try:
            item = self.item_repo.get_by_id(item_id)
            if item is None:
                raise NotFoundError("Item", item_id)

            item.is_lent = False
            item.lent_to = None
            item.lent_date = None
            item.updated_at = utcnow()
            self.item_repo.update(item)
            self.session.commit()
            return item

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to return item: {str(e)}", e) from e
