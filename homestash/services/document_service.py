"""Document service layer for business logic and validation."""

from datetime import datetime, timedelta

from sqlalchemy.orm import Session

from homestash.exceptions import DatabaseError, NotFoundError, ValidationError
from homestash.models.base import utcnow
from homestash.models.document import Document
from homestash.services.hierarchy.validation import HierarchyValidator
from homestash.storage.repositories import DocumentRepository, SpotRepository

# Whole days before expiry on which a reminder is due
EXPIRY_REMINDER_DAYS = frozenset({30, 7, 1, 0})


class DocumentService:
    """Service layer for document CRUD operations with validation and error handling."""

    def __init__(self, session: Session):
        """
        Initialize document service with database session.

        Args:
            session: SQLAlchemy database session
        """
        self.session = session
        self.document_repo = DocumentRepository(session)
        self.spot_repo = SpotRepository(session)
        self.validator = HierarchyValidator()

    def create_document(
        self,
        spot_id: int,
        title: str,
        doc_type: str | None = None,
        person: str | None = None,
        expiry_date: datetime | None = None,
        tags: str | None = None,
        note: str | None = None,
        file_paths: list[str] | None = None,
    ) -> Document:
        """
        Create a new document stored in a spot.

        Args:
            spot_id: Spot ID (required, must exist)
            title: Document title (required, non-empty)
            doc_type: Optional document type (e.g. "Passport", "Warranty")
            person: Optional person the document belongs to
            expiry_date: Optional expiry date
            tags: Optional comma separated tags
            note: Optional note
            file_paths: Optional ordered list of attachment paths

        Returns:
            Created document with ID

        Raises:
            ValidationError: If title or file_paths are invalid
            NotFoundError: If the spot is not found
            DatabaseError: If database operation fails
        """
        self.validator.validate_id(spot_id, "spot_id")
        self.validator.validate_name(title, "title", HierarchyValidator.TITLE_MAX_LENGTH)
        paths = self.validator.validate_file_paths(file_paths)

        try:
            if self.spot_repo.get_by_id(spot_id) is None:
                raise NotFoundError("Spot", spot_id)

            document = Document(
                spot_id=spot_id,
                title=title,
                doc_type=doc_type,
                person=person,
                expiry_date=expiry_date,
                tags=tags,
                note=note,
                file_paths=paths,
            )
            self.document_repo.create(document)
            self.session.commit()
            return document

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to create document: {str(e)}", e) from e

    def get_document(self, document_id: int) -> Document:
        """
        Get document by ID.

        Raises:
            NotFoundError: If document is not found
        """
        self.validator.validate_id(document_id, "document_id")

        try:
            document = self.document_repo.get_by_id(document_id)
            if document is None:
                raise NotFoundError("Document", document_id)
            return document

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            raise DatabaseError(f"Failed to get document: {str(e)}", e) from e

    def update_document(self, document: Document) -> Document:
        """
        Replace a document with a modified copy and bump updated_at.

        Raises:
            ValidationError: If fields are invalid
            NotFoundError: If the document or its spot is not found
        """
        self.validator.validate_id(document.id, "document_id")
        self.validator.validate_name(document.title, "title", HierarchyValidator.TITLE_MAX_LENGTH)
        document.file_paths = self.validator.validate_file_paths(document.file_paths)

        try:
            if self.document_repo.get_by_id(document.id) is None:
                raise NotFoundError("Document", document.id)
            if self.spot_repo.get_by_id(document.spot_id) is None:
                raise NotFoundError("Spot", document.spot_id)

            document.updated_at = utcnow()
            document = self.session.merge(document)
            self.document_repo.update(document)
            self.session.commit()
            return document

        except (NotFoundError, ValidationError):
            self.session.rollback()
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to update document: {str(e)}", e) from e

    def delete_document(self, document_id: int) -> bool:
        """
        Delete a document.

        Returns:
            True if document was deleted, False if not found
        """
        self.validator.validate_id(document_id, "document_id")

        try:
            deleted = self.document_repo.delete(document_id)
            if deleted:
                self.session.commit()
            return deleted

        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to delete document: {str(e)}", e) from e

    def list_documents(self) -> list[Document]:
        """List all documents."""
        try:
            return self.document_repo.get_all()
        except Exception as e:
            raise DatabaseError(f"Failed to list documents: {str(e)}", e) from e

    def list_documents_by_spot(self, spot_id: int) -> list[Document]:
        """List the documents stored in a spot."""
        self.validator.validate_id(spot_id, "spot_id")
        try:
            return self.document_repo.get_by_spot_id(spot_id)
        except Exception as e:
            raise DatabaseError(f"Failed to list documents: {str(e)}", e) from e

    def count_documents_by_spot(self, spot_id: int) -> int:
        """Count the documents stored in a spot."""
        self.validator.validate_id(spot_id, "spot_id")
        try:
            return self.document_repo.count_by_spot_id(spot_id)
        except Exception as e:
            raise DatabaseError(f"Failed to count documents: {str(e)}", e) from e

    def move_document(self, document_id: int, new_spot_id: int) -> Document:
        """
        Move a document to another spot.

        Only spot_id changes (plus updated_at).

        Raises:
            NotFoundError: If the document or the target spot is not found
        """
        self.validator.validate_id(document_id, "document_id")
        self.validator.validate_id(new_spot_id, "new_spot_id")

        try:
            document = self.document_repo.get_by_id(document_id)
            if document is None:
                raise NotFoundError("Document", document_id)
            if self.spot_repo.get_by_id(new_spot_id) is None:
                raise NotFoundError("Spot", new_spot_id)

            document.spot_id = new_spot_id
            document.updated_at = utcnow()
            self.document_repo.update(document)
            self.session.commit()
            return document

        except (NotFoundError, ValidationError):
            raise
        except Exception as e:
            self.session.rollback()
            raise DatabaseError(f"Failed to move document: {str(e)}", e) from e

    def list_documents_with_expiry(self) -> list[Document]:
        """List documents that carry an expiry date, soonest first."""
        try:
            return self.document_repo.get_with_expiry()
        except Exception as e:
            raise DatabaseError(f"Failed to list expiring documents: {str(e)}", e) from e

    def get_expiry_reminders(self, now: datetime | None = None) -> list[tuple[Document, int]]:
        """
        Find documents due for an expiry reminder.

        Days left are whole days truncated towards zero, so a document that
        expired a few hours ago still counts as 0. Reminders fall on 30, 7,
        1 and 0 days left; scheduling and delivery belong to the caller.

        Args:
            now: Reference time (naive UTC); defaults to the current time

        Returns:
            (document, days_left) pairs, soonest expiry first
        """
        now = now or utcnow()
        reminders = []
        for document in self.list_documents_with_expiry():
            days_left = _whole_days(document.expiry_date - now)
            if days_left in EXPIRY_REMINDER_DAYS:
                reminders.append((document, days_left))
        return reminders


def _whole_days(delta: timedelta) -> int:
    """Truncate a timedelta to whole days towards zero."""
    return int(delta.total_seconds() / 86400)
