"""Custom exceptions for inventory service operations."""


class InventoryServiceError(Exception):
    """Base exception for inventory service errors."""

    pass


class ValidationError(InventoryServiceError):
    """Raised when input validation fails."""

    def __init__(self, message: str, field: str | None = None):
        super().__init__(message)
        self.field = field


class NotFoundError(InventoryServiceError):
    """Raised when a referenced entity is not found."""

    def __init__(self, resource_type: str, resource_id: int | str):
        message = f"{resource_type} with ID '{resource_id}' not found"
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id


class DuplicateError(InventoryServiceError):
    """Raised when attempting to create a duplicate resource."""

    def __init__(self, resource_type: str, field: str, value: str):
        message = f"{resource_type} with {field} '{value}' already exists"
        super().__init__(message)
        self.resource_type = resource_type
        self.field = field
        self.value = value


class CollisionExhaustedError(InventoryServiceError):
    """Raised when no free spot code exists below the configured suffix cap."""

    def __init__(self, base_code: str, max_suffix: int):
        message = f"No free code for '{base_code}' with suffix up to {max_suffix}"
        super().__init__(message)
        self.base_code = base_code
        self.max_suffix = max_suffix


class DatabaseError(InventoryServiceError):
    """Raised when a database operation fails."""

    def __init__(self, message: str, original_error: Exception | None = None):
        super().__init__(message)
        self.original_error = original_error


class BackupError(InventoryServiceError):
    """Base exception for backup export/import errors."""

    pass


class BackupFormatError(BackupError):
    """Raised when a backup payload cannot be parsed or is inconsistent."""

    pass


class ImportVersionError(BackupError):
    """Raised when a backup was written by a newer schema than supported."""

    def __init__(self, found: int, supported: int):
        message = (
            f"Backup schema version {found} is newer than the supported version {supported}"
        )
        super().__init__(message)
        self.found = found
        self.supported = supported
