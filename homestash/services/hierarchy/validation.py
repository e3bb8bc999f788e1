"""Input validation for hierarchy entities."""

from typing import Any

from homestash.exceptions import ValidationError
from homestash.models.container import LEGACY_CONTAINER_TYPES, ContainerType


class HierarchyValidator:
    """Validates room, container, spot, item and document data."""

    # Validation constants
    NAME_MAX_LENGTH = 200
    TITLE_MAX_LENGTH = 500

    @staticmethod
    def validate_name(value: str, field: str = "name", max_length: int = NAME_MAX_LENGTH) -> None:
        """
        Validate a required display name (room name, spot label, item name...).

        Args:
            value: Value to validate
            field: Field name reported in the error
            max_length: Maximum accepted length

        Raises:
            ValidationError: If the value is not a non-blank string within bounds
        """
        if not isinstance(value, str):
            raise ValidationError(f"{field.capitalize()} must be a string", field)
        if not value.strip():
            raise ValidationError(f"{field.capitalize()} is required and cannot be empty", field)
        if len(value) > max_length:
            raise ValidationError(
                f"{field.capitalize()} must be at most {max_length} characters", field
            )

    @staticmethod
    def validate_id(entity_id: Any, field: str = "id") -> None:
        """
        Validate an integer entity ID.

        Raises:
            ValidationError: If entity_id is not a positive integer
        """
        if isinstance(entity_id, bool) or not isinstance(entity_id, int):
            raise ValidationError(f"{field} must be an integer", field)
        if entity_id <= 0:
            raise ValidationError(f"{field} must be positive", field)

    @staticmethod
    def validate_limit(limit: int) -> None:
        """Validate a result size limit."""
        if isinstance(limit, bool) or not isinstance(limit, int) or limit < 0:
            raise ValidationError("limit must be a non-negative integer", "limit")

    @staticmethod
    def parse_container_type(value: ContainerType | str | None) -> ContainerType:
        """
        Coerce a container type to the closed enumeration.

        Accepts enum members, their names (any case) and the legacy names
        written by older backups. None maps to OTHER.

        Raises:
            ValidationError: If the value names no known container type
        """
        if value is None:
            return ContainerType.OTHER
        if isinstance(value, ContainerType):
            return value
        if isinstance(value, str):
            key = value.strip().upper()
            if key in ContainerType.__members__:
                return ContainerType[key]
            if key in LEGACY_CONTAINER_TYPES:
                return LEGACY_CONTAINER_TYPES[key]
        allowed = ", ".join(member.value for member in ContainerType)
        raise ValidationError(f"Unknown container type {value!r}; expected one of {allowed}", "type")

    @staticmethod
    def validate_file_paths(file_paths: Any) -> list[str]:
        """Validate an ordered list of attachment paths."""
        if file_paths is None:
            return []
        if not isinstance(file_paths, (list, tuple)):
            raise ValidationError("file_paths must be a list of strings", "file_paths")
        for path in file_paths:
            if not isinstance(path, str) or not path:
                raise ValidationError("file_paths must contain non-empty strings", "file_paths")
        return list(file_paths)
