"""Model serialization for MCP responses."""

import dataclasses
import enum
from datetime import datetime
from typing import Any

from sqlalchemy import inspect


def _serialize_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_model(obj: Any) -> dict[str, Any]:
    """
    Serialize a SQLAlchemy model to dictionary.

    Only mapped columns are included, so relationships are never loaded.

    Args:
        obj: SQLAlchemy model instance

    Returns:
        Dictionary representation of the model
    """
    mapper = inspect(obj).mapper
    return {
        attr.key: _serialize_value(getattr(obj, attr.key))
        for attr in mapper.column_attrs
    }


def serialize_dataclass(obj: Any) -> dict[str, Any]:
    """Serialize a result dataclass (search results, favorites, stats)."""
    return {key: _serialize_value(value) for key, value in dataclasses.asdict(obj).items()}


def serialize_outcome(outcome: Any) -> dict[str, Any]:
    """Serialize a SearchOutcome."""
    return {
        "ok": outcome.ok,
        "error": outcome.error,
        "skipped": outcome.skipped,
        "results": [serialize_dataclass(r) for r in outcome.results],
    }
