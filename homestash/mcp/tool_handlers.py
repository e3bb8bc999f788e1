"""MCP tool handlers for executing tool operations."""

import asyncio
import json
import logging
from datetime import datetime
from typing import Any, Callable

from mcp import McpError
from mcp.types import ErrorData, TextContent
from sqlalchemy.orm import Session

from homestash.exceptions import (
    BackupError,
    CollisionExhaustedError,
    DatabaseError,
    DuplicateError,
    NotFoundError,
    ValidationError,
)
from homestash.mcp.serializers import serialize_dataclass, serialize_model, serialize_outcome
from homestash.services.backup_service import BackupService
from homestash.services.container_service import ContainerService
from homestash.services.document_service import DocumentService
from homestash.services.hierarchy.breadcrumbs import BreadcrumbResolver
from homestash.services.hierarchy.code_generator import is_valid_code
from homestash.services.item_service import ItemService
from homestash.services.room_service import RoomService
from homestash.services.search_service import SearchService
from homestash.services.spot_service import SpotService
from homestash.storage.database import Database

logger = logging.getLogger(__name__)


def _text(result: Any) -> list[TextContent]:
    return [TextContent(type="text", text=json.dumps(result, indent=2))]


async def _run_in_session(db: Database, work: Callable[[Session], Any]) -> list[TextContent]:
    """Run synchronous service work on a worker thread with its own session.

    work must return JSON-serializable data; it runs while the session is
    still open so lazy attributes can load.
    """

    def run() -> Any:
        with db.session() as session:
            return work(session)

    return _text(await asyncio.to_thread(run))


def _required(arguments: dict[str, Any], key: str) -> Any:
    if arguments.get(key) is None:
        raise ValidationError(f"Missing required argument '{key}'", key)
    return arguments[key]


def _parse_datetime(value: Any, field: str) -> datetime | None:
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be an ISO-8601 string", field)
    try:
        return datetime.fromisoformat(value)
    except ValueError as e:
        raise ValidationError(f"{field} must be an ISO-8601 string", field) from e


def _apply(entity: Any, arguments: dict[str, Any], fields: tuple[str, ...]) -> None:
    """Copy the fields present in arguments onto entity."""
    for field in fields:
        if field in arguments:
            setattr(entity, field, arguments[field])


# Room handlers
async def handle_create_room(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle create_room tool."""

    def work(session: Session) -> dict[str, Any]:
        room = RoomService(session).create_room(
            name=_required(arguments, "name"),
            icon=arguments.get("icon"),
        )
        return serialize_model(room)

    return await _run_in_session(db, work)


async def handle_get_room(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_room tool."""

    def work(session: Session) -> dict[str, Any]:
        return serialize_model(RoomService(session).get_room(_required(arguments, "room_id")))

    return await _run_in_session(db, work)


async def handle_update_room(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle update_room tool."""

    def work(session: Session) -> dict[str, Any]:
        service = RoomService(session)
        room = service.get_room(_required(arguments, "room_id"))
        _apply(room, arguments, ("name", "icon"))
        return serialize_model(service.update_room(room))

    return await _run_in_session(db, work)


async def handle_delete_room(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle delete_room tool."""

    def work(session: Session) -> dict[str, Any]:
        return {"deleted": RoomService(session).delete_room(_required(arguments, "room_id"))}

    return await _run_in_session(db, work)


async def handle_list_rooms(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle list_rooms tool."""

    def work(session: Session) -> dict[str, Any]:
        service = RoomService(session)
        query = arguments.get("query")
        rooms = service.search_rooms(query) if query else service.list_rooms()
        return {"rooms": [serialize_model(r) for r in rooms]}

    return await _run_in_session(db, work)


# Container handlers
async def handle_create_container(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle create_container tool."""

    def work(session: Session) -> dict[str, Any]:
        container = ContainerService(session).create_container(
            room_id=_required(arguments, "room_id"),
            name=_required(arguments, "name"),
            type=arguments.get("type"),
            note=arguments.get("note"),
            is_favorite=arguments.get("is_favorite", False),
        )
        return serialize_model(container)

    return await _run_in_session(db, work)


async def handle_get_container(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_container tool."""

    def work(session: Session) -> dict[str, Any]:
        container = ContainerService(session).get_container(_required(arguments, "container_id"))
        return serialize_model(container)

    return await _run_in_session(db, work)


async def handle_update_container(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle update_container tool."""

    def work(session: Session) -> dict[str, Any]:
        service = ContainerService(session)
        container = service.get_container(_required(arguments, "container_id"))
        _apply(container, arguments, ("room_id", "name", "type", "note", "is_favorite"))
        return serialize_model(service.update_container(container))

    return await _run_in_session(db, work)


async def handle_delete_container(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle delete_container tool."""

    def work(session: Session) -> dict[str, Any]:
        deleted = ContainerService(session).delete_container(_required(arguments, "container_id"))
        return {"deleted": deleted}

    return await _run_in_session(db, work)


async def handle_list_containers(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle list_containers tool."""

    def work(session: Session) -> dict[str, Any]:
        service = ContainerService(session)
        if arguments.get("room_id") is not None:
            containers = service.list_containers_by_room(arguments["room_id"])
        elif arguments.get("favorites_only"):
            containers = service.list_favorite_containers()
        elif arguments.get("query"):
            containers = service.search_containers(arguments["query"])
        else:
            containers = service.list_containers()
        return {"containers": [serialize_model(c) for c in containers]}

    return await _run_in_session(db, work)


async def handle_toggle_container_favorite(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle toggle_container_favorite tool."""

    def work(session: Session) -> dict[str, Any]:
        container = ContainerService(session).toggle_favorite(
            _required(arguments, "container_id"),
            bool(_required(arguments, "is_favorite")),
        )
        return serialize_model(container)

    return await _run_in_session(db, work)


# Spot handlers
async def handle_create_spot(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle create_spot tool."""

    def work(session: Session) -> dict[str, Any]:
        spot = SpotService(session).create_spot_with_code(
            container_id=_required(arguments, "container_id"),
            label=_required(arguments, "label"),
            note=arguments.get("note"),
            is_favorite=arguments.get("is_favorite", False),
        )
        return serialize_model(spot)

    return await _run_in_session(db, work)


async def handle_get_spot(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_spot tool."""

    def work(session: Session) -> dict[str, Any]:
        spot = SpotService(session).get_spot(_required(arguments, "spot_id"))
        result = serialize_model(spot)
        result["breadcrumb"] = BreadcrumbResolver(session).resolve(spot.id)
        return result

    return await _run_in_session(db, work)


async def handle_get_spot_by_code(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_spot_by_code tool."""

    def work(session: Session) -> dict[str, Any]:
        spot = SpotService(session).get_spot_by_code(_required(arguments, "code"))
        result = serialize_model(spot)
        result["breadcrumb"] = BreadcrumbResolver(session).resolve(spot.id)
        return result

    return await _run_in_session(db, work)


async def handle_update_spot(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle update_spot tool."""

    def work(session: Session) -> dict[str, Any]:
        service = SpotService(session)
        spot = service.get_spot(_required(arguments, "spot_id"))
        _apply(spot, arguments, ("container_id", "label", "code", "note", "is_favorite"))
        return serialize_model(service.update_spot(spot))

    return await _run_in_session(db, work)


async def handle_delete_spot(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle delete_spot tool."""

    def work(session: Session) -> dict[str, Any]:
        return {"deleted": SpotService(session).delete_spot(_required(arguments, "spot_id"))}

    return await _run_in_session(db, work)


async def handle_list_spots(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle list_spots tool."""

    def work(session: Session) -> dict[str, Any]:
        service = SpotService(session)
        if arguments.get("container_id") is not None:
            spots = service.list_spots_by_container(arguments["container_id"])
        elif arguments.get("favorites_only"):
            spots = service.list_favorite_spots()
        elif arguments.get("query"):
            spots = service.search_spots(arguments["query"])
        else:
            spots = service.list_spots()
        return {"spots": [serialize_model(s) for s in spots]}

    return await _run_in_session(db, work)


async def handle_toggle_spot_favorite(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle toggle_spot_favorite tool."""

    def work(session: Session) -> dict[str, Any]:
        spot = SpotService(session).toggle_favorite(
            _required(arguments, "spot_id"),
            bool(_required(arguments, "is_favorite")),
        )
        return serialize_model(spot)

    return await _run_in_session(db, work)


# Item handlers
ITEM_FIELDS = ("name", "category", "keywords", "tags", "note", "image_path")


async def handle_create_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle create_item tool."""

    def work(session: Session) -> dict[str, Any]:
        item = ItemService(session).create_item(
            spot_id=_required(arguments, "spot_id"),
            name=_required(arguments, "name"),
            category=arguments.get("category"),
            keywords=arguments.get("keywords"),
            tags=arguments.get("tags"),
            note=arguments.get("note"),
            image_path=arguments.get("image_path"),
        )
        return serialize_model(item)

    return await _run_in_session(db, work)


async def handle_get_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_item tool."""

    def work(session: Session) -> dict[str, Any]:
        item = ItemService(session).get_item(_required(arguments, "item_id"))
        result = serialize_model(item)
        result["breadcrumb"] = BreadcrumbResolver(session).resolve(item.spot_id)
        return result

    return await _run_in_session(db, work)


async def handle_update_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle update_item tool."""

    def work(session: Session) -> dict[str, Any]:
        service = ItemService(session)
        item = service.get_item(_required(arguments, "item_id"))
        _apply(item, arguments, ITEM_FIELDS)
        return serialize_model(service.update_item(item))

    return await _run_in_session(db, work)


async def handle_delete_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle delete_item tool."""

    def work(session: Session) -> dict[str, Any]:
        return {"deleted": ItemService(session).delete_item(_required(arguments, "item_id"))}

    return await _run_in_session(db, work)


async def handle_list_items(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle list_items tool."""

    def work(session: Session) -> dict[str, Any]:
        service = ItemService(session)
        if arguments.get("spot_id") is not None:
            items = service.list_items_by_spot(arguments["spot_id"])
        else:
            items = service.list_items()
        return {"items": [serialize_model(i) for i in items]}

    return await _run_in_session(db, work)


async def handle_move_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle move_item tool."""

    def work(session: Session) -> dict[str, Any]:
        item = ItemService(session).move_item(
            _required(arguments, "item_id"),
            _required(arguments, "new_spot_id"),
        )
        return serialize_model(item)

    return await _run_in_session(db, work)


async def handle_lend_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle lend_item tool."""

    def work(session: Session) -> dict[str, Any]:
        item = ItemService(session).lend_item(
            _required(arguments, "item_id"),
            _required(arguments, "lent_to"),
            _parse_datetime(arguments.get("lent_date"), "lent_date"),
        )
        return serialize_model(item)

    return await _run_in_session(db, work)


async def handle_return_item(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle return_item tool."""

    def work(session: Session) -> dict[str, Any]:
        return serialize_model(ItemService(session).return_item(_required(arguments, "item_id")))

    return await _run_in_session(db, work)


# Document handlers
async def handle_create_document(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle create_document tool."""

    def work(session: Session) -> dict[str, Any]:
        document = DocumentService(session).create_document(
            spot_id=_required(arguments, "spot_id"),
            title=_required(arguments, "title"),
            doc_type=arguments.get("doc_type"),
            person=arguments.get("person"),
            expiry_date=_parse_datetime(arguments.get("expiry_date"), "expiry_date"),
            tags=arguments.get("tags"),
            note=arguments.get("note"),
            file_paths=arguments.get("file_paths"),
        )
        return serialize_model(document)

    return await _run_in_session(db, work)


async def handle_get_document(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_document tool."""

    def work(session: Session) -> dict[str, Any]:
        document = DocumentService(session).get_document(_required(arguments, "document_id"))
        result = serialize_model(document)
        result["breadcrumb"] = BreadcrumbResolver(session).resolve(document.spot_id)
        return result

    return await _run_in_session(db, work)


async def handle_update_document(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle update_document tool."""

    def work(session: Session) -> dict[str, Any]:
        service = DocumentService(session)
        document = service.get_document(_required(arguments, "document_id"))
        _apply(document, arguments, ("title", "doc_type", "person", "tags", "note", "file_paths"))
        if "expiry_date" in arguments:
            document.expiry_date = _parse_datetime(arguments["expiry_date"], "expiry_date")
        return serialize_model(service.update_document(document))

    return await _run_in_session(db, work)


async def handle_delete_document(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle delete_document tool."""

    def work(session: Session) -> dict[str, Any]:
        deleted = DocumentService(session).delete_document(_required(arguments, "document_id"))
        return {"deleted": deleted}

    return await _run_in_session(db, work)


async def handle_list_documents(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle list_documents tool."""

    def work(session: Session) -> dict[str, Any]:
        service = DocumentService(session)
        if arguments.get("spot_id") is not None:
            documents = service.list_documents_by_spot(arguments["spot_id"])
        elif arguments.get("with_expiry_only"):
            documents = service.list_documents_with_expiry()
        else:
            documents = service.list_documents()
        return {"documents": [serialize_model(d) for d in documents]}

    return await _run_in_session(db, work)


async def handle_move_document(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle move_document tool."""

    def work(session: Session) -> dict[str, Any]:
        document = DocumentService(session).move_document(
            _required(arguments, "document_id"),
            _required(arguments, "new_spot_id"),
        )
        return serialize_model(document)

    return await _run_in_session(db, work)


# Lookup and search handlers
async def handle_get_breadcrumb(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_breadcrumb tool."""

    def work(session: Session) -> dict[str, Any]:
        spot_id = _required(arguments, "spot_id")
        return {"spot_id": spot_id, "breadcrumb": BreadcrumbResolver(session).resolve(spot_id)}

    return await _run_in_session(db, work)


async def handle_search(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle search tool."""

    def work(session: Session) -> dict[str, Any]:
        return serialize_outcome(SearchService(session).search(arguments.get("query", "")))

    return await _run_in_session(db, work)


async def handle_get_recent_entries(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_recent_entries tool."""

    def work(session: Session) -> dict[str, Any]:
        outcome = SearchService(session).get_recent_entries(arguments.get("limit"))
        return serialize_outcome(outcome)

    return await _run_in_session(db, work)


async def handle_get_favorites(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_favorites tool."""

    def work(session: Session) -> dict[str, Any]:
        favorites = SearchService(session).get_favorites()
        return {"favorites": [serialize_dataclass(f) for f in favorites]}

    return await _run_in_session(db, work)


async def handle_get_expiry_reminders(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle get_expiry_reminders tool."""

    def work(session: Session) -> dict[str, Any]:
        now = _parse_datetime(arguments.get("now"), "now")
        reminders = DocumentService(session).get_expiry_reminders(now)
        return {
            "reminders": [
                {"document": serialize_model(document), "days_left": days_left}
                for document, days_left in reminders
            ]
        }

    return await _run_in_session(db, work)


async def handle_validate_code(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle validate_code tool."""
    code = _required(arguments, "code")
    if not isinstance(code, str):
        raise ValidationError("code must be a string", "code")
    return _text({"code": code, "valid": is_valid_code(code)})


# Backup handlers
async def handle_export_backup(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle export_backup tool."""

    def work(session: Session) -> dict[str, Any]:
        service = BackupService(session)
        path = arguments.get("path")
        if path:
            written = service.export_to_file(path)
            return {"path": str(written)}
        return service.export_data()

    return await _run_in_session(db, work)


async def handle_import_backup(arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """Handle import_backup tool."""

    def work(session: Session) -> dict[str, Any]:
        service = BackupService(session)
        if arguments.get("path"):
            stats = service.import_from_file(arguments["path"])
        elif arguments.get("backup") is not None:
            stats = service.import_data(arguments["backup"])
        else:
            raise ValidationError("Either 'path' or 'backup' is required", "backup")
        result = serialize_dataclass(stats)
        result["total"] = stats.total
        return result

    return await _run_in_session(db, work)


# Tool handler registry
TOOL_HANDLERS: dict[str, Callable] = {
    "create_room": handle_create_room,
    "get_room": handle_get_room,
    "update_room": handle_update_room,
    "delete_room": handle_delete_room,
    "list_rooms": handle_list_rooms,
    "create_container": handle_create_container,
    "get_container": handle_get_container,
    "update_container": handle_update_container,
    "delete_container": handle_delete_container,
    "list_containers": handle_list_containers,
    "toggle_container_favorite": handle_toggle_container_favorite,
    "create_spot": handle_create_spot,
    "get_spot": handle_get_spot,
    "get_spot_by_code": handle_get_spot_by_code,
    "update_spot": handle_update_spot,
    "delete_spot": handle_delete_spot,
    "list_spots": handle_list_spots,
    "toggle_spot_favorite": handle_toggle_spot_favorite,
    "create_item": handle_create_item,
    "get_item": handle_get_item,
    "update_item": handle_update_item,
    "delete_item": handle_delete_item,
    "list_items": handle_list_items,
    "move_item": handle_move_item,
    "lend_item": handle_lend_item,
    "return_item": handle_return_item,
    "create_document": handle_create_document,
    "get_document": handle_get_document,
    "update_document": handle_update_document,
    "delete_document": handle_delete_document,
    "list_documents": handle_list_documents,
    "move_document": handle_move_document,
    "get_breadcrumb": handle_get_breadcrumb,
    "search": handle_search,
    "get_recent_entries": handle_get_recent_entries,
    "get_favorites": handle_get_favorites,
    "get_expiry_reminders": handle_get_expiry_reminders,
    "validate_code": handle_validate_code,
    "export_backup": handle_export_backup,
    "import_backup": handle_import_backup,
}


async def call_tool_handler(tool_name: str, arguments: dict[str, Any], db: Database) -> list[TextContent]:
    """
    Call the appropriate tool handler.

    Args:
        tool_name: Name of the tool to call
        arguments: Tool arguments
        db: Database instance

    Returns:
        List of TextContent with tool execution result

    Raises:
        McpError: If tool name is unknown or handler raises an error
    """
    if tool_name not in TOOL_HANDLERS:
        raise McpError(
            ErrorData(
                code=-32601,  # Method not found
                message=f"Unknown tool: {tool_name}",
            )
        )

    handler = TOOL_HANDLERS[tool_name]

    try:
        return await handler(arguments, db)
    except McpError:
        raise
    except ValidationError as e:
        raise McpError(
            ErrorData(
                code=-32602,  # Invalid params
                message=f"Validation error: {str(e)}",
            )
        )
    except NotFoundError as e:
        raise McpError(
            ErrorData(
                code=-32001,  # Custom error: not found
                message=str(e),
            )
        )
    except (DuplicateError, CollisionExhaustedError) as e:
        raise McpError(
            ErrorData(
                code=-32002,  # Custom error: duplicate
                message=str(e),
            )
        )
    except BackupError as e:
        raise McpError(
            ErrorData(
                code=-32003,  # Custom error: backup
                message=f"Backup error: {str(e)}",
            )
        )
    except DatabaseError as e:
        logger.error("Tool %s failed: %s", tool_name, e)
        raise McpError(
            ErrorData(
                code=-32603,  # Internal error
                message=f"Database error: {str(e)}",
            )
        )
    except Exception as e:
        logger.exception("Unexpected error in tool %s", tool_name)
        raise McpError(
            ErrorData(
                code=-32603,  # Internal error
                message=f"Internal error: {str(e)}",
            )
        )
