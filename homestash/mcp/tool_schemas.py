"""MCP tool schema definitions."""

from typing import Any

CONTAINER_TYPES = ["WARDROBE", "DRAWER", "SHELF", "FOLDER", "OTHER"]


def _id(description: str) -> dict[str, Any]:
    return {"type": "integer", "minimum": 1, "description": description}


def _text(description: str) -> dict[str, Any]:
    return {"type": "string", "description": description}


def _tool(name: str, description: str, properties: dict[str, Any], required: list[str] | None = None) -> dict[str, Any]:
    return {
        "name": name,
        "description": description,
        "inputSchema": {
            "type": "object",
            "properties": properties,
            "required": required or [],
        },
    }


def get_tool_schemas() -> dict[str, dict[str, Any]]:
    """Get all MCP tool schemas."""
    item_fields = {
        "name": _text("Item name"),
        "category": _text("Optional category"),
        "keywords": _text("Optional free-text keywords"),
        "tags": _text("Optional comma separated tags"),
        "note": _text("Optional note"),
        "image_path": _text("Optional photo path"),
    }
    document_fields = {
        "title": _text("Document title"),
        "doc_type": _text("Optional document type, e.g. Passport"),
        "person": _text("Optional person the document belongs to"),
        "expiry_date": _text("Optional expiry date (ISO-8601)"),
        "tags": _text("Optional comma separated tags"),
        "note": _text("Optional note"),
        "file_paths": {
            "type": "array",
            "items": {"type": "string"},
            "description": "Ordered attachment paths",
        },
    }
    container_type = {
        "type": "string",
        "enum": CONTAINER_TYPES,
        "description": "Container type (default: OTHER)",
    }

    tools = [
        # Rooms
        _tool(
            "create_room",
            "Create a new room",
            {"name": _text("Room name"), "icon": _text("Optional icon identifier")},
            ["name"],
        ),
        _tool("get_room", "Retrieve a room by ID", {"room_id": _id("Room ID")}, ["room_id"]),
        _tool(
            "update_room",
            "Update a room's name or icon",
            {
                "room_id": _id("Room ID"),
                "name": _text("New room name"),
                "icon": _text("New icon identifier"),
            },
            ["room_id"],
        ),
        _tool(
            "delete_room",
            "Delete a room with all its containers, spots, items and documents",
            {"room_id": _id("Room ID")},
            ["room_id"],
        ),
        _tool(
            "list_rooms",
            "List rooms, optionally filtered by a name substring",
            {"query": _text("Optional name filter")},
        ),
        # Containers
        _tool(
            "create_container",
            "Create a container inside a room",
            {
                "room_id": _id("Owning room ID"),
                "name": _text("Container name"),
                "type": container_type,
                "note": _text("Optional note"),
                "is_favorite": {"type": "boolean", "description": "Favorite flag"},
            },
            ["room_id", "name"],
        ),
        _tool(
            "get_container",
            "Retrieve a container by ID",
            {"container_id": _id("Container ID")},
            ["container_id"],
        ),
        _tool(
            "update_container",
            "Update a container; room_id moves it to another room",
            {
                "container_id": _id("Container ID"),
                "room_id": _id("New owning room ID"),
                "name": _text("New name"),
                "type": container_type,
                "note": _text("New note"),
                "is_favorite": {"type": "boolean", "description": "Favorite flag"},
            },
            ["container_id"],
        ),
        _tool(
            "delete_container",
            "Delete a container with all its spots, items and documents",
            {"container_id": _id("Container ID")},
            ["container_id"],
        ),
        _tool(
            "list_containers",
            "List containers, by room, favorites only or by name substring",
            {
                "room_id": _id("Only containers of this room"),
                "favorites_only": {"type": "boolean", "description": "Only favorites"},
                "query": _text("Optional name filter"),
            },
        ),
        _tool(
            "toggle_container_favorite",
            "Set or clear a container's favorite flag",
            {
                "container_id": _id("Container ID"),
                "is_favorite": {"type": "boolean", "description": "New favorite flag"},
            },
            ["container_id", "is_favorite"],
        ),
        # Spots
        _tool(
            "create_spot",
            "Create a spot inside a container and assign it a unique code",
            {
                "container_id": _id("Owning container ID"),
                "label": _text("Spot label, e.g. 'Shelf 2'"),
                "note": _text("Optional note"),
                "is_favorite": {"type": "boolean", "description": "Favorite flag"},
            },
            ["container_id", "label"],
        ),
        _tool(
            "get_spot",
            "Retrieve a spot by ID with its breadcrumb",
            {"spot_id": _id("Spot ID")},
            ["spot_id"],
        ),
        _tool(
            "get_spot_by_code",
            "Retrieve a spot by its code, e.g. from a scanned label",
            {"code": _text("Spot code, e.g. CUC-DIS-S2")},
            ["code"],
        ),
        _tool(
            "update_spot",
            "Update a spot's label, note, favorite flag or container; the code never changes",
            {
                "spot_id": _id("Spot ID"),
                "container_id": _id("New owning container ID"),
                "label": _text("New label"),
                "note": _text("New note"),
                "is_favorite": {"type": "boolean", "description": "Favorite flag"},
            },
            ["spot_id"],
        ),
        _tool(
            "delete_spot",
            "Delete a spot with its items and documents",
            {"spot_id": _id("Spot ID")},
            ["spot_id"],
        ),
        _tool(
            "list_spots",
            "List spots, by container, favorites only or by label/code substring",
            {
                "container_id": _id("Only spots of this container"),
                "favorites_only": {"type": "boolean", "description": "Only favorites"},
                "query": _text("Optional label or code filter"),
            },
        ),
        _tool(
            "toggle_spot_favorite",
            "Set or clear a spot's favorite flag",
            {
                "spot_id": _id("Spot ID"),
                "is_favorite": {"type": "boolean", "description": "New favorite flag"},
            },
            ["spot_id", "is_favorite"],
        ),
        # Items
        _tool(
            "create_item",
            "Create an item stored in a spot",
            {"spot_id": _id("Spot ID"), **item_fields},
            ["spot_id", "name"],
        ),
        _tool(
            "get_item",
            "Retrieve an item by ID with its breadcrumb",
            {"item_id": _id("Item ID")},
            ["item_id"],
        ),
        _tool(
            "update_item",
            "Update an item's descriptive fields",
            {"item_id": _id("Item ID"), **item_fields},
            ["item_id"],
        ),
        _tool("delete_item", "Delete an item", {"item_id": _id("Item ID")}, ["item_id"]),
        _tool(
            "list_items",
            "List items, optionally only those in one spot",
            {"spot_id": _id("Only items in this spot")},
        ),
        _tool(
            "move_item",
            "Move an item to another spot",
            {"item_id": _id("Item ID"), "new_spot_id": _id("Target spot ID")},
            ["item_id", "new_spot_id"],
        ),
        _tool(
            "lend_item",
            "Mark an item as lent to someone",
            {
                "item_id": _id("Item ID"),
                "lent_to": _text("Borrower"),
                "lent_date": _text("Optional lending date (ISO-8601, default now)"),
            },
            ["item_id", "lent_to"],
        ),
        _tool(
            "return_item",
            "Clear an item's lending state",
            {"item_id": _id("Item ID")},
            ["item_id"],
        ),
        # Documents
        _tool(
            "create_document",
            "Create a document stored in a spot",
            {"spot_id": _id("Spot ID"), **document_fields},
            ["spot_id", "title"],
        ),
        _tool(
            "get_document",
            "Retrieve a document by ID with its breadcrumb",
            {"document_id": _id("Document ID")},
            ["document_id"],
        ),
        _tool(
            "update_document",
            "Update a document's descriptive fields",
            {"document_id": _id("Document ID"), **document_fields},
            ["document_id"],
        ),
        _tool(
            "delete_document",
            "Delete a document",
            {"document_id": _id("Document ID")},
            ["document_id"],
        ),
        _tool(
            "list_documents",
            "List documents, by spot or only those with an expiry date",
            {
                "spot_id": _id("Only documents in this spot"),
                "with_expiry_only": {"type": "boolean", "description": "Only documents with an expiry date"},
            },
        ),
        _tool(
            "move_document",
            "Move a document to another spot",
            {"document_id": _id("Document ID"), "new_spot_id": _id("Target spot ID")},
            ["document_id", "new_spot_id"],
        ),
        # Lookup and search
        _tool(
            "get_breadcrumb",
            "Resolve the 'Room > Container > Spot' path of a spot",
            {"spot_id": _id("Spot ID")},
            ["spot_id"],
        ),
        _tool(
            "search",
            "Search items and documents by free text, newest first",
            {"query": _text("Search text")},
            ["query"],
        ),
        _tool(
            "get_recent_entries",
            "List the most recently updated items and documents",
            {"limit": {"type": "integer", "minimum": 0, "description": "Number of entries (default: 10)"}},
        ),
        _tool("get_favorites", "List favorite containers and spots with breadcrumbs", {}),
        _tool(
            "get_expiry_reminders",
            "List documents 30, 7, 1 or 0 days from expiry",
            {"now": _text("Optional reference time (ISO-8601, default now)")},
        ),
        _tool(
            "validate_code",
            "Check whether a string is a well-formed spot code",
            {"code": _text("Candidate code")},
            ["code"],
        ),
        # Backup
        _tool(
            "export_backup",
            "Export the whole inventory as a backup document, or write it to a file",
            {"path": _text("Optional file path to write the backup to")},
        ),
        _tool(
            "import_backup",
            "Replace the whole inventory with a backup document or file",
            {
                "path": _text("Backup file path"),
                "backup": {"type": "object", "description": "Backup document"},
            },
        ),
    ]
    return {tool["name"]: tool for tool in tools}
