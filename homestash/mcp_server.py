"""MCP (Model Context Protocol) server for homestash.

This server exposes the inventory core to AI agents and presentation layers
via the Model Context Protocol. It uses the mcp library for JSON-RPC 2.0
communication over stdio.
"""

import asyncio
import logging

from mcp import McpError
from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import ErrorData, TextContent, Tool

from homestash.logging_config import configure_logging
from homestash.mcp.tool_handlers import call_tool_handler
from homestash.mcp.tool_schemas import get_tool_schemas
from homestash.storage.database import Database

logger = logging.getLogger(__name__)


def create_server(db: Database) -> Server:
    """Build an MCP server whose tools operate on db."""
    server = Server("homestash")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List all available MCP tools."""
        return [Tool(**schema) for schema in get_tool_schemas().values()]

    @server.call_tool()
    async def call_tool(name: str, arguments: dict | None) -> list[TextContent]:
        """Handle tool calls."""
        try:
            # Handlers open their own database sessions
            return await call_tool_handler(name, arguments or {}, db)
        except McpError:
            raise
        except Exception as e:
            logger.exception("Unexpected error handling tool %s", name)
            raise McpError(
                ErrorData(
                    code=-32603,  # Internal error
                    message=f"Internal error: {str(e)}",
                )
            )

    return server


async def serve(db: Database) -> None:
    """Serve MCP over stdio until the client disconnects."""
    server = create_server(db)
    async with stdio_server() as (read_stream, write_stream):
        await server.run(
            read_stream,
            write_stream,
            server.create_initialization_options(),
        )


def main() -> None:
    """Main entry point for MCP server."""
    configure_logging()
    db = Database()
    db.create_tables()
    try:
        asyncio.run(serve(db))
    finally:
        db.dispose()


if __name__ == "__main__":
    main()
