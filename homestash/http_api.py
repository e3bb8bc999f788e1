"""HTTP API for the homestash MCP service using Server-Sent Events (SSE)."""

import asyncio
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, Dict

from fastapi import Body, FastAPI, Query, Request
from fastapi.responses import StreamingResponse
from mcp import McpError

from homestash import __version__
from homestash.config import get_settings
from homestash.logging_config import configure_logging
from homestash.mcp.serializers import serialize_outcome
from homestash.mcp.tool_handlers import call_tool_handler
from homestash.mcp.tool_schemas import get_tool_schemas
from homestash.services.search_dispatch import SearchDispatcher
from homestash.storage.database import Database

logger = logging.getLogger(__name__)

SERVICE_NAME = "homestash"
PROTOCOL_VERSION = "2024-11-05"


def _list_tools() -> list[dict[str, Any]]:
    return [
        {
            "name": tool_def["name"],
            "description": tool_def["description"],
            "inputSchema": tool_def["inputSchema"],
        }
        for tool_def in get_tool_schemas().values()
    ]


async def handle_jsonrpc_request(request: Dict[str, Any], db: Database) -> Dict[str, Any]:
    """Handle JSON-RPC 2.0 request."""
    jsonrpc = request.get("jsonrpc", "2.0")
    request_id = request.get("id")
    method = request.get("method")
    params = request.get("params") or {}

    if method == "initialize":
        return {
            "jsonrpc": jsonrpc,
            "id": request_id,
            "result": {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {},
                "serverInfo": {"name": SERVICE_NAME, "version": __version__},
            },
        }
    elif method == "tools/list":
        return {"jsonrpc": jsonrpc, "id": request_id, "result": {"tools": _list_tools()}}
    elif method == "tools/call":
        tool_name = params.get("name")
        arguments = params.get("arguments") or {}

        try:
            result = await call_tool_handler(tool_name, arguments, db)
        except McpError as e:
            return {
                "jsonrpc": jsonrpc,
                "id": request_id,
                "error": {"code": e.error.code, "message": e.error.message},
            }
        except Exception as e:
            logger.exception("Error handling tool %s", tool_name)
            return {
                "jsonrpc": jsonrpc,
                "id": request_id,
                "error": {"code": -32603, "message": f"Internal error: {str(e)}"},
            }

        return {
            "jsonrpc": jsonrpc,
            "id": request_id,
            "result": {
                "content": [{"type": "text", "text": content.text} for content in result]
            },
        }
    elif method == "prompts/list":
        # No prompts are exposed
        return {"jsonrpc": jsonrpc, "id": request_id, "result": {"prompts": []}}
    elif method == "resources/list":
        # No resources are exposed
        return {"jsonrpc": jsonrpc, "id": request_id, "result": {"resources": []}}
    else:
        return {
            "jsonrpc": jsonrpc,
            "id": request_id,
            "error": {"code": -32601, "message": f"Method not found: {method}"},
        }


def get_search_dispatcher(request: Request, client: str | None = None) -> SearchDispatcher:
    """Return the caller's dispatcher, creating it on first use."""
    if not client:
        client = request.client.host if request.client else "anonymous"
    dispatchers = request.app.state.search_dispatchers
    if client not in dispatchers:
        dispatchers[client] = SearchDispatcher(request.app.state.db)
    return dispatchers[client]


def create_app(database: Database | None = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        database: Database to serve; when None one is built from settings,
                  its tables created, and disposed on shutdown.
    """
    owns_database = database is None
    if database is None:
        database = Database()
        database.create_tables()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        yield
        if owns_database:
            database.dispose()

    app = FastAPI(
        title="homestash MCP Service",
        description="Home inventory core for AI agents and presentation layers",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.db = database
    # One dispatcher per client, so a new query only supersedes that client's own
    app.state.search_dispatchers = {}

    @app.post("/mcp/sse")
    async def mcp_sse_post(request: Request, payload: dict = Body(...)):
        """Server-Sent Events endpoint for MCP (POST)."""
        result = await handle_jsonrpc_request(payload, request.app.state.db)
        return StreamingResponse(
            content=iter([f"data: {json.dumps(result)}\n\n"]),
            media_type="text/event-stream",
        )

    @app.get("/mcp/sse")
    async def mcp_sse_get(request: Request, keepalive: bool = True):
        """Server-Sent Events endpoint for MCP (GET).

        Sends initialize, tools/list, prompts/list and resources/list
        events for client discovery, then keeps the connection alive.
        """
        db = request.app.state.db

        async def generate_sse_stream():
            discovery = [
                {"jsonrpc": "2.0", "id": 1, "method": "initialize", "params": {}},
                {"jsonrpc": "2.0", "id": 2, "method": "tools/list", "params": {}},
                {"jsonrpc": "2.0", "id": 3, "method": "prompts/list", "params": {}},
                {"jsonrpc": "2.0", "id": 4, "method": "resources/list", "params": {}},
            ]
            for message in discovery:
                response = await handle_jsonrpc_request(message, db)
                yield f"data: {json.dumps(response)}\n\n"

            if not keepalive:
                return
            try:
                while True:
                    await asyncio.sleep(30)
                    yield ": keepalive\n\n"
            except asyncio.CancelledError:
                logger.info("MCP SSE GET: connection closed by client")
                raise

        return StreamingResponse(
            generate_sse_stream(),
            media_type="text/event-stream",
            headers={
                "Cache-Control": "no-cache",
                "Connection": "keep-alive",
                "X-Accel-Buffering": "no",
            },
        )

    @app.get("/search")
    async def search(request: Request, q: str = Query(""), client: str | None = Query(None)):
        """Free-text search.

        A request superseded by a newer one from the same client returns
        superseded=true. Clients are told apart by the client parameter,
        falling back to the caller's address.
        """
        dispatcher = get_search_dispatcher(request, client)
        outcome = await dispatcher.submit(q)
        if outcome is None:
            return {"query": q, "superseded": True}
        return {"query": q, "superseded": False, **serialize_outcome(outcome)}

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "service": SERVICE_NAME}

    return app


def main() -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    configure_logging(settings)
    uvicorn.run(create_app(), host=settings.http_host, port=settings.http_port)


if __name__ == "__main__":
    main()
