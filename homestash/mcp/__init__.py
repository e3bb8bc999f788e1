"""MCP module with tool schemas, handlers, and serializers."""

from homestash.mcp.serializers import serialize_dataclass, serialize_model, serialize_outcome
from homestash.mcp.tool_handlers import TOOL_HANDLERS, call_tool_handler
from homestash.mcp.tool_schemas import get_tool_schemas

__all__ = [
    "call_tool_handler",
    "TOOL_HANDLERS",
    "get_tool_schemas",
    "serialize_model",
    "serialize_dataclass",
    "serialize_outcome",
]
