"""MCP protocol — Model Context Protocol server over stdio."""

from secagent.protocols.mcp.models import (
    JsonRpcError,
    JsonRpcRequest,
    JsonRpcResponse,
    MCPToolDef,
    ToolCallResult,
)
from secagent.protocols.mcp.transport import RecordReader, RecordWriter, open_stdio

__all__ = [
    "JsonRpcError",
    "JsonRpcRequest",
    "JsonRpcResponse",
    "MCPToolDef",
    "RecordReader",
    "RecordWriter",
    "ToolCallResult",
    "open_stdio",
]
