"""Protocol layer — JSON-RPC error taxonomy and the MCP stdio server."""

from secagent.protocols.errors import (
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    InvalidArgumentsError,
    InvalidParamsError,
    MethodNotFoundError,
    ProtocolError,
    RecordTooLargeError,
    TransportError,
    UnknownToolError,
)

__all__ = [
    "INVALID_PARAMS",
    "METHOD_NOT_FOUND",
    "InvalidArgumentsError",
    "InvalidParamsError",
    "MethodNotFoundError",
    "ProtocolError",
    "RecordTooLargeError",
    "TransportError",
    "UnknownToolError",
]
