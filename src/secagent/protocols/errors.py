"""Shared error types for the protocol layer."""

METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602


class ProtocolError(Exception):
    """Base error for failures reported back as a JSON-RPC ``error`` object."""

    code: int = INVALID_PARAMS

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class MethodNotFoundError(ProtocolError):
    """The request named a method outside the server's method table."""

    code = METHOD_NOT_FOUND

    def __init__(self, method: str) -> None:
        self.method = method
        super().__init__(f"method not found: {method}")


class InvalidParamsError(ProtocolError):
    """``params`` could not be decoded into the shape the method expects."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__("invalid params" + (f": {detail}" if detail else ""))


class UnknownToolError(ProtocolError):
    """``tools/call`` named a tool that is not in the registry."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"unknown tool: {name}")


class InvalidArgumentsError(ProtocolError):
    """Tool arguments do not match the tool's input schema."""

    def __init__(self, tool_name: str, detail: str = "") -> None:
        self.tool_name = tool_name
        self.detail = detail
        super().__init__(
            f"invalid arguments for {tool_name}" + (f": {detail}" if detail else "")
        )


class TransportError(Exception):
    """Unrecoverable failure of the underlying byte stream."""


class RecordTooLargeError(TransportError):
    """An input record exceeded the configured maximum size."""

    def __init__(self, limit: int) -> None:
        self.limit = limit
        super().__init__(f"Input record exceeds maximum size of {limit} bytes")
