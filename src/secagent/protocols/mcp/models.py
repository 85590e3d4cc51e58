"""MCP models — JSON-RPC 2.0 messages and tool payloads.

Implements the message format used by the Model Context Protocol for the
server side of the ``initialize`` handshake, tool discovery
(``tools/list``) and execution (``tools/call``).
"""

from __future__ import annotations

import json
import logging
from typing import Annotated, Any, Literal

from pydantic import (
    AllowInfNan,
    BaseModel,
    ConfigDict,
    Field,
    Strict,
    StrictInt,
    StrictStr,
    ValidationError,
    field_validator,
    model_validator,
)

logger = logging.getLogger(__name__)

# Ids are echoed back with the exact JSON type they arrived with.  Infinity and
# NaN have no JSON form, so such ids make the request undecodable.
FiniteFloat = Annotated[float, Strict(), AllowInfNan(False)]
RequestId = StrictInt | FiniteFloat | StrictStr | None

# ---------------------------------------------------------------------------
# JSON-RPC 2.0 envelope
# ---------------------------------------------------------------------------


class JsonRpcRequest(BaseModel):
    """A JSON-RPC 2.0 request or notification.

    A request whose ``id`` key is absent is a notification.  An explicit
    ``"id": null`` is still a request and gets a ``null``-keyed reply.
    """

    model_config = ConfigDict(extra="ignore")

    jsonrpc: Literal["2.0"] = "2.0"
    method: StrictStr
    id: RequestId = None
    params: Any = None

    @property
    def is_notification(self) -> bool:
        return "id" not in self.model_fields_set


class JsonRpcError(BaseModel):
    """A JSON-RPC 2.0 error object."""

    code: int
    message: str
    data: Any = None


class JsonRpcResponse(BaseModel):
    """A JSON-RPC 2.0 response message carrying exactly one of result/error."""

    jsonrpc: Literal["2.0"] = "2.0"
    id: RequestId = None
    result: dict[str, Any] | None = None
    error: JsonRpcError | None = None

    @model_validator(mode="after")
    def _result_xor_error(self) -> JsonRpcResponse:
        if (self.result is None) == (self.error is None):
            msg = "response must carry exactly one of 'result' or 'error'"
            raise ValueError(msg)
        return self

    @classmethod
    def success(cls, request_id: Any, result: dict[str, Any]) -> JsonRpcResponse:
        return cls(id=request_id, result=result)

    @classmethod
    def failure(cls, request_id: Any, code: int, message: str) -> JsonRpcResponse:
        return cls(id=request_id, error=JsonRpcError(code=code, message=message))

    def to_wire(self) -> dict[str, Any]:
        """Return the wire shape; ``id`` is always present, ``data`` only when set."""
        payload: dict[str, Any] = {"jsonrpc": self.jsonrpc, "id": self.id}
        if self.error is not None:
            payload["error"] = self.error.model_dump(exclude_none=True)
        else:
            payload["result"] = self.result
        return payload

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def decode_request(record: bytes | str) -> JsonRpcRequest | None:
    """Parse one transport record into a request.

    Returns ``None`` when the record is not valid JSON, is not an object, or
    does not have the request shape.  Such records carry no usable ``id`` and
    are dropped by the server without a reply.
    """
    try:
        data = json.loads(record)
    except ValueError:
        logger.debug("Dropping record that is not valid JSON")
        return None

    if not isinstance(data, dict):
        logger.debug("Dropping record that is not a JSON object")
        return None

    try:
        return JsonRpcRequest.model_validate(data)
    except ValidationError as exc:
        logger.debug("Dropping record with invalid request shape: %s", exc)
        return None


# ---------------------------------------------------------------------------
# MCP-specific payloads
# ---------------------------------------------------------------------------


class ServerInfo(BaseModel):
    """Server identity advertised by ``initialize``."""

    name: str
    version: str


class InitializeResult(BaseModel):
    """Result of the ``initialize`` handshake."""

    model_config = ConfigDict(populate_by_name=True)

    protocol_version: str = Field(alias="protocolVersion")
    capabilities: dict[str, Any] = Field(default_factory=lambda: {"tools": {}})
    server_info: ServerInfo = Field(alias="serverInfo")


class MCPToolDef(BaseModel):
    """A tool definition as returned by ``tools/list``."""

    model_config = ConfigDict(populate_by_name=True)

    name: str
    description: str = ""
    input_schema: dict[str, Any] = Field(default_factory=dict, alias="inputSchema")


class ToolCallParams(BaseModel):
    """``params`` of a ``tools/call`` request."""

    model_config = ConfigDict(extra="ignore")

    name: StrictStr
    arguments: dict[str, Any] = Field(default_factory=dict)

    @field_validator("arguments", mode="before")
    @classmethod
    def _null_arguments(cls, value: Any) -> Any:
        return {} if value is None else value


class TextContent(BaseModel):
    """Plain text content part."""

    type: Literal["text"] = "text"
    text: str


class ToolCallResult(BaseModel):
    """The tool-result envelope.

    ``is_error`` marks a domain failure (the scan could not run) inside an
    otherwise successful JSON-RPC call.
    """

    model_config = ConfigDict(populate_by_name=True)

    content: list[TextContent] = []
    is_error: bool = Field(default=False, alias="isError")

    @classmethod
    def from_text(cls, text: str, *, is_error: bool = False) -> ToolCallResult:
        """Create a result with a single text content part."""
        return cls(content=[TextContent(text=text)], is_error=is_error)

    @property
    def text(self) -> str:
        return "".join(part.text for part in self.content)
