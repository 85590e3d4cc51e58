"""MethodDispatcher — the server's fixed JSON-RPC method table."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from secagent.protocols.errors import MethodNotFoundError, ProtocolError
from secagent.protocols.mcp.invoker import ToolInvoker
from secagent.protocols.mcp.models import InitializeResult, JsonRpcResponse, ServerInfo

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from secagent.config import ServerConfig
    from secagent.protocols.mcp.models import JsonRpcRequest
    from secagent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)

INITIALIZED_NOTIFICATION = "notifications/initialized"


class MethodDispatcher:
    """Maps one decoded request to at most one response.

    Usage::

        dispatcher = MethodDispatcher(registry, server_info=info, protocol_version="2024-11-05")
        response = await dispatcher.handle(request)   # None for notifications
    """

    def __init__(
        self,
        registry: ToolRegistry,
        *,
        server_info: ServerInfo,
        protocol_version: str,
    ) -> None:
        self._registry = registry
        self._invoker = ToolInvoker(registry)
        self._initialize_result = InitializeResult(
            protocol_version=protocol_version,
            server_info=server_info,
        ).model_dump(by_alias=True)
        # The registry is immutable, so the listing never changes.
        self._tools_result = {
            "tools": [d.model_dump(by_alias=True) for d in registry.definitions()],
        }
        self._methods: dict[str, Callable[[Any], Awaitable[dict[str, Any]]]] = {
            "initialize": self._initialize,
            "tools/list": self._list_tools,
            "tools/call": self._call_tool,
        }

    @classmethod
    def from_config(cls, registry: ToolRegistry, config: ServerConfig) -> MethodDispatcher:
        return cls(
            registry,
            server_info=ServerInfo(name=config.server_name, version=config.server_version),
            protocol_version=config.protocol_version,
        )

    @property
    def registry(self) -> ToolRegistry:
        return self._registry

    async def handle(self, request: JsonRpcRequest) -> JsonRpcResponse | None:
        """Run *request* and build its response, or ``None`` when no reply is owed."""
        if request.method == INITIALIZED_NOTIFICATION:
            return None

        try:
            handler = self._methods.get(request.method)
            if handler is None:
                raise MethodNotFoundError(request.method)
            result = await handler(request.params)
        except ProtocolError as exc:
            logger.debug("Request %r failed: %s", request.id, exc.message)
            response = JsonRpcResponse.failure(request.id, exc.code, exc.message)
        else:
            response = JsonRpcResponse.success(request.id, result)

        if request.is_notification:
            return None
        return response

    async def _initialize(self, _params: Any) -> dict[str, Any]:
        return self._initialize_result

    async def _list_tools(self, _params: Any) -> dict[str, Any]:
        return self._tools_result

    async def _call_tool(self, params: Any) -> dict[str, Any]:
        result = await self._invoker.invoke(params)
        return result.model_dump(by_alias=True)
