"""ToolInvoker — decodes ``tools/call`` params and runs the named tool."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from secagent.protocols.errors import InvalidParamsError, UnknownToolError
from secagent.protocols.mcp.models import ToolCallParams, ToolCallResult
from secagent.utils.telemetry import ATTR_TOOL_IS_ERROR, ATTR_TOOL_NAME, get_tracer

if TYPE_CHECKING:
    from secagent.tools.registry import ToolRegistry

logger = logging.getLogger(__name__)
_tracer = get_tracer(__name__)


class ToolInvoker:
    """Routes a ``tools/call`` request to its registered tool.

    Protocol misuse (bad params, unknown tool, malformed arguments) raises a
    :class:`~secagent.protocols.errors.ProtocolError`.  Everything that goes
    wrong once the tool is running comes back as an ``isError`` result.
    """

    def __init__(self, registry: ToolRegistry) -> None:
        self._registry = registry

    async def invoke(self, params: Any) -> ToolCallResult:
        try:
            call = ToolCallParams.model_validate(params)
        except ValidationError as exc:
            raise InvalidParamsError(_first_error(exc)) from exc

        tool = self._registry.get(call.name)
        if tool is None:
            raise UnknownToolError(call.name)

        args = tool.parse_arguments(call.arguments)

        with _tracer.start_as_current_span("secagent.tools.call") as span:
            span.set_attribute(ATTR_TOOL_NAME, call.name)
            try:
                outcome = await tool.execute(args)
            except Exception as exc:
                logger.exception("Tool %s failed unexpectedly", call.name)
                result = ToolCallResult.from_text(f"Internal error: {exc}", is_error=True)
            else:
                result = ToolCallResult.from_text(outcome.text, is_error=outcome.is_error)
            span.set_attribute(ATTR_TOOL_IS_ERROR, result.is_error)

        logger.debug("Tool %s finished (isError=%s)", call.name, result.is_error)
        return result


def _first_error(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return ""
    err = errors[0]
    loc = ".".join(str(p) for p in err["loc"])
    return f"{loc}: {err['msg']}" if loc else err["msg"]
