"""Tool protocol — the single capability every registered tool implements.

A tool is a named, schema-described handler::

    outcome = await tool.execute(tool.parse_arguments({"path": "."}))

``parse_arguments`` raises :class:`InvalidArgumentsError` for structurally
bad arguments (a protocol error); ``execute`` never raises for domain
failures and instead returns a :class:`ToolOutcome` with ``is_error`` set.
"""

from __future__ import annotations

from typing import Any, ClassVar, Generic, Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel, ValidationError

from secagent.protocols.errors import InvalidArgumentsError
from secagent.protocols.mcp.models import MCPToolDef

ArgsT = TypeVar("ArgsT", bound=BaseModel)


class ToolOutcome(BaseModel):
    """What a tool handler produced: report text, or a failure description."""

    text: str
    is_error: bool = False

    @classmethod
    def ok(cls, text: str) -> ToolOutcome:
        return cls(text=text)

    @classmethod
    def error(cls, text: str) -> ToolOutcome:
        return cls(text=text, is_error=True)


@runtime_checkable
class Tool(Protocol):
    """A tool exposed through ``tools/list`` and ``tools/call``."""

    name: str
    description: str

    def definition(self) -> MCPToolDef:
        """Return the wire definition advertised by ``tools/list``."""
        ...

    def parse_arguments(self, arguments: dict[str, Any]) -> BaseModel:
        """Decode raw arguments into the tool's argument model."""
        ...

    async def execute(self, args: Any) -> ToolOutcome:
        """Run the tool with already-decoded arguments."""
        ...


class BaseTool(Generic[ArgsT]):
    """Shared definition and argument decoding for concrete tools.

    Subclasses set the class attributes and implement :meth:`execute`.
    """

    name: ClassVar[str]
    description: ClassVar[str]
    input_schema: ClassVar[dict[str, Any]]
    args_model: ClassVar[type[BaseModel]]

    def definition(self) -> MCPToolDef:
        return MCPToolDef(
            name=self.name,
            description=self.description,
            input_schema=self.input_schema,
        )

    def parse_arguments(self, arguments: dict[str, Any]) -> ArgsT:
        try:
            return self.args_model.model_validate(arguments)  # type: ignore[return-value]
        except ValidationError as exc:
            raise InvalidArgumentsError(self.name, _describe(exc)) from exc

    async def execute(self, args: ArgsT) -> ToolOutcome:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


def _describe(exc: ValidationError) -> str:
    """Condense a ValidationError into ``field: message`` pairs."""
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err["loc"]) or "arguments"
        parts.append(f"{loc}: {err['msg']}")
    return "; ".join(parts)
