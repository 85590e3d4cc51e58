"""ToolRegistry — the fixed, ordered set of tools the server exposes."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from types import MappingProxyType
from typing import TYPE_CHECKING

from secagent.formatter import DEFAULT_MAX_CHARS
from secagent.tools.sbom import GenerateSBOMTool
from secagent.tools.scan import ScanHardenTool, ScanImageTool, ScanPathTool, ScanSecretsTool

if TYPE_CHECKING:
    from collections.abc import Iterable

    from secagent.config import ServerConfig
    from secagent.protocols.mcp.models import MCPToolDef
    from secagent.scanner.engine import ScanEngine
    from secagent.tools.base import Tool


class ToolRegistry(Mapping[str, "Tool"]):
    """Immutable name-to-tool mapping that preserves registration order.

    Usage::

        registry = ToolRegistry([ScanPathTool(engine), GenerateSBOMTool(engine)])
        registry["scan_path"]          # -> ScanPathTool
        registry.definitions()         # -> [MCPToolDef, ...] in order
    """

    def __init__(self, tools: Iterable[Tool]) -> None:
        table: dict[str, Tool] = {}
        for tool in tools:
            if tool.name in table:
                msg = f"duplicate tool name: {tool.name}"
                raise ValueError(msg)
            table[tool.name] = tool
        self._tools = MappingProxyType(table)

    def __getitem__(self, name: str) -> Tool:
        return self._tools[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def definitions(self) -> list[MCPToolDef]:
        """Return every tool's wire definition in registration order."""
        return [tool.definition() for tool in self._tools.values()]

    def __repr__(self) -> str:
        return f"ToolRegistry({list(self._tools)!r})"


def build_registry(engine: ScanEngine, config: ServerConfig | None = None) -> ToolRegistry:
    """Create the standard registry of scan tools backed by *engine*."""
    max_chars = config.report_max_chars if config is not None else DEFAULT_MAX_CHARS
    return ToolRegistry([
        ScanPathTool(engine, max_chars=max_chars),
        ScanSecretsTool(engine, max_chars=max_chars),
        ScanImageTool(engine, max_chars=max_chars),
        ScanHardenTool(engine, max_chars=max_chars),
        GenerateSBOMTool(engine),
    ])
