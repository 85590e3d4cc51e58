"""secagent — SCALIBR security scans exposed as MCP tools over stdio."""

from __future__ import annotations

from typing import TYPE_CHECKING

__version__ = "1.0.0"

if TYPE_CHECKING:
    from secagent.protocols.mcp.server import serve as serve
    from secagent.tools.registry import build_registry as build_registry

_LAZY_EXPORTS = {
    "serve": "secagent.protocols.mcp.server",
    "build_registry": "secagent.tools.registry",
}


def __getattr__(name: str) -> object:
    module_path = _LAZY_EXPORTS.get(name)
    if module_path is not None:
        import importlib

        mod = importlib.import_module(module_path)
        return getattr(mod, name)
    raise AttributeError(f"module 'secagent' has no attribute {name!r}")
