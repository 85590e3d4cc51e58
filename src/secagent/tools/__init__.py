"""Tools — the named scan handlers behind ``tools/call``."""

from secagent.tools.base import BaseTool, Tool, ToolOutcome
from secagent.tools.registry import ToolRegistry, build_registry
from secagent.tools.sbom import GenerateSBOMTool
from secagent.tools.scan import ScanHardenTool, ScanImageTool, ScanPathTool, ScanSecretsTool

__all__ = [
    "BaseTool",
    "GenerateSBOMTool",
    "ScanHardenTool",
    "ScanImageTool",
    "ScanPathTool",
    "ScanSecretsTool",
    "Tool",
    "ToolOutcome",
    "ToolRegistry",
    "build_registry",
]
