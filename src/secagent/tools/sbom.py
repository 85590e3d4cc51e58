"""``generate_sbom`` — Software Bill of Materials export."""

from __future__ import annotations

from typing import TYPE_CHECKING

from secagent.scanner.errors import SBOMExportError, ScanError
from secagent.tools.base import BaseTool, ToolOutcome
from secagent.tools.models import SBOMArgs

if TYPE_CHECKING:
    from secagent.scanner.engine import ScanEngine


class GenerateSBOMTool(BaseTool[SBOMArgs]):
    name = "generate_sbom"
    description = (
        "Generate a Software Bill of Materials (SBOM) for a filesystem path "
        "in SPDX or CycloneDX format."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "The filesystem path to scan for packages",
            },
            "format": {
                "type": "string",
                "description": "SBOM format: 'spdx' (default) or 'cdx' (CycloneDX)",
                "enum": ["spdx", "cdx"],
            },
        },
        "required": ["path"],
    }
    args_model = SBOMArgs

    def __init__(self, engine: ScanEngine) -> None:
        self._engine = engine

    async def execute(self, args: SBOMArgs) -> ToolOutcome:
        try:
            document = await self._engine.export_sbom(args.path, args.format)
        except SBOMExportError as exc:
            return ToolOutcome.error(f"Encoding error: {exc}")
        except ScanError as exc:
            return ToolOutcome.error(f"Scan error: {exc}")
        return ToolOutcome.ok(document)
