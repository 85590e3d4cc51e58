"""Scan tools — filesystem, secret, container image and hardening scans."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from secagent.formatter import (
    DEFAULT_MAX_CHARS,
    render_findings,
    render_image_layers,
    render_report,
    render_secrets,
)
from secagent.scanner.errors import ScanError
from secagent.scanner.models import ImageScanOptions, ScanMode, ScanOptions
from secagent.tools.base import BaseTool, ToolOutcome
from secagent.tools.models import ImageArgs, PathArgs, ScanPathArgs

if TYPE_CHECKING:
    from secagent.scanner.engine import ScanEngine

logger = logging.getLogger(__name__)


class _EngineTool(BaseTool):  # type: ignore[type-arg]
    def __init__(self, engine: ScanEngine, *, max_chars: int = DEFAULT_MAX_CHARS) -> None:
        self._engine = engine
        self._max_chars = max_chars


class ScanPathTool(_EngineTool):
    name = "scan_path"
    description = (
        "Scan a filesystem path for software packages and known vulnerabilities (CVEs). "
        "Returns a formatted report of all packages found and any associated vulnerabilities."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "The filesystem path to scan (absolute or relative)",
            },
            "osv_match": {
                "type": "boolean",
                "description": "Whether to match packages against the OSV vulnerability database (default: true)",
            },
        },
        "required": ["path"],
    }
    args_model = ScanPathArgs

    async def execute(self, args: ScanPathArgs) -> ToolOutcome:
        options = ScanOptions(target=args.path, mode=ScanMode.SCA, with_osv_match=args.osv_match)
        try:
            result = await self._engine.scan(options)
        except ScanError as exc:
            logger.info("scan_path failed for %s: %s", args.path, exc)
            return ToolOutcome.error(f"Scan error: {exc}")
        return ToolOutcome.ok(render_report(result, max_chars=self._max_chars))


class ScanSecretsTool(_EngineTool):
    name = "scan_secrets"
    description = (
        "Scan a filesystem path for secrets, credentials, and API keys. "
        "Returns a report of all detected secrets with their locations."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "The filesystem path to scan for secrets",
            },
        },
        "required": ["path"],
    }
    args_model = PathArgs

    async def execute(self, args: PathArgs) -> ToolOutcome:
        try:
            result = await self._engine.scan(ScanOptions(target=args.path, mode=ScanMode.SECRETS))
        except ScanError as exc:
            logger.info("scan_secrets failed for %s: %s", args.path, exc)
            return ToolOutcome.error(f"Scan error: {exc}")
        if not result.has_secrets:
            return ToolOutcome.ok("No secrets detected in the scanned path.")
        return ToolOutcome.ok(render_secrets(result.secrets, max_chars=self._max_chars))


class ScanImageTool(_EngineTool):
    name = "scan_image"
    description = (
        "Scan a container image for software packages and vulnerabilities. "
        "Supports remote registry images, local Docker images, and tarballs."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "image_ref": {
                "type": "string",
                "description": (
                    "The image reference (e.g. 'alpine:latest', "
                    "'gcr.io/project/image:tag', or '/path/to/image.tar')"
                ),
            },
        },
        "required": ["image_ref"],
    }
    args_model = ImageArgs

    async def execute(self, args: ImageArgs) -> ToolOutcome:
        if not args.image_ref:
            return ToolOutcome.error("image_ref is required")

        options = ImageScanOptions(image_ref=args.image_ref, with_osv_match=True)
        try:
            async with self._engine.scan_image(options) as result:
                report = render_image_layers(result, max_chars=self._max_chars)
        except ScanError as exc:
            logger.info("scan_image failed for %s: %s", args.image_ref, exc)
            return ToolOutcome.error(f"Image scan error: {exc}")
        return ToolOutcome.ok(report)


class ScanHardenTool(_EngineTool):
    name = "scan_harden"
    description = (
        "Scan a filesystem path for security misconfigurations (CIS benchmarks, weak "
        "credentials, privilege escalation, end-of-life software)."
    )
    input_schema = {
        "type": "object",
        "properties": {
            "path": {
                "type": "string",
                "description": "The filesystem path to scan for misconfigurations",
            },
        },
        "required": ["path"],
    }
    args_model = PathArgs

    async def execute(self, args: PathArgs) -> ToolOutcome:
        try:
            result = await self._engine.scan(ScanOptions(target=args.path, mode=ScanMode.HARDEN))
        except ScanError as exc:
            logger.info("scan_harden failed for %s: %s", args.path, exc)
            return ToolOutcome.error(f"Scan error: {exc}")
        if not result.has_findings:
            return ToolOutcome.ok("No security misconfigurations detected.")
        return ToolOutcome.ok(render_findings(result.findings, max_chars=self._max_chars))
