"""Shared fixtures: an in-memory scan engine and a wired dispatcher."""

from __future__ import annotations

from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING

import pytest

from secagent.config import ServerConfig
from secagent.protocols.mcp.dispatcher import MethodDispatcher
from secagent.scanner.errors import ScanError
from secagent.scanner.image import ContainerImage, ImageSource
from secagent.scanner.models import (
    ImageScanOptions,
    ImageScanResult,
    Inventory,
    Package,
    ScanOptions,
    ScanResult,
)
from secagent.tools.registry import build_registry

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


class FakeEngine:
    """A ScanEngine that returns canned results and records every call."""

    def __init__(self) -> None:
        self.result = ScanResult(
            inventory=Inventory(packages=[Package(name="requests", version="2.31.0", ecosystem="PyPI")]),
        )
        self.image_result: ImageScanResult | None = None
        self.sbom = '{"spdxVersion": "SPDX-2.3"}'
        self.error: Exception | None = None
        self.scans: list[ScanOptions] = []
        self.image_scans: list[ImageScanOptions] = []
        self.sbom_calls: list[tuple[str, str]] = []
        self.images: list[ContainerImage] = []

    async def scan(self, options: ScanOptions) -> ScanResult:
        self.scans.append(options)
        if self.error is not None:
            raise self.error
        if not Path(options.target).exists():
            raise ScanError(f"target does not exist: {options.target}")
        return self.result

    @asynccontextmanager
    async def scan_image(self, options: ImageScanOptions) -> AsyncIterator[ImageScanResult]:
        self.image_scans.append(options)
        image = ContainerImage(options.image_ref, ImageSource.REMOTE, Path("/nonexistent"))
        self.images.append(image)
        try:
            if self.error is not None:
                raise self.error
            result = self.image_result or ImageScanResult(inventory=self.result.inventory)
            result.image = image
            yield result
        finally:
            image.cleanup()

    async def export_sbom(self, target: str, fmt: str) -> str:
        self.sbom_calls.append((target, fmt))
        if self.error is not None:
            raise self.error
        return self.sbom


@pytest.fixture
def fake_engine() -> FakeEngine:
    return FakeEngine()


@pytest.fixture
def dispatcher(fake_engine: FakeEngine) -> MethodDispatcher:
    config = ServerConfig()
    return MethodDispatcher.from_config(build_registry(fake_engine, config), config)

