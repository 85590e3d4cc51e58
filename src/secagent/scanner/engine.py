"""ScanEngine — the scanning capability consumed by the tools.

:class:`ScalibrEngine` drives the ``scalibr`` binary as a subprocess. Each run
builds a command line, waits for it under a timeout, and loads the JSON
result the scanner writes into a private temporary directory.
"""

from __future__ import annotations

import asyncio
import logging
import os
import re
import shlex
import tempfile
from contextlib import asynccontextmanager, suppress
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol, TypeVar, runtime_checkable

from pydantic import ValidationError

from secagent.config import ScannerSettings
from secagent.scanner.errors import ImageLoadError, SBOMExportError, ScanError, ScanTimeoutError
from secagent.scanner.image import ContainerImage, ImageSource
from secagent.scanner.models import (
    ImageScanOptions,
    ImageScanResult,
    ScanMode,
    ScanOptions,
    ScanResult,
)

if TYPE_CHECKING:
    from collections.abc import AsyncIterator
    from contextlib import AbstractAsyncContextManager

logger = logging.getLogger(__name__)

SBOMFormat = Literal["spdx", "cdx"]

_R = TypeVar("_R", bound=ScanResult)

SCA_PLUGINS = ["os", "python", "javascript", "java", "go", "ruby", "rust"]
SECRET_PLUGINS = ["secrets"]
HARDEN_PLUGINS = ["cis", "weakcredentials", "misc", "endoflife", "govulncheck"]

_SBOM_OUTPUT_FORMATS: dict[str, str] = {"spdx": "spdx23-json", "cdx": "cdx-json"}


def plugin_names_for_mode(mode: ScanMode) -> list[str]:
    """Return the base plugin set for *mode* (a fresh list)."""
    if mode is ScanMode.SECRETS:
        return list(SECRET_PLUGINS)
    if mode is ScanMode.FULL:
        return SCA_PLUGINS + SECRET_PLUGINS
    if mode is ScanMode.HARDEN:
        return list(HARDEN_PLUGINS)
    return list(SCA_PLUGINS)


def plugin_names(options: ScanOptions) -> list[str]:
    """Return the mode's plugins plus extras and requested enrichers."""
    names = plugin_names_for_mode(options.mode)
    names.extend(options.extra_plugins)
    if options.with_osv_match:
        names.append("vulnmatch")
    if options.with_reachability:
        names.append("reachability")
    if options.with_secret_validation:
        names.append("secretsvalidate")
    if options.with_license_enrichment:
        names.append("license/depsdev")
    return names


@runtime_checkable
class ScanEngine(Protocol):
    """Scans filesystems and container images and exports inventories."""

    async def scan(self, options: ScanOptions) -> ScanResult:
        """Scan a filesystem target.  Raises :class:`ScanError` on failure."""
        ...

    def scan_image(self, options: ImageScanOptions) -> AbstractAsyncContextManager[ImageScanResult]:
        """Load and scan an image; the image is released when the context exits."""
        ...

    async def export_sbom(self, target: str, fmt: SBOMFormat) -> str:
        """Scan *target* and return its inventory as an SBOM document."""
        ...


class ScalibrEngine:
    """Runs the SCALIBR scanner binary as a subprocess.

    Satisfies the :class:`ScanEngine` protocol.
    """

    def __init__(self, settings: ScannerSettings | None = None) -> None:
        self._settings = settings or ScannerSettings()

    @property
    def settings(self) -> ScannerSettings:
        return self._settings

    async def scan(self, options: ScanOptions) -> ScanResult:
        """Scan a filesystem target and return the parsed inventory."""
        root = self._resolve_target(options.target)
        merged = self._merge_settings(options)

        with tempfile.TemporaryDirectory(prefix="secagent-scan-") as tmp:
            result_path = Path(tmp) / "result.json"
            cmd = self.build_scan_command(root, merged, result_path)
            await self._run(cmd)
            return self._load_result(result_path, ScanResult)

    @asynccontextmanager
    async def scan_image(self, options: ImageScanOptions) -> AsyncIterator[ImageScanResult]:
        """Stage, scan and finally release a container image."""
        image = ContainerImage.stage(options.image_ref)
        try:
            result = await self._scan_container(image, options)
            yield result
        finally:
            image.cleanup()

    async def export_sbom(self, target: str, fmt: SBOMFormat) -> str:
        """Scan *target* with the SCA plugins and export SPDX 2.3 or CycloneDX JSON."""
        output_format = _SBOM_OUTPUT_FORMATS.get(fmt)
        if output_format is None:
            raise SBOMExportError(f"unsupported SBOM format: {fmt}")

        root = self._resolve_target(target)
        with tempfile.TemporaryDirectory(prefix="secagent-sbom-") as tmp:
            out_path = Path(tmp) / f"sbom.{fmt}.json"
            cmd = [
                self._settings.binary,
                "--root", str(root),
                "--plugins", ",".join(SCA_PLUGINS),
                "--o", f"{output_format}={out_path}",
            ]
            if fmt == "spdx":
                cmd.extend([
                    "--spdx-document-name", "secagent-sbom",
                    "--spdx-document-namespace", f"https://secagent.dev/sbom/{target}",
                ])
            else:
                cmd.extend([
                    "--cdx-component-name", target,
                    "--cdx-component-type", "application",
                ])
            await self._run(cmd)
            try:
                return out_path.read_text(encoding="utf-8")
            except OSError as exc:
                raise SBOMExportError(f"scanner produced no SBOM: {exc}") from exc

    def build_scan_command(self, root: Path, options: ScanOptions, result_path: Path) -> list[str]:
        """Build the scanner command line for a filesystem scan."""
        cmd: list[str] = [
            self._settings.binary,
            "--root", str(root),
            "--plugins", ",".join(plugin_names(options)),
            "--result", str(result_path),
        ]
        if options.dirs_to_skip:
            cmd.extend(["--skip-dirs", ",".join(options.dirs_to_skip)])
        if options.skip_dir_regex:
            try:
                re.compile(options.skip_dir_regex)
            except re.error as exc:
                raise ScanError(f"invalid skip-dir-regex {options.skip_dir_regex!r}: {exc}") from exc
            cmd.extend(["--skip-dir-regex", options.skip_dir_regex])
        if options.use_gitignore:
            cmd.append("--use-gitignore")
        if options.max_file_size:
            cmd.extend(["--max-file-size", str(options.max_file_size)])
        return cmd

    def build_image_command(
        self,
        image: ContainerImage,
        options: ImageScanOptions,
        result_path: Path,
    ) -> list[str]:
        """Build the scanner command line for a container image scan."""
        names = SCA_PLUGINS + list(self._settings.extra_plugins) + list(options.extra_plugins)
        if options.with_osv_match:
            names.append("vulnmatch")
        return [
            self._settings.binary,
            *image.scanner_args(),
            "--plugins", ",".join(names),
            "--result", str(result_path),
        ]

    async def _scan_container(
        self,
        image: ContainerImage,
        options: ImageScanOptions,
    ) -> ImageScanResult:
        result_path = image.workdir / "result.json"
        # Layers are unpacked under the image's scratch dir so cleanup() removes them.
        env = {**os.environ, "TMPDIR": str(image.workdir)}

        try:
            await self._run(self.build_image_command(image, options, result_path), env=env)
        except ScanTimeoutError:
            raise
        except ScanError as exc:
            if image.source is not ImageSource.LOCAL:
                raise ImageLoadError(image.ref, exc.detail) from exc
            logger.info("Local docker image %s not found, trying remote registry", image.ref)
            image.source = ImageSource.REMOTE
            try:
                await self._run(self.build_image_command(image, options, result_path), env=env)
            except ScanError as remote_exc:
                raise ImageLoadError(image.ref, remote_exc.detail) from remote_exc

        result = self._load_result(result_path, ImageScanResult)
        result.image = image
        return result

    def _merge_settings(self, options: ScanOptions) -> ScanOptions:
        """Apply server-wide scanner settings on top of per-call options."""
        cfg = self._settings
        return options.model_copy(update={
            "extra_plugins": [*cfg.extra_plugins, *options.extra_plugins],
            "dirs_to_skip": [*cfg.dirs_to_skip, *options.dirs_to_skip],
            "skip_dir_regex": options.skip_dir_regex or cfg.skip_dir_regex,
            "use_gitignore": options.use_gitignore or cfg.use_gitignore,
            "max_file_size": options.max_file_size or cfg.max_file_size,
        })

    @staticmethod
    def _resolve_target(target: str) -> Path:
        """Resolve relative targets to absolute scan roots; the target must exist."""
        root = Path(target or ".").expanduser().resolve()
        if not root.exists():
            raise ScanError(f"target does not exist: {target}")
        return root

    @staticmethod
    def _load_result(path: Path, model: type[_R]) -> _R:
        try:
            raw = path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ScanError(f"scanner produced no result: {exc}") from exc
        try:
            result = model.model_validate_json(raw)
        except ValidationError as exc:
            raise ScanError(f"unreadable scan result: {exc}") from exc
        if result.status.status == "FAILED":
            raise ScanError(result.status.failure_reason or "scan failed")
        return result

    async def _run(self, cmd: list[str], env: dict[str, str] | None = None) -> None:
        """Run the scanner; raise :class:`ScanError` on spawn failure or non-zero exit."""
        logger.debug("Running scanner: %s", shlex.join(cmd))
        timeout = self._settings.timeout

        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=env,
            )
        except OSError as exc:
            raise ScanError(f"cannot run {cmd[0]}: {exc}") from exc

        try:
            _, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
        except TimeoutError:
            with suppress(ProcessLookupError):
                proc.kill()
            await proc.wait()
            raise ScanTimeoutError(timeout)
        except asyncio.CancelledError:
            with suppress(ProcessLookupError):
                proc.kill()
            await asyncio.shield(proc.wait())
            raise

        if proc.returncode != 0:
            detail = stderr.decode(errors="replace").strip() if stderr else ""
            raise ScanError(detail or f"{cmd[0]} exited with status {proc.returncode}")
