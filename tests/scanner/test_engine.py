"""Tests for ScalibrEngine.  The scanner binary is never executed."""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from secagent.config import ScannerSettings
from secagent.scanner.engine import (
    HARDEN_PLUGINS,
    SCA_PLUGINS,
    ScalibrEngine,
    ScanEngine,
    plugin_names,
    plugin_names_for_mode,
)
from secagent.scanner.errors import ImageLoadError, SBOMExportError, ScanError, ScanTimeoutError
from secagent.scanner.image import ContainerImage, ImageSource
from secagent.scanner.models import ImageScanOptions, ScanMode, ScanOptions

_RESULT = {
    "version": "1",
    "status": {"status": "SUCCEEDED"},
    "inventory": {"packages": [{"name": "flask", "version": "3.0.0", "ecosystem": "PyPI"}]},
}


def _flag(cmd: list[str], flag: str) -> str:
    return cmd[cmd.index(flag) + 1]


def _writes_result(payload: dict[str, Any] | None = None) -> AsyncMock:
    """A fake ``_run`` that writes the scanner's JSON result where asked."""

    async def fake_run(cmd: list[str], env: dict[str, str] | None = None) -> None:
        Path(_flag(cmd, "--result")).write_text(json.dumps(payload or _RESULT))

    return AsyncMock(side_effect=fake_run)


class TestPluginSelection:
    def test_modes(self) -> None:
        assert plugin_names_for_mode(ScanMode.SCA) == SCA_PLUGINS
        assert plugin_names_for_mode(ScanMode.SECRETS) == ["secrets"]
        assert plugin_names_for_mode(ScanMode.FULL) == [*SCA_PLUGINS, "secrets"]
        assert plugin_names_for_mode(ScanMode.HARDEN) == HARDEN_PLUGINS

    def test_returns_fresh_list(self) -> None:
        plugin_names_for_mode(ScanMode.SCA).append("x")
        assert "x" not in SCA_PLUGINS

    def test_enrichers(self) -> None:
        options = ScanOptions(
            mode=ScanMode.SECRETS,
            extra_plugins=["custom"],
            with_osv_match=True,
            with_reachability=True,
            with_secret_validation=True,
            with_license_enrichment=True,
        )
        assert plugin_names(options) == [
            "secrets", "custom", "vulnmatch", "reachability", "secretsvalidate", "license/depsdev",
        ]


class TestScalibrEngine:
    def test_satisfies_protocol(self) -> None:
        assert isinstance(ScalibrEngine(), ScanEngine)

    async def test_scan_loads_result(self, tmp_path: Path) -> None:
        engine = ScalibrEngine()
        with patch.object(ScalibrEngine, "_run", _writes_result()) as mock_run:
            result = await engine.scan(ScanOptions(target=str(tmp_path), with_osv_match=True))

        assert result.packages[0].name == "flask"
        cmd = mock_run.await_args.args[0]
        assert cmd[0] == "scalibr"
        assert _flag(cmd, "--root") == str(tmp_path.resolve())
        assert "vulnmatch" in _flag(cmd, "--plugins").split(",")

    async def test_missing_target(self) -> None:
        with pytest.raises(ScanError, match="target does not exist"):
            await ScalibrEngine().scan(ScanOptions(target="/no/such/target/xyz"))

    async def test_failed_status(self, tmp_path: Path) -> None:
        payload = {"status": {"status": "FAILED", "failureReason": "extractor crashed"}}
        with patch.object(ScalibrEngine, "_run", _writes_result(payload)):
            with pytest.raises(ScanError, match="extractor crashed"):
                await ScalibrEngine().scan(ScanOptions(target=str(tmp_path)))

    async def test_missing_result_file(self, tmp_path: Path) -> None:
        with patch.object(ScalibrEngine, "_run", AsyncMock()):
            with pytest.raises(ScanError, match="no result"):
                await ScalibrEngine().scan(ScanOptions(target=str(tmp_path)))

    async def test_unreadable_result(self, tmp_path: Path) -> None:
        async def bad_run(cmd: list[str], env: dict[str, str] | None = None) -> None:
            Path(_flag(cmd, "--result")).write_text("{not json")

        with patch.object(ScalibrEngine, "_run", AsyncMock(side_effect=bad_run)):
            with pytest.raises(ScanError, match="unreadable scan result"):
                await ScalibrEngine().scan(ScanOptions(target=str(tmp_path)))

    def test_settings_merged_into_command(self, tmp_path: Path) -> None:
        settings = ScannerSettings(
            binary="/opt/scalibr",
            extra_plugins=["custom"],
            dirs_to_skip=["node_modules"],
            skip_dir_regex=r"\.venv",
            use_gitignore=True,
            max_file_size=1024,
        )
        engine = ScalibrEngine(settings)
        merged = engine._merge_settings(ScanOptions(target=str(tmp_path)))
        cmd = engine.build_scan_command(tmp_path, merged, tmp_path / "r.json")

        assert cmd[0] == "/opt/scalibr"
        assert "custom" in _flag(cmd, "--plugins").split(",")
        assert _flag(cmd, "--skip-dirs") == "node_modules"
        assert _flag(cmd, "--skip-dir-regex") == r"\.venv"
        assert "--use-gitignore" in cmd
        assert _flag(cmd, "--max-file-size") == "1024"

    def test_invalid_skip_regex(self, tmp_path: Path) -> None:
        options = ScanOptions(skip_dir_regex="([")
        with pytest.raises(ScanError, match="invalid skip-dir-regex"):
            ScalibrEngine().build_scan_command(tmp_path, options, tmp_path / "r.json")


class TestScanImage:
    async def test_scans_and_releases(self) -> None:
        engine = ScalibrEngine()
        with patch.object(ScalibrEngine, "_run", _writes_result()) as mock_run:
            async with engine.scan_image(ImageScanOptions(image_ref="gcr.io/p/img:1")) as result:
                image = result.image
                assert image is not None
                assert image.workdir.is_dir()
                assert not image.cleaned

        assert image.cleaned
        assert not image.workdir.exists()
        cmd = mock_run.await_args.args[0]
        assert _flag(cmd, "--remote-image") == "gcr.io/p/img:1"
        assert "vulnmatch" in _flag(cmd, "--plugins").split(",")
        assert mock_run.await_args.kwargs["env"]["TMPDIR"] == str(image.workdir)

    async def test_releases_on_failure(self) -> None:
        staged: list[ContainerImage] = []
        real_stage = ContainerImage.stage

        def tracking_stage(ref: str, source: ImageSource | None = None) -> ContainerImage:
            image = real_stage(ref, source)
            staged.append(image)
            return image

        with (
            patch.object(ContainerImage, "stage", side_effect=tracking_stage),
            patch.object(ScalibrEngine, "_run", AsyncMock(side_effect=ScanError("MANIFEST_UNKNOWN"))),
        ):
            with pytest.raises(ImageLoadError, match="MANIFEST_UNKNOWN"):
                async with ScalibrEngine().scan_image(ImageScanOptions(image_ref="gcr.io/x/y")):
                    pass

        assert staged[0].cleaned

    async def test_local_falls_back_to_remote(self) -> None:
        calls: list[list[str]] = []

        async def fake_run(cmd: list[str], env: dict[str, str] | None = None) -> None:
            calls.append(cmd)
            if "--image-local-docker" in cmd:
                raise ScanError("no such image")
            Path(_flag(cmd, "--result")).write_text(json.dumps(_RESULT))

        with patch.object(ScalibrEngine, "_run", AsyncMock(side_effect=fake_run)):
            async with ScalibrEngine().scan_image(ImageScanOptions(image_ref="myapp")) as result:
                assert result.image is not None
                assert result.image.source is ImageSource.REMOTE

        assert "--image-local-docker" in calls[0]
        assert "--remote-image" in calls[1]

    async def test_timeout_is_not_retried(self) -> None:
        mock_run = AsyncMock(side_effect=ScanTimeoutError(1))
        with patch.object(ScalibrEngine, "_run", mock_run):
            with pytest.raises(ScanTimeoutError):
                async with ScalibrEngine().scan_image(ImageScanOptions(image_ref="myapp")):
                    pass
        assert mock_run.await_count == 1


class TestExportSBOM:
    @pytest.mark.parametrize(
        ("fmt", "output_format", "flag"),
        [("spdx", "spdx23-json", "--spdx-document-name"), ("cdx", "cdx-json", "--cdx-component-name")],
    )
    async def test_exports_document(self, tmp_path: Path, fmt: str, output_format: str, flag: str) -> None:
        async def fake_run(cmd: list[str], env: dict[str, str] | None = None) -> None:
            output = _flag(cmd, "--o")
            assert output.startswith(f"{output_format}=")
            Path(output.split("=", 1)[1]).write_text('{"doc": true}')

        with patch.object(ScalibrEngine, "_run", AsyncMock(side_effect=fake_run)) as mock_run:
            document = await ScalibrEngine().export_sbom(str(tmp_path), fmt)  # type: ignore[arg-type]

        assert document == '{"doc": true}'
        assert flag in mock_run.await_args.args[0]

    async def test_missing_document(self, tmp_path: Path) -> None:
        with patch.object(ScalibrEngine, "_run", AsyncMock()):
            with pytest.raises(SBOMExportError):
                await ScalibrEngine().export_sbom(str(tmp_path), "spdx")

    async def test_unsupported_format(self, tmp_path: Path) -> None:
        with pytest.raises(SBOMExportError, match="unsupported"):
            await ScalibrEngine().export_sbom(str(tmp_path), "xml")  # type: ignore[arg-type]


def _proc(returncode: int = 0, stderr: bytes = b"") -> MagicMock:
    proc = MagicMock()
    proc.returncode = returncode
    proc.communicate = AsyncMock(return_value=(b"", stderr))
    proc.wait = AsyncMock(return_value=returncode)
    proc.kill = MagicMock()
    return proc


class TestRun:
    async def test_success(self) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_proc())) as mock_exec:
            await ScalibrEngine()._run(["scalibr", "--root", "/"])
        assert mock_exec.await_args.args == ("scalibr", "--root", "/")

    async def test_nonzero_exit(self) -> None:
        proc = _proc(returncode=1, stderr=b"permission denied\n")
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(ScanError, match="permission denied"):
                await ScalibrEngine()._run(["scalibr"])

    async def test_nonzero_exit_without_stderr(self) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=_proc(returncode=3))):
            with pytest.raises(ScanError, match="exited with status 3"):
                await ScalibrEngine()._run(["scalibr"])

    async def test_binary_missing(self) -> None:
        with patch("asyncio.create_subprocess_exec", AsyncMock(side_effect=FileNotFoundError("scalibr"))):
            with pytest.raises(ScanError, match="cannot run scalibr"):
                await ScalibrEngine()._run(["scalibr"])

    async def test_timeout_kills_process(self) -> None:
        proc = _proc()

        async def hang() -> tuple[bytes, bytes]:
            await asyncio.sleep(10)
            return b"", b""

        proc.communicate = AsyncMock(side_effect=hang)
        engine = ScalibrEngine(ScannerSettings(timeout=0.01))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(ScanTimeoutError):
                await engine._run(["scalibr"])
        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()

    async def test_cancellation_kills_process(self) -> None:
        proc = _proc()
        started = asyncio.Event()

        async def hang() -> tuple[bytes, bytes]:
            started.set()
            await asyncio.sleep(10)
            return b"", b""

        proc.communicate = AsyncMock(side_effect=hang)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            task = asyncio.create_task(ScalibrEngine()._run(["scalibr"]))
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        proc.kill.assert_called_once()
        proc.wait.assert_awaited_once()

    async def test_cancellation_after_exit_still_reaps(self) -> None:
        proc = _proc()
        proc.kill.side_effect = ProcessLookupError
        started = asyncio.Event()

        async def hang() -> tuple[bytes, bytes]:
            started.set()
            await asyncio.sleep(10)
            return b"", b""

        proc.communicate = AsyncMock(side_effect=hang)
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            task = asyncio.create_task(ScalibrEngine()._run(["scalibr"]))
            await started.wait()
            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task
        proc.wait.assert_awaited_once()

    async def test_timeout_after_exit_still_raises_timeout(self) -> None:
        proc = _proc()
        proc.kill.side_effect = ProcessLookupError

        async def hang() -> tuple[bytes, bytes]:
            await asyncio.sleep(10)
            return b"", b""

        proc.communicate = AsyncMock(side_effect=hang)
        engine = ScalibrEngine(ScannerSettings(timeout=0.01))
        with patch("asyncio.create_subprocess_exec", AsyncMock(return_value=proc)):
            with pytest.raises(ScanTimeoutError):
                await engine._run(["scalibr"])
