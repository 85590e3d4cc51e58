"""Tests for ``secagent serve`` CLI command."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import AsyncMock, patch

from click.testing import CliRunner

from secagent.cli import main
from secagent.protocols.errors import RecordTooLargeError


class TestServe:
    def test_runs_stdio_loop(self) -> None:
        with patch("secagent.protocols.mcp.server.run_stdio", new_callable=AsyncMock) as mock_run:
            result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 0
        mock_run.assert_awaited_once()
        config = mock_run.await_args.args[0]
        assert config.server_name == "secagent-scalibr"

    def test_loads_config_file(self, tmp_path: Path) -> None:
        path = tmp_path / "secagent.yaml"
        path.write_text("server_name: custom\nscanner:\n  binary: /opt/scalibr\n")
        with patch("secagent.protocols.mcp.server.run_stdio", new_callable=AsyncMock) as mock_run:
            result = CliRunner().invoke(main, ["serve", "--config", str(path)])

        assert result.exit_code == 0
        config = mock_run.await_args.args[0]
        assert config.server_name == "custom"
        assert config.scanner.binary == "/opt/scalibr"

    def test_invalid_config(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("- not a mapping\n")
        with patch("secagent.protocols.mcp.server.run_stdio", new_callable=AsyncMock) as mock_run:
            result = CliRunner().invoke(main, ["serve", "--config", str(path)])

        assert result.exit_code == 1
        assert "Config error" in result.output
        mock_run.assert_not_awaited()

    def test_transport_error_exits_nonzero(self) -> None:
        with patch(
            "secagent.protocols.mcp.server.run_stdio",
            AsyncMock(side_effect=RecordTooLargeError(1024)),
        ):
            result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 1
        assert "Transport error" in result.output

    def test_telemetry_flag(self) -> None:
        with (
            patch("secagent.protocols.mcp.server.run_stdio", new_callable=AsyncMock),
            patch("secagent.utils.telemetry.configure_telemetry") as mock_configure,
        ):
            result = CliRunner().invoke(main, ["serve", "--telemetry"])

        assert result.exit_code == 0
        mock_configure.assert_called_once_with(service_name="secagent-scalibr", otlp_endpoint=None)

    def test_telemetry_off_by_default(self) -> None:
        with (
            patch("secagent.protocols.mcp.server.run_stdio", new_callable=AsyncMock),
            patch("secagent.utils.telemetry.configure_telemetry") as mock_configure,
        ):
            result = CliRunner().invoke(main, ["serve"])

        assert result.exit_code == 0
        mock_configure.assert_not_called()


class TestVersion:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert "secagent" in result.output
        assert "1.0.0" in result.output
