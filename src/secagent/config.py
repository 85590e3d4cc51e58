"""Server configuration — identity, transport limits, scanner settings.

Configuration is optional: every field has a default, and a YAML file can
override any subset of them::

    server_name: secagent-scalibr
    max_record_size: 1048576
    scanner:
      binary: ${SCALIBR_BIN}
      timeout: 900
      dirs_to_skip: [node_modules, .venv]
    telemetry:
      enabled: true
      otlp_endpoint: http://localhost:4317
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError


class ConfigError(Exception):
    """Raised when a config file cannot be read, parsed, or validated."""


class TelemetrySettings(BaseModel):
    """Optional telemetry configuration."""

    enabled: bool = False
    otlp_endpoint: str | None = None


class ScannerSettings(BaseModel):
    """How the scanner binary is invoked."""

    binary: str = Field(default="scalibr", description="Scanner executable name or path.")
    timeout: float = Field(default=600.0, gt=0, description="Max seconds per scanner run.")
    extra_plugins: list[str] = Field(default_factory=list, description="Plugins added to every scan.")
    dirs_to_skip: list[str] = Field(default_factory=list, description="Directories excluded from scans.")
    skip_dir_regex: str = Field(default="", description="Regex of directories to exclude.")
    use_gitignore: bool = Field(default=False, description="Skip files listed in .gitignore.")
    max_file_size: int = Field(default=0, ge=0, description="Skip files larger than this (0 = no limit).")


class ServerConfig(BaseModel):
    """Top-level server configuration."""

    server_name: str = "secagent-scalibr"
    server_version: str = "1.0.0"
    protocol_version: str = "2024-11-05"
    max_record_size: int = Field(default=1024 * 1024, gt=0)
    report_max_chars: int = Field(default=50_000, gt=0)
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "WARNING"
    scanner: ScannerSettings = Field(default_factory=ScannerSettings)
    telemetry: TelemetrySettings = Field(default_factory=TelemetrySettings)


class ConfigLoader:
    """Load and validate a config YAML file into a :class:`ServerConfig`."""

    def __init__(self, path: Path | None = None) -> None:
        self._path = path

    def load(self) -> ServerConfig:
        """Read YAML, interpolate env vars, and validate.

        With no path the defaults are returned.  Environment variables in the
        form ``${VAR}`` or ``$VAR`` are expanded with :func:`os.path.expandvars`
        before parsing; an empty file yields the defaults.

        Raises:
            ConfigError: On read errors, YAML parse errors or schema validation failures.
        """
        if self._path is None:
            return ServerConfig()

        try:
            raw = self._path.read_text(encoding="utf-8")
        except OSError as exc:
            raise ConfigError(f"Cannot read {self._path}: {exc}") from exc

        expanded = os.path.expandvars(raw)

        try:
            data: Any = yaml.safe_load(expanded)
        except yaml.YAMLError as exc:
            raise ConfigError(f"YAML parse error: {exc}") from exc

        if data is None:
            return ServerConfig()
        if not isinstance(data, dict):
            raise ConfigError("Config YAML must be a mapping")

        try:
            return ServerConfig.model_validate(data)
        except ValidationError as exc:
            raise ConfigError(str(exc)) from exc
