"""``secagent serve`` — run the MCP server on stdio."""

from __future__ import annotations

import asyncio
import sys
from pathlib import Path

import click

from secagent.cli_commands._output import configure_logging, console


@click.command()
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Server config YAML file.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
@click.option("--telemetry", is_flag=True, help="Enable telemetry.")
def serve(config_path: str | None, verbose: bool, telemetry: bool) -> None:
    """Serve the scan tools over MCP (JSON-RPC on stdin/stdout)."""
    from secagent.config import ConfigError, ConfigLoader
    from secagent.protocols.errors import TransportError
    from secagent.protocols.mcp.server import run_stdio
    from secagent.utils.telemetry import configure_from_settings

    try:
        config = ConfigLoader(Path(config_path) if config_path else None).load()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)

    configure_logging("DEBUG" if verbose else config.log_level)

    try:
        configure_from_settings(config.telemetry, service_name=config.server_name, force=telemetry)
    except ImportError as exc:
        console.print(f"[red]Telemetry error:[/red] {exc}")
        sys.exit(1)

    console.print(
        f"{config.server_name} {config.server_version} serving MCP on stdio "
        f"(scanner: {config.scanner.binary})"
    )

    try:
        asyncio.run(run_stdio(config))
    except TransportError as exc:
        console.print(f"[red]Transport error:[/red] {exc}")
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("Interrupted")
