"""``secagent tools`` — list and run the scan tools without a client."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click

from secagent.cli_commands._output import console, print_tools_table

_config_option = click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Server config YAML file.",
)


@click.group()
def tools() -> None:
    """Inspect and run the registered tools."""


@tools.command("list")
@_config_option
def list_tools(config_path: str | None) -> None:
    """Show every registered tool."""
    from secagent.protocols.mcp.server import build_dispatcher

    dispatcher = build_dispatcher(_load_config(config_path))
    print_tools_table(dispatcher.registry.definitions())


@tools.command("call")
@click.argument("name")
@click.option("--arg", "-a", "raw_args", multiple=True, help="Tool argument as KEY=VALUE.")
@_config_option
def call(name: str, raw_args: tuple[str, ...], config_path: str | None) -> None:
    """Run tool NAME once and print its report.

    Values are decoded as JSON when they parse (``--arg osv_match=false``),
    otherwise they are passed as strings.
    """
    from secagent.protocols.errors import ProtocolError
    from secagent.protocols.mcp.invoker import ToolInvoker
    from secagent.protocols.mcp.server import build_dispatcher

    try:
        arguments = parse_arguments(raw_args)
    except click.BadParameter as exc:
        console.print(f"[red]Argument error:[/red] {exc.message}")
        sys.exit(2)

    dispatcher = build_dispatcher(_load_config(config_path))
    invoker = ToolInvoker(dispatcher.registry)

    try:
        result = asyncio.run(invoker.invoke({"name": name, "arguments": arguments}))
    except ProtocolError as exc:
        console.print(f"[red]Error {exc.code}:[/red] {exc.message}")
        sys.exit(1)

    click.echo(result.text)
    if result.is_error:
        sys.exit(1)


def parse_arguments(raw_args: tuple[str, ...]) -> dict[str, Any]:
    """Turn ``KEY=VALUE`` pairs into an arguments object."""
    arguments: dict[str, Any] = {}
    for item in raw_args:
        key, sep, value = item.partition("=")
        if not sep or not key:
            msg = f"expected KEY=VALUE, got {item!r}"
            raise click.BadParameter(msg)
        try:
            arguments[key] = json.loads(value)
        except ValueError:
            arguments[key] = value
    return arguments


def _load_config(config_path: str | None) -> Any:
    from secagent.config import ConfigError, ConfigLoader

    try:
        return ConfigLoader(Path(config_path) if config_path else None).load()
    except ConfigError as exc:
        console.print(f"[red]Config error:[/red] {exc}")
        sys.exit(1)
