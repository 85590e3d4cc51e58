"""Shared CLI output helpers.

Everything goes to stderr: stdout belongs to the JSON-RPC stream.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from secagent.protocols.mcp.models import MCPToolDef

console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route the ``secagent`` loggers through a stderr RichHandler."""
    handler = RichHandler(console=console, show_path=False, rich_tracebacks=True)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root = logging.getLogger("secagent")
    root.handlers[:] = [handler]
    root.setLevel(level)
    root.propagate = False


def print_tools_table(definitions: list[MCPToolDef]) -> None:
    """Pretty-print tool definitions as a table."""
    table = Table(title="Registered Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Required")
    table.add_column("Description")

    for definition in definitions:
        required = ", ".join(definition.input_schema.get("required", [])) or "-"
        table.add_row(definition.name, required, _truncate(definition.description))

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
