"""secagent CLI entrypoint."""

from __future__ import annotations

import click

from secagent import __version__


@click.group()
@click.version_option(version=__version__, prog_name="secagent")
def main() -> None:
    """secagent — SCALIBR security scans as MCP tools."""


# Register subcommands
from secagent.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
