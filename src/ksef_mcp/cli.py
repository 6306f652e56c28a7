"""KSeF MCP CLI entrypoint."""

from __future__ import annotations

import click

from ksef_mcp import __version__


@click.group()
@click.version_option(version=__version__, prog_name="ksef-mcp")
def main() -> None:
    """KSeF MCP — KSeF e-invoicing API tools for MCP hosts."""


# Register subcommands
from ksef_mcp.cli_commands import register_commands  # noqa: E402

register_commands(main)

if __name__ == "__main__":
    main()
