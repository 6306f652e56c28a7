"""Shared CLI output formatters and logging setup.

stdout is reserved for protocol frames while ``serve`` runs, so logs and
diagnostics always go through :data:`err_console` (stderr).
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

if TYPE_CHECKING:
    from ksef_mcp.protocol.models import ToolDefinition

console = Console()
err_console = Console(stderr=True)


def configure_logging(level: str) -> None:
    """Route all ``ksef_mcp`` logging to stderr via rich."""
    handler = RichHandler(console=err_console, show_path=False, rich_tracebacks=True)
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[handler],
        force=True,
    )


def print_tools_table(definitions: list[ToolDefinition]) -> None:
    """Pretty-print tool definitions as a table."""
    table = Table(title="KSeF Tools")
    table.add_column("Name", style="cyan")
    table.add_column("Description")
    table.add_column("Required")

    for definition in definitions:
        required = definition.input_schema.get("required", [])
        table.add_row(
            definition.name,
            _truncate(definition.description),
            ", ".join(required) or "-",
        )

    console.print(table)


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[: max_len - 3] + "..."
