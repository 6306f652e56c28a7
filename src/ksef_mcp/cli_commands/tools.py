"""``ksef-mcp tools`` — inspect the catalog and run single tool calls."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import click
from rich.markup import escape

from ksef_mcp.cli_commands._output import err_console, print_tools_table
from ksef_mcp.config import ConfigError, ServerConfig
from ksef_mcp.protocol.models import ToolCallResult


@click.group()
def tools() -> None:
    """Inspect and call KSeF tools."""


@tools.command("list")
@click.option("--json", "as_json", is_flag=True, help="Print the tools/list payload as JSON.")
def list_tools(as_json: bool) -> None:
    """List the tools advertised by the server."""
    from ksef_mcp.tools.registry import tool_definitions

    definitions = tool_definitions()
    if as_json:
        click.echo(json.dumps({"tools": [d.to_wire() for d in definitions]}, indent=2))
        return
    print_tools_table(definitions)


@tools.command("call")
@click.argument("name")
@click.option("--args", "args_json", default="{}", help="Tool arguments as a JSON object.")
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file.",
)
@click.option("--base-url", default=None, help="KSeF API base URL.")
@click.option("--token", default=None, help="KSeF session access token.")
def call_tool(
    name: str,
    args_json: str,
    config_path: Path | None,
    base_url: str | None,
    token: str | None,
) -> None:
    """Run tool NAME once and print its output.

    Exits with status 1 when the tool result is an error.
    """
    try:
        arguments: Any = json.loads(args_json)
    except json.JSONDecodeError as exc:
        raise click.BadParameter(f"not valid JSON: {exc}", param_hint="--args") from exc
    if not isinstance(arguments, dict):
        raise click.BadParameter("must be a JSON object", param_hint="--args")

    try:
        config = ServerConfig.load(config_path, base_url=base_url, session_token=token)
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    result = asyncio.run(_call(config, name, arguments))

    if result.is_error:
        err_console.print(f"[red]Tool error:[/red] {escape(result.joined_text)}")
        sys.exit(1)
    click.echo(result.joined_text)


async def _call(config: ServerConfig, name: str, arguments: dict[str, Any]) -> ToolCallResult:
    from ksef_mcp.tools.dispatcher import ToolDispatcher

    async with config.create_client() as client:
        return await ToolDispatcher(client).call(name, arguments)
