"""``ksef-mcp serve`` — run the MCP server on stdin/stdout."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import click

from ksef_mcp.cli_commands._output import configure_logging, err_console
from ksef_mcp.config import ConfigError, ServerConfig

logger = logging.getLogger(__name__)

_LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


@click.command()
@click.option(
    "--config",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="YAML configuration file.",
)
@click.option("--base-url", default=None, help="KSeF API base URL (default: test environment).")
@click.option("--token", default=None, help="KSeF session access token.")
@click.option("--timeout", type=float, default=None, help="HTTP timeout in seconds.")
@click.option(
    "--log-level",
    type=click.Choice(_LOG_LEVELS, case_sensitive=False),
    default=None,
    help="Log level for stderr output.",
)
@click.option("--telemetry", is_flag=True, help="Export OpenTelemetry spans to stderr.")
def serve(
    config_path: Path | None,
    base_url: str | None,
    token: str | None,
    timeout: float | None,
    log_level: str | None,
    telemetry: bool,
) -> None:
    """Serve KSeF tools over newline-delimited JSON-RPC on stdin/stdout."""
    try:
        config = ServerConfig.load(
            config_path,
            base_url=base_url,
            session_token=token,
            timeout=timeout,
            log_level=log_level,
            telemetry=telemetry or None,
        )
    except ConfigError as exc:
        err_console.print(f"[red]Configuration error:[/red] {exc}")
        sys.exit(1)

    configure_logging(config.log_level)

    if config.telemetry:
        from ksef_mcp.utils.telemetry import configure_telemetry

        try:
            configure_telemetry(otlp_endpoint=config.otlp_endpoint)
        except ImportError as exc:
            err_console.print(f"[red]Telemetry error:[/red] {exc}")
            sys.exit(1)

    asyncio.run(_serve(config))


async def _serve(config: ServerConfig) -> None:
    from ksef_mcp.server.server import MCPServer
    from ksef_mcp.server.transport import StdioTransport

    async with config.create_client() as client:
        logger.info(
            "Serving KSeF API at %s (session token %s)",
            client.base_url,
            "configured" if client.has_session_token else "not configured",
        )
        await MCPServer(client).run(StdioTransport())
