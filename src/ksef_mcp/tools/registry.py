"""Tool registry — the static catalog advertised by ``tools/list``.

Every :class:`ToolSpec` couples a tool name with its argument model and the
single :class:`~ksef_mcp.client.KsefClient` call it performs. The catalog is
built once at import time and never changes.
"""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from ksef_mcp.protocol.models import ToolDefinition
from ksef_mcp.tools.models import (
    ActiveSessionsArgs,
    CloseOnlineSessionArgs,
    ExportStatusArgs,
    InvoiceArgs,
    InvoiceExportArgs,
    InvoiceMetadataArgs,
    NoArguments,
    OnlineSessionArgs,
    SubmitInvoiceArgs,
    TerminateSessionArgs,
    ToolArguments,
)

if TYPE_CHECKING:
    from ksef_mcp.client.client import KsefClient

ToolHandler = Callable[["KsefClient", Any], Awaitable[str]]


@dataclass(frozen=True)
class ToolSpec:
    """One entry of the catalog."""

    name: str
    description: str
    arguments: type[ToolArguments]
    handler: ToolHandler

    def definition(self) -> ToolDefinition:
        return ToolDefinition.create(self.name, self.description, self.arguments.input_schema())


# ---------------------------------------------------------------------------
# Handlers: one client call each
# ---------------------------------------------------------------------------


async def _get_active_sessions(client: KsefClient, args: ActiveSessionsArgs) -> str:
    return await client.get_active_sessions(args.page_size, args.continuation_token)


async def _get_current_session(client: KsefClient, _: NoArguments) -> str:
    return await client.get_current_session()


async def _terminate_session(client: KsefClient, args: TerminateSessionArgs) -> str:
    return await client.terminate_session(args.reference_number)


async def _get_invoice(client: KsefClient, args: InvoiceArgs) -> str:
    return await client.get_invoice(args.ksef_number)


async def _query_invoice_metadata(client: KsefClient, args: InvoiceMetadataArgs) -> str:
    return await client.query_invoice_metadata(
        args.filters(), page_size=args.page_size, page_offset=args.page_offset
    )


async def _create_invoice_export(client: KsefClient, args: InvoiceExportArgs) -> str:
    return await client.create_invoice_export(args.body())


async def _get_export_status(client: KsefClient, args: ExportStatusArgs) -> str:
    return await client.get_export_status(args.reference_number)


async def _create_online_session(client: KsefClient, args: OnlineSessionArgs) -> str:
    return await client.create_online_session(args.body())


async def _close_online_session(client: KsefClient, args: CloseOnlineSessionArgs) -> str:
    return await client.close_online_session(args.reference_number)


async def _submit_invoice(client: KsefClient, args: SubmitInvoiceArgs) -> str:
    return await client.submit_invoice(args.session_reference_number, args.invoice)


async def _get_public_key_certificates(client: KsefClient, _: NoArguments) -> str:
    return await client.get_public_key_certificates()


async def _get_rate_limits(client: KsefClient, _: NoArguments) -> str:
    return await client.get_rate_limits()


# ---------------------------------------------------------------------------
# Catalog
# ---------------------------------------------------------------------------

TOOLS: tuple[ToolSpec, ...] = (
    ToolSpec(
        "get_active_sessions",
        "Get list of active authentication sessions",
        ActiveSessionsArgs,
        _get_active_sessions,
    ),
    ToolSpec(
        "get_current_session",
        "Get information about the current authentication session",
        NoArguments,
        _get_current_session,
    ),
    ToolSpec(
        "terminate_session",
        "Terminate a specific authentication session",
        TerminateSessionArgs,
        _terminate_session,
    ),
    ToolSpec(
        "get_invoice",
        "Get an invoice by its KSeF number",
        InvoiceArgs,
        _get_invoice,
    ),
    ToolSpec(
        "query_invoice_metadata",
        "Query invoice metadata with filtering and pagination",
        InvoiceMetadataArgs,
        _query_invoice_metadata,
    ),
    ToolSpec(
        "create_invoice_export",
        "Create an encrypted export of invoices",
        InvoiceExportArgs,
        _create_invoice_export,
    ),
    ToolSpec(
        "get_export_status",
        "Get status of an invoice export",
        ExportStatusArgs,
        _get_export_status,
    ),
    ToolSpec(
        "create_online_session",
        "Open an online session for interactive invoice submission",
        OnlineSessionArgs,
        _create_online_session,
    ),
    ToolSpec(
        "close_online_session",
        "Close an online session",
        CloseOnlineSessionArgs,
        _close_online_session,
    ),
    ToolSpec(
        "submit_invoice",
        "Submit an invoice XML document to an open online session",
        SubmitInvoiceArgs,
        _submit_invoice,
    ),
    ToolSpec(
        "get_public_key_certificates",
        "Get Ministry of Finance public key certificates",
        NoArguments,
        _get_public_key_certificates,
    ),
    ToolSpec(
        "get_rate_limits",
        "Get current API rate limits",
        NoArguments,
        _get_rate_limits,
    ),
)

_BY_NAME: dict[str, ToolSpec] = {tool.name: tool for tool in TOOLS}

if len(_BY_NAME) != len(TOOLS):  # pragma: no cover
    msg = "duplicate tool name in catalog"
    raise RuntimeError(msg)


def get_tool(name: str) -> ToolSpec | None:
    """Look a tool up by name."""
    return _BY_NAME.get(name)


def tool_names() -> list[str]:
    return [tool.name for tool in TOOLS]


def tool_definitions() -> list[ToolDefinition]:
    """Return the catalog as ``tools/list`` entries, in catalog order."""
    return [tool.definition() for tool in TOOLS]
