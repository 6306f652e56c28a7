"""KSeF MCP server — exposes the KSeF e-invoicing API as MCP tools over stdio."""

from __future__ import annotations

__version__ = "0.1.0"
