"""Tool catalog and dispatch."""

from ksef_mcp.tools.dispatcher import ToolDispatcher
from ksef_mcp.tools.registry import TOOLS, ToolSpec, get_tool, tool_definitions, tool_names

__all__ = [
    "TOOLS",
    "ToolDispatcher",
    "ToolSpec",
    "get_tool",
    "tool_definitions",
    "tool_names",
]
