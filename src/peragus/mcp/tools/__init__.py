"""Tool descriptors, registry and the notebook tool set."""

from peragus.mcp.tools.types import ToolDescriptor, ToolResult, ToolHandler
from peragus.mcp.tools.registry import ToolRegistry, RegistryFrozen
from peragus.mcp.tools.notebooks import register_notebook_tools, search_sessions

__all__ = [
    "ToolDescriptor",
    "ToolResult",
    "ToolHandler",
    "ToolRegistry",
    "RegistryFrozen",
    "register_notebook_tools",
    "search_sessions",
]
