"""Peragus notebook sessions and their MCP endpoint."""

__version__ = "0.1.0"
