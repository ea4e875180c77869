"""Readable resources exposed by the MCP endpoint."""

from peragus.mcp.resources.types import ResourceDescriptor
from peragus.mcp.resources.provider import (
    SessionResourceProvider,
    INDEX_URI,
    session_uri,
)

__all__ = [
    "ResourceDescriptor",
    "SessionResourceProvider",
    "INDEX_URI",
    "session_uri",
]
