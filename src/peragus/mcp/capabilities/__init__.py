"""
MCP Capability Negotiation.

Builds the server half of the initialize handshake.
"""

from peragus.mcp.capabilities.server import (
    ServerCapabilities,
    DEFAULT_SERVER_CAPABILITIES,
)
from peragus.mcp.capabilities.negotiation import (
    ClientInfo,
    ServerInfo,
    PROTOCOL_VERSION,
    SUPPORTED_VERSIONS,
    build_initialize_result,
    negotiate_version,
)

__all__ = [
    "ServerCapabilities",
    "DEFAULT_SERVER_CAPABILITIES",
    "ClientInfo",
    "ServerInfo",
    "PROTOCOL_VERSION",
    "SUPPORTED_VERSIONS",
    "build_initialize_result",
    "negotiate_version",
]
