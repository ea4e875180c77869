"""Server side of the MCP initialize handshake."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from peragus.mcp.capabilities.server import ServerCapabilities

logger = logging.getLogger(__name__)

# Protocol version constants
PROTOCOL_VERSION = "2025-06-18"
SUPPORTED_VERSIONS = ["2025-06-18", "2025-03-26", "2024-11-05"]


@dataclass
class ServerInfo:
    """Name and version this server reports."""

    name: str = "peragus-mcp-server"
    version: str = "0.1.0"

    def to_dict(self) -> dict[str, str]:
        """Convert to wire format."""
        return {"name": self.name, "version": self.version}


@dataclass
class ClientInfo:
    """Information a client sent in its initialize request."""

    name: str
    version: str

    @classmethod
    def from_dict(cls, data: dict | None) -> "ClientInfo":
        """Create from the clientInfo object of an initialize request."""
        data = data or {}
        return cls(
            name=data.get("name", "unknown"),
            version=data.get("version", "unknown"),
        )


def negotiate_version(requested: str | None) -> str:
    """
    Pick the protocol version to answer with.

    A supported requested version is echoed back; anything else gets the
    latest version this server speaks, leaving the client to decide
    whether to continue.
    """
    if requested in SUPPORTED_VERSIONS:
        return requested
    logger.warning(
        f"Client requested unsupported protocol version {requested!r}, "
        f"offering {PROTOCOL_VERSION}"
    )
    return PROTOCOL_VERSION


def build_initialize_result(
    params: dict[str, Any] | None,
    server_info: ServerInfo,
    capabilities: ServerCapabilities,
    instructions: str | None = None,
) -> dict[str, Any]:
    """
    Build the result of an initialize request.

    Args:
        params: Request params (protocolVersion, capabilities, clientInfo).
        server_info: This server's name and version.
        capabilities: Capabilities to advertise.
        instructions: Optional usage hint for the client.

    Returns:
        The initialize result object.
    """
    params = params or {}
    client = ClientInfo.from_dict(params.get("clientInfo"))
    version = negotiate_version(params.get("protocolVersion"))
    logger.info(f"Initialize from {client.name}/{client.version}, protocol {version}")

    result: dict[str, Any] = {
        "protocolVersion": version,
        "capabilities": capabilities.to_dict(),
        "serverInfo": server_info.to_dict(),
    }
    if instructions:
        result["instructions"] = instructions
    return result
