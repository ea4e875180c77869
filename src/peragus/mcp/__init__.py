"""
MCP (Model Context Protocol) endpoint for Peragus notebooks.

Exposes open notebook sessions to MCP clients as tools and resources.

Submodules:
- protocol: JSON-RPC 2.0 messages, error taxonomy, server lifecycle
- capabilities: Initialize handshake and server capabilities
- tools: Tool registry and the notebook tool set
- resources: Resources derived from the session store
- transport: Response channels, streaming, HTTP and stdio transports
- server: Discovery and invocation server
- log_level: Client control of server log verbosity
"""

# Protocol layer
from peragus.mcp.protocol import (
    MCPError,
    NotFound,
    InvalidArguments,
    ChannelClosed,
    UpstreamFailure,
    ServerClosed,
    ServerState,
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCNotification,
)

# Capabilities
from peragus.mcp.capabilities import (
    ServerCapabilities,
    ServerInfo,
)

# Tools and resources
from peragus.mcp.tools import ToolDescriptor, ToolRegistry, ToolResult
from peragus.mcp.resources import ResourceDescriptor, SessionResourceProvider

# Transport layer
from peragus.mcp.transport import (
    ResponseChannel,
    ASGIResponseChannel,
    StreamOptions,
    HTTPConfig,
    HTTPTransport,
    StdioTransport,
    TransportError,
    stream_response,
)

# Server
from peragus.mcp.config import ServerConfig, load_server_config
from peragus.mcp.log_level import LogLevel
from peragus.mcp.server import Fault, NotebookMCPServer

__all__ = [
    # Protocol
    "MCPError",
    "NotFound",
    "InvalidArguments",
    "ChannelClosed",
    "UpstreamFailure",
    "ServerClosed",
    "ServerState",
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCNotification",
    # Capabilities
    "ServerCapabilities",
    "ServerInfo",
    # Tools and resources
    "ToolDescriptor",
    "ToolRegistry",
    "ToolResult",
    "ResourceDescriptor",
    "SessionResourceProvider",
    # Transport
    "ResponseChannel",
    "ASGIResponseChannel",
    "StreamOptions",
    "HTTPConfig",
    "HTTPTransport",
    "StdioTransport",
    "TransportError",
    "stream_response",
    # Server
    "ServerConfig",
    "load_server_config",
    "LogLevel",
    "Fault",
    "NotebookMCPServer",
]
