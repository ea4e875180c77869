"""
MCP Protocol Core.

Implements JSON-RPC 2.0 message framing, the error taxonomy, and the
server lifecycle state machine.
"""

from peragus.mcp.protocol.messages import (
    JSONRPCRequest,
    JSONRPCResponse,
    JSONRPCNotification,
    parse_message,
)
from peragus.mcp.protocol.errors import (
    MCPError,
    NotFound,
    InvalidArguments,
    ChannelClosed,
    UpstreamFailure,
    ServerClosed,
    PARSE_ERROR,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    INVALID_PARAMS,
    INTERNAL_ERROR,
    NOT_FOUND,
    CHANNEL_CLOSED,
    UPSTREAM_FAILURE,
    SERVER_CLOSED,
)
from peragus.mcp.protocol.state import (
    ServerState,
    ServerStateMachine,
    InvalidStateTransition,
)

__all__ = [
    # Messages
    "JSONRPCRequest",
    "JSONRPCResponse",
    "JSONRPCNotification",
    "parse_message",
    # Errors
    "MCPError",
    "NotFound",
    "InvalidArguments",
    "ChannelClosed",
    "UpstreamFailure",
    "ServerClosed",
    "PARSE_ERROR",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "INVALID_PARAMS",
    "INTERNAL_ERROR",
    "NOT_FOUND",
    "CHANNEL_CLOSED",
    "UPSTREAM_FAILURE",
    "SERVER_CLOSED",
    # State
    "ServerState",
    "ServerStateMachine",
    "InvalidStateTransition",
]
