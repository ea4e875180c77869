"""
MCP Transport Layer.

Response channels, chunk streaming, and the HTTP and stdio transports.
"""

from peragus.mcp.transport.types import (
    DEFAULT_STREAM_HEADERS,
    HTTPConfig,
    StreamOptions,
    TransportEvent,
    TransportEventType,
)
from peragus.mcp.transport.base import (
    EventSource,
    HeadersAlreadySent,
    HeadersNotSent,
    ResponseChannel,
    TransportError,
)
from peragus.mcp.transport.streaming import is_producer, stream_response
from peragus.mcp.transport.http import ASGIResponseChannel, HTTPTransport, create_app
from peragus.mcp.transport.stdio import StdioTransport

__all__ = [
    "DEFAULT_STREAM_HEADERS",
    "HTTPConfig",
    "StreamOptions",
    "TransportEvent",
    "TransportEventType",
    "EventSource",
    "HeadersAlreadySent",
    "HeadersNotSent",
    "ResponseChannel",
    "TransportError",
    "is_producer",
    "stream_response",
    "ASGIResponseChannel",
    "HTTPTransport",
    "create_app",
    "StdioTransport",
]
