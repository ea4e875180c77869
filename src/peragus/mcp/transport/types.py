"""Transport layer types and configuration."""

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any

DEFAULT_STREAM_HEADERS: dict[str, str] = {
    "Content-Type": "text/plain",
    "Transfer-Encoding": "chunked",
}


class TransportEventType(Enum):
    """Types of transport events for observability."""

    STARTED = auto()
    STOPPED = auto()
    HEADERS_SENT = auto()
    CHUNK_WRITTEN = auto()
    CHANNEL_CLOSED = auto()
    MESSAGE_RECEIVED = auto()
    MESSAGE_SENT = auto()
    ERROR = auto()


@dataclass
class TransportEvent:
    """Event emitted by transports and response channels for observability."""

    type: TransportEventType
    timestamp: float
    data: dict[str, Any] | None = None
    error: Exception | None = None

    def __str__(self) -> str:
        base = f"[{self.type.name}]"
        if self.data:
            base += f" {self.data}"
        if self.error:
            base += f" error={self.error}"
        return base


@dataclass
class StreamOptions:
    """Options for streaming a producer into a response channel."""

    status: int = 200
    """HTTP status code committed with the headers."""

    headers: dict[str, str] = field(default_factory=dict)
    """Extra response headers, merged over DEFAULT_STREAM_HEADERS."""

    def __post_init__(self) -> None:
        """Validate options."""
        if not 100 <= self.status <= 599:
            raise ValueError(f"status must be a valid HTTP status code, got {self.status}")

    def response_headers(self) -> dict[str, str]:
        """
        Default framing headers with the extra headers applied.

        Header names compare case-insensitively, so ``content-type`` in
        ``headers`` replaces the default ``Content-Type``.
        """
        merged = dict(DEFAULT_STREAM_HEADERS)
        for name, value in self.headers.items():
            for existing in [k for k in merged if k.lower() == name.lower()]:
                del merged[existing]
            merged[name] = value
        return merged


@dataclass
class HTTPConfig:
    """Configuration for the HTTP transport."""

    host: str = "127.0.0.1"
    """Interface to bind."""

    port: int = 2150
    """TCP port to listen on."""

    path: str = "/mcp"
    """Route accepting JSON-RPC POSTs."""

    def __post_init__(self) -> None:
        """Validate configuration."""
        if not self.host:
            raise ValueError("host is required")
        if not 0 < self.port < 65536:
            raise ValueError("port must be between 1 and 65535")
        if not self.path.startswith("/"):
            raise ValueError("path must start with '/'")
