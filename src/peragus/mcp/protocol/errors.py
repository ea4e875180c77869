"""Error taxonomy shared by the server, tools and transports."""

from dataclasses import dataclass
from typing import Any

# JSON-RPC 2.0 reserved codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603

# Server-defined codes (-32000 to -32099)
NOT_FOUND = -32002
CHANNEL_CLOSED = -32010
UPSTREAM_FAILURE = -32011
SERVER_CLOSED = -32012

DEFAULT_MESSAGES = {
    PARSE_ERROR: "Parse error",
    INVALID_REQUEST: "Invalid Request",
    INTERNAL_ERROR: "Internal error",
    CHANNEL_CLOSED: "Channel closed",
    SERVER_CLOSED: "Server closed",
}


@dataclass
class MCPError(Exception):
    """
    An error that can travel to the client as a JSON-RPC error object.

    Every failure the server reports (in a ToolResult, a JSON-RPC
    response or an error hook) is an MCPError or a subclass.
    """

    code: int
    message: str
    data: dict[str, Any] | None = None

    def __post_init__(self):
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        """JSON-RPC error object."""
        wire: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.data is not None:
            wire["data"] = self.data
        return wire

    @classmethod
    def _detailed(cls, code: int, details: str | None) -> "MCPError":
        return cls(
            code=code,
            message=DEFAULT_MESSAGES[code],
            data={"details": details} if details else None,
        )

    @classmethod
    def parse_error(cls, details: str | None = None) -> "MCPError":
        return cls._detailed(PARSE_ERROR, details)

    @classmethod
    def invalid_request(cls, details: str | None = None) -> "MCPError":
        return cls._detailed(INVALID_REQUEST, details)

    @classmethod
    def method_not_found(cls, method: str) -> "MCPError":
        return cls(METHOD_NOT_FOUND, f"Method not found: {method}", {"method": method})

    @classmethod
    def internal_error(cls, details: str | None = None) -> "MCPError":
        return cls(INTERNAL_ERROR, details or DEFAULT_MESSAGES[INTERNAL_ERROR])

    def __str__(self) -> str:
        return f"[{self.code}] {self.message}"

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.code}, {self.message!r})"


class NotFound(MCPError):
    """Unknown tool, resource or session."""

    def __init__(self, kind: str, name: str):
        super().__init__(
            code=NOT_FOUND,
            message=f"{kind.capitalize()} not found: {name}",
            data={"kind": kind, "name": name},
        )


class InvalidArguments(MCPError):
    """Tool arguments do not match the declared input schema."""

    def __init__(self, tool: str, details: str):
        super().__init__(
            code=INVALID_PARAMS,
            message=f"Invalid arguments for {tool}: {details}",
            data={"tool": tool, "details": details},
        )


class ChannelClosed(MCPError):
    """A write was attempted on a response channel that has already ended."""

    def __init__(self, details: str | None = None):
        super().__init__(
            code=CHANNEL_CLOSED,
            message=details or DEFAULT_MESSAGES[CHANNEL_CLOSED],
        )


class UpstreamFailure(MCPError):
    """The chunk producer raised while its output was being streamed."""

    def __init__(self, cause: BaseException, chunks_written: int = 0):
        super().__init__(
            code=UPSTREAM_FAILURE,
            message=f"Producer failed after {chunks_written} chunk(s): {cause}",
            data={"chunksWritten": chunks_written},
        )
        self.cause = cause
        self.chunks_written = chunks_written


class ServerClosed(MCPError):
    """Operation attempted on a server that has been closed."""

    def __init__(self, operation: str | None = None):
        message = DEFAULT_MESSAGES[SERVER_CLOSED]
        if operation:
            message = f"{message}: cannot {operation}"
        super().__init__(code=SERVER_CLOSED, message=message)
