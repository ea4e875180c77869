"""JSON-RPC 2.0 framing for the server side of MCP."""

from dataclasses import dataclass, field
from typing import Any

from peragus.mcp.protocol.errors import MCPError

JSONRPC_VERSION = "2.0"

RequestId = str | int


@dataclass
class JSONRPCRequest:
    """An inbound call that must be answered with a JSONRPCResponse."""

    id: RequestId
    method: str
    params: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.method}#{self.id}"


@dataclass
class JSONRPCNotification:
    """An inbound message with no id. Never answered."""

    method: str
    params: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        return f"{self.method} (notification)"


@dataclass
class JSONRPCResponse:
    """Answer to a request: exactly one of result or error goes on the wire."""

    id: RequestId | None
    result: Any = None
    error: MCPError | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict[str, Any]:
        """Wire form of the response."""
        if self.error is not None:
            return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "error": self.error.to_dict()}
        return {"jsonrpc": JSONRPC_VERSION, "id": self.id, "result": self.result}

    @classmethod
    def success(cls, id: RequestId | None, result: Any = None) -> "JSONRPCResponse":
        return cls(id=id, result=result)

    @classmethod
    def from_error(cls, id: RequestId | None, error: MCPError) -> "JSONRPCResponse":
        return cls(id=id, error=error)


def parse_message(data: Any) -> JSONRPCRequest | JSONRPCNotification:
    """
    Validate a decoded client message.

    Args:
        data: Decoded JSON value.

    Returns:
        A request when the message has an id, otherwise a notification.

    Raises:
        MCPError: INVALID_REQUEST when the message is malformed.
    """
    if not isinstance(data, dict):
        raise MCPError.invalid_request("message must be an object")
    if data.get("jsonrpc") != JSONRPC_VERSION:
        raise MCPError.invalid_request("Invalid JSON-RPC version")

    method = data.get("method")
    if not isinstance(method, str) or not method:
        raise MCPError.invalid_request("method must be a non-empty string")

    params = data.get("params")
    if params is None:
        params = {}
    elif not isinstance(params, dict):
        raise MCPError.invalid_request("params must be an object")

    if "id" not in data:
        return JSONRPCNotification(method=method, params=params)

    request_id = data["id"]
    # bool is an int subclass
    if isinstance(request_id, bool) or not isinstance(request_id, (str, int)):
        raise MCPError.invalid_request("id must be a string or integer")

    return JSONRPCRequest(id=request_id, method=method, params=params)
