"""Tool descriptor and invocation result types."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from peragus.lib import oj
from peragus.mcp.protocol.errors import MCPError

# Handlers receive validated arguments and return a single value, a
# ToolResult, or a chunk producer (sync or async iterable of str/bytes).
ToolHandler = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass(frozen=True)
class ToolDescriptor:
    """
    A named, schema-validated invocable operation.

    Registered once when the server is built and immutable afterwards.
    """

    name: str
    description: str
    input_schema: dict[str, Any]
    handler: ToolHandler = field(compare=False, repr=False)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the tools/list wire format."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


@dataclass
class ToolResult:
    """
    Outcome of one tool invocation.

    Attributable failures (unknown tool, bad arguments, closed server,
    handler errors) come back here with ``error`` set instead of being
    raised to the caller.
    """

    content: list[dict[str, Any]] = field(default_factory=list)
    """MCP content items."""

    error: MCPError | None = None
    """Failure, if the invocation did not succeed."""

    streamed: bool = False
    """True if the result body went out through a response channel."""

    chunks: int = 0
    """Number of chunks written when streamed."""

    @property
    def is_error(self) -> bool:
        """Check if the invocation failed."""
        return self.error is not None

    @property
    def text(self) -> str:
        """Concatenated text of all text content items."""
        return "".join(
            item.get("text", "") for item in self.content if item.get("type") == "text"
        )

    @classmethod
    def of_text(cls, text: str) -> "ToolResult":
        """Successful result carrying one text item."""
        return cls(content=[{"type": "text", "text": text}])

    @classmethod
    def of_data(cls, data: Any) -> "ToolResult":
        """Successful result carrying a JSON payload as text."""
        return cls.of_text(oj.dumps_str({"success": True, "data": data}, indent=True))

    @classmethod
    def failure(cls, error: MCPError) -> "ToolResult":
        """Failed result describing error."""
        return cls(content=[{"type": "text", "text": error.message}], error=error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to the tools/call wire format."""
        result: dict[str, Any] = {
            "content": self.content,
            "isError": self.is_error,
        }
        if self.error is not None:
            result["error"] = self.error.to_dict()
        return result
