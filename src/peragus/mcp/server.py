"""Discovery and invocation server for notebook sessions."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable

from peragus.mcp.capabilities import (
    DEFAULT_SERVER_CAPABILITIES,
    ServerCapabilities,
    ServerInfo,
    build_initialize_result,
)
from peragus.mcp.config import ServerConfig
from peragus.mcp.log_level import apply_level, parse_level
from peragus.mcp.protocol.errors import (
    ChannelClosed,
    InvalidArguments,
    MCPError,
    NotFound,
    ServerClosed,
    UpstreamFailure,
)
from peragus.mcp.protocol.messages import (
    JSONRPCNotification,
    JSONRPCResponse,
    parse_message,
)
from peragus.mcp.protocol.state import ServerState, ServerStateMachine
from peragus.mcp.resources import ResourceDescriptor, SessionResourceProvider
from peragus.mcp.tools import ToolDescriptor, ToolRegistry, ToolResult, register_notebook_tools
from peragus.mcp.transport.base import ResponseChannel
from peragus.mcp.transport.streaming import is_producer, stream_response
from peragus.mcp.transport.types import StreamOptions
from peragus.sessions.store import SessionNotFound, SessionStore

logger = logging.getLogger(__name__)

RequestHandler = Callable[[dict[str, Any]], Awaitable[Any]]


@dataclass
class Fault:
    """A fault that could not be returned to the call that caused it."""

    error: Exception
    source: str
    """Where it happened: "stream", "tool" or "transport"."""

    tool: str | None = None
    timestamp: float = field(default_factory=time.time)

    def __str__(self) -> str:
        where = f"{self.source}:{self.tool}" if self.tool else self.source
        return f"Fault({where}) {type(self.error).__name__}: {self.error}"


ErrorHook = Callable[[Fault], None]


class NotebookMCPServer:
    """
    One MCP endpoint exposing notebook sessions.

    Lifecycle: CONSTRUCTED -> READY -> CLOSED. Use create() to get a
    READY server. After close() every operation fails with ServerClosed,
    except close() itself which becomes a no-op.

    Failures attributable to a single invoke_tool() call are returned in
    its ToolResult. Faults with no caller left to receive them (a
    producer failing after headers went out, a broken response channel,
    transport errors) go to the error hooks registered with on_error().
    """

    def __init__(
        self,
        store: SessionStore,
        config: ServerConfig | None = None,
        capabilities: ServerCapabilities | None = None,
    ):
        self.store = store
        self.config = config or ServerConfig()
        self.server_info = ServerInfo(name=self.config.name, version=self.config.version)
        self.capabilities = capabilities or DEFAULT_SERVER_CAPABILITIES

        self._state = ServerStateMachine()
        self._tools = ToolRegistry()
        self._resources: SessionResourceProvider | None = None
        self._handlers: dict[str, RequestHandler] = {}
        self._error_hooks: list[ErrorHook] = []

    @classmethod
    def create(
        cls,
        store: SessionStore,
        config: ServerConfig | None = None,
        error_hook: ErrorHook | None = None,
    ) -> "NotebookMCPServer":
        """
        Build a READY server.

        Args:
            store: Session store backing tools and resources.
            config: Server configuration.
            error_hook: Optional receiver for unattributable faults.

        Returns:
            The server, with its tool and resource registries populated.
        """
        server = cls(store, config)
        if error_hook is not None:
            server.on_error(error_hook)
        server._setup()
        return server

    def _setup(self) -> None:
        try:
            register_notebook_tools(self._tools, self.store)
            self._tools.freeze()
            self._resources = SessionResourceProvider(self.store)
            self._register_handlers()
        except Exception:
            self._state.transition(ServerState.CLOSED)
            raise

        self._state.transition(ServerState.READY)
        logger.info(
            f"{self.server_info.name} ready with {len(self._tools)} tools "
            f"({', '.join(t.name for t in self._tools)}), "
            f"advertising {', '.join(self.capabilities.features)}"
        )

    @property
    def state(self) -> ServerState:
        """Current lifecycle state."""
        return self._state.state

    @property
    def is_closed(self) -> bool:
        """True once close() has run."""
        return self._state.is_closed

    def on_error(self, hook: ErrorHook) -> None:
        """
        Register a receiver for faults not tied to a single invocation.

        Args:
            hook: Called with a Fault. Exceptions it raises are logged.
        """
        self._error_hooks.append(hook)

    def report_fault(self, error: Exception, source: str, tool: str | None = None) -> None:
        """Deliver a fault to the error hooks (or the log if there are none)."""
        fault = Fault(error=error, source=source, tool=tool)
        if not self._error_hooks:
            logger.error(str(fault))
            return
        for hook in self._error_hooks:
            try:
                hook(fault)
            except Exception:
                logger.exception(f"Error hook failed while reporting {fault}")

    def _require_ready(self, operation: str) -> None:
        if not self._state.is_ready:
            raise ServerClosed(operation)

    # -- Discovery -----------------------------------------------------------

    def list_tools(self) -> list[ToolDescriptor]:
        """
        All registered tools in registration order.

        Raises:
            ServerClosed: If the server was closed.
        """
        self._require_ready("list tools")
        return self._tools.list()

    def list_resources(self) -> list[ResourceDescriptor]:
        """
        Resources for the current set of open sessions.

        Recomputed from the session store on every call.

        Raises:
            ServerClosed: If the server was closed.
        """
        self._require_ready("list resources")
        return self._resources.list()

    def read_resource(self, uri: str) -> list[dict[str, Any]]:
        """
        Read a resource by URI.

        Raises:
            NotFound: If the URI names no known resource.
            ServerClosed: If the server was closed.
        """
        self._require_ready("read resources")
        return self._resources.read(uri)

    # -- Invocation ----------------------------------------------------------

    async def invoke_tool(
        self,
        name: str,
        arguments: dict[str, Any] | None = None,
        channel: ResponseChannel | None = None,
        options: StreamOptions | None = None,
    ) -> ToolResult:
        """
        Invoke a tool by exact name.

        Never raises for NotFound, InvalidArguments or ServerClosed; the
        returned ToolResult carries the error instead.

        When the handler produces a chunk sequence and ``channel`` is
        given, the chunks are streamed to the channel and the result is
        marked ``streamed``. Without a channel the sequence is drained
        once into a single text result.

        Args:
            name: Tool name.
            arguments: Tool arguments, validated against the input schema.
            channel: Optional open response channel for streamed results.
            options: Status and headers for streamed results.

        Returns:
            The invocation outcome.
        """
        if not self._state.is_ready:
            return ToolResult.failure(ServerClosed("invoke tools"))

        arguments = {} if arguments is None else arguments
        try:
            descriptor = self._tools.get(name)
            self._tools.validate(name, arguments)
        except MCPError as e:
            logger.info(f"Rejected call to {name}: {e.message}")
            return ToolResult.failure(e)

        logger.debug(f"Invoking {name} with {arguments}")
        try:
            value = await descriptor.handler(dict(arguments))
        except MCPError as e:
            return ToolResult.failure(e)
        except SessionNotFound as e:
            return ToolResult.failure(NotFound("session", e.session_id))
        except ValueError as e:
            return ToolResult.failure(InvalidArguments(name, str(e)))
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            self.report_fault(e, "tool", name)
            return ToolResult.failure(MCPError.internal_error(f"Tool {name} failed: {e}"))

        return await self._deliver(name, value, channel, options)

    async def _deliver(
        self,
        name: str,
        value: Any,
        channel: ResponseChannel | None,
        options: StreamOptions | None,
    ) -> ToolResult:
        if isinstance(value, ToolResult):
            return value

        if not is_producer(value):
            if isinstance(value, str):
                return ToolResult.of_text(value)
            return ToolResult.of_data(value)

        if channel is None:
            return await self._drain(name, value)

        try:
            chunks = await stream_response(value, channel, options)
        except (UpstreamFailure, ChannelClosed) as e:
            self.report_fault(e, "stream", name)
            return ToolResult(
                content=[{"type": "text", "text": e.message}],
                error=e,
                streamed=channel.headers_sent,
            )
        except Exception as e:
            logger.exception(f"Streaming {name} failed")
            self.report_fault(e, "stream", name)
            return ToolResult(
                content=[{"type": "text", "text": str(e)}],
                error=MCPError.internal_error(f"Streaming {name} failed: {e}"),
                streamed=channel.headers_sent,
            )

        return ToolResult(streamed=True, chunks=chunks)

    async def _drain(self, name: str, producer: Any) -> ToolResult:
        parts: list[str] = []
        try:
            if hasattr(producer, "__aiter__"):
                async for chunk in producer:
                    parts.append(_as_text(chunk))
            else:
                for chunk in producer:
                    parts.append(_as_text(chunk))
        except Exception as e:
            logger.warning(f"Producer for {name} failed after {len(parts)} chunk(s): {e}")
            failure = UpstreamFailure(e, len(parts))
            failure.__cause__ = e
            return ToolResult.failure(failure)

        return ToolResult(content=[{"type": "text", "text": "".join(parts)}], chunks=len(parts))

    # -- Lifecycle -----------------------------------------------------------

    def close(self) -> None:
        """
        Close the server and release its registries.

        Idempotent: closing a closed server does nothing.
        """
        if self._state.is_closed:
            return

        self._state.transition(ServerState.CLOSED)
        self._tools.clear()
        self._resources = None
        self._handlers.clear()
        logger.info(f"{self.server_info.name} closed")

    async def __aenter__(self) -> "NotebookMCPServer":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    # -- JSON-RPC surface ----------------------------------------------------

    def _register_handlers(self) -> None:
        self._handlers = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "tools/list": self._handle_list_tools,
            "tools/call": self._handle_call_tool,
            "resources/list": self._handle_list_resources,
            "resources/read": self._handle_read_resource,
        }
        if self.capabilities.logging:
            self._handlers["logging/setLevel"] = self._handle_set_level

    async def handle_payload(self, payload: Any) -> dict[str, Any] | list[dict[str, Any]] | None:
        """
        Handle a decoded JSON-RPC payload (single message or batch).

        Returns:
            The response, a list of responses for a batch, or None when
            nothing needs to be sent back.
        """
        if isinstance(payload, list):
            if not payload:
                return JSONRPCResponse.from_error(
                    None, MCPError.invalid_request("empty batch")
                ).to_dict()
            responses = []
            for message in payload:
                response = await self.handle_message(message)
                if response is not None:
                    responses.append(response)
            return responses or None
        return await self.handle_message(payload)

    async def handle_message(self, message: Any) -> dict[str, Any] | None:
        """
        Handle one JSON-RPC message.

        Returns:
            Response dict for requests, None for notifications.
        """
        try:
            parsed = parse_message(message)
        except MCPError as e:
            request_id = message.get("id") if isinstance(message, dict) else None
            return JSONRPCResponse.from_error(request_id, e).to_dict()

        if isinstance(parsed, JSONRPCNotification):
            logger.debug(f"Received {parsed}")
            return None

        if not self._state.is_ready:
            return JSONRPCResponse.from_error(parsed.id, ServerClosed(parsed.method)).to_dict()

        handler = self._handlers.get(parsed.method)
        if handler is None:
            return JSONRPCResponse.from_error(
                parsed.id, MCPError.method_not_found(parsed.method)
            ).to_dict()

        try:
            result = await handler(parsed.params)
        except MCPError as e:
            return JSONRPCResponse.from_error(parsed.id, e).to_dict()
        except Exception as e:
            logger.exception(f"Error handling {parsed.method}")
            self.report_fault(e, "transport")
            return JSONRPCResponse.from_error(parsed.id, MCPError.internal_error(str(e))).to_dict()

        return JSONRPCResponse.success(parsed.id, result).to_dict()

    async def _handle_initialize(self, params: dict[str, Any]) -> dict[str, Any]:
        return build_initialize_result(
            params, self.server_info, self.capabilities, self.config.instructions
        )

    async def _handle_ping(self, params: dict[str, Any]) -> dict[str, Any]:
        return {}

    async def _handle_list_tools(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"tools": [tool.to_dict() for tool in self.list_tools()]}

    async def _handle_call_tool(self, params: dict[str, Any]) -> dict[str, Any]:
        name = params.get("name")
        if not isinstance(name, str):
            raise MCPError.invalid_request("tools/call requires a string 'name'")
        arguments = params.get("arguments")
        result = await self.invoke_tool(name, {} if arguments is None else arguments)
        return result.to_dict()

    async def _handle_list_resources(self, params: dict[str, Any]) -> dict[str, Any]:
        return {"resources": [r.to_dict() for r in self.list_resources()]}

    async def _handle_read_resource(self, params: dict[str, Any]) -> dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str):
            raise MCPError.invalid_request("resources/read requires a string 'uri'")
        return {"contents": self.read_resource(uri)}

    async def _handle_set_level(self, params: dict[str, Any]) -> dict[str, Any]:
        apply_level(parse_level(params.get("level")))
        return {}


def _as_text(chunk: str | bytes) -> str:
    if isinstance(chunk, bytes):
        return chunk.decode("utf-8", errors="replace")
    if not isinstance(chunk, str):
        raise TypeError(f"Producer yielded {type(chunk).__name__}, expected str or bytes")
    return chunk
