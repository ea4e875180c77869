"""HTTP transport: JSON-RPC and streamed tool calls over Starlette/uvicorn."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any, Awaitable, Callable

import uvicorn
from starlette.applications import Starlette
from starlette.requests import Request
from starlette.responses import Response
from starlette.routing import Route

from peragus.lib import oj
from peragus.mcp.protocol.errors import (
    INVALID_PARAMS,
    NOT_FOUND,
    SERVER_CLOSED,
    MCPError,
)
from peragus.mcp.protocol.messages import JSONRPCResponse
from peragus.mcp.transport.base import EventSource, ResponseChannel
from peragus.mcp.transport.types import HTTPConfig, TransportEventType

if TYPE_CHECKING:
    from peragus.mcp.server import NotebookMCPServer

logger = logging.getLogger(__name__)

ASGISend = Callable[[dict[str, Any]], Awaitable[None]]

ERROR_STATUS = {
    NOT_FOUND: 404,
    INVALID_PARAMS: 400,
    SERVER_CLOSED: 503,
}


class ASGIResponseChannel(ResponseChannel):
    """ResponseChannel writing an ASGI http.response.* message sequence."""

    def __init__(self, send: ASGISend):
        super().__init__()
        self._send = send

    async def _send_head(self, status: int, headers: dict[str, str]) -> None:
        await self._send(
            {
                "type": "http.response.start",
                "status": status,
                "headers": [
                    (name.lower().encode("latin-1"), value.encode("latin-1"))
                    for name, value in headers.items()
                ],
            }
        )

    async def _send_chunk(self, data: bytes) -> None:
        await self._send({"type": "http.response.body", "body": data, "more_body": True})

    async def _send_end(self) -> None:
        try:
            await self._send({"type": "http.response.body", "body": b"", "more_body": False})
        except OSError as e:
            logger.debug(f"Client went away before end of response: {e}")


def _json(data: Any, status_code: int = 200) -> Response:
    return Response(oj.dumps(data), status_code=status_code, media_type="application/json")


def _rpc_error(error: MCPError, status_code: int = 400) -> Response:
    return _json(JSONRPCResponse.from_error(None, error).to_dict(), status_code)


class ToolCallEndpoint:
    """
    Raw ASGI endpoint for ``POST /tools/{name}``.

    The request body is the JSON arguments object. Streamed tool results
    are written straight to the ASGI ``send`` callable as they are
    produced; everything else comes back as one JSON document.
    """

    def __init__(self, server: NotebookMCPServer):
        self.server = server

    async def __call__(self, scope, receive, send) -> None:
        request = Request(scope, receive)
        name = request.path_params["name"]

        body = await request.body()
        try:
            arguments = oj.loads(body) if body.strip() else {}
        except oj.JSONDecodeError as e:
            await _rpc_error(MCPError.parse_error(str(e)))(scope, receive, send)
            return
        if not isinstance(arguments, dict):
            error = MCPError.invalid_request("arguments must be a JSON object")
            await _rpc_error(error)(scope, receive, send)
            return

        channel = ASGIResponseChannel(send)
        channel.on_event(lambda event: logger.debug(f"/tools/{name} {event}"))

        try:
            result = await self.server.invoke_tool(name, arguments, channel)
        except Exception as e:
            logger.exception(f"Unhandled error serving /tools/{name}")
            self.server.report_fault(e, "transport", name)
            if channel.headers_sent:
                await channel.end()
            else:
                await _rpc_error(MCPError.internal_error(str(e)), 500)(scope, receive, send)
            return

        if channel.headers_sent:
            await channel.end()
            return

        status_code = 200
        if result.error is not None:
            status_code = ERROR_STATUS.get(result.error.code, 500)
        await _json(result.to_dict(), status_code)(scope, receive, send)


def create_app(server: NotebookMCPServer, config: HTTPConfig | None = None) -> Starlette:
    """
    Build the ASGI application for server.

    Routes:
        POST {config.path}: JSON-RPC 2.0 (single message or batch).
        POST /tools/{name}: Direct tool call, streamed when the tool streams.
        GET /health: Liveness and basic counters.

    The server is closed when the application shuts down.
    """
    config = config or HTTPConfig()

    async def handle_rpc(request: Request) -> Response:
        body = await request.body()
        try:
            payload = oj.loads(body)
        except oj.JSONDecodeError as e:
            return _rpc_error(MCPError.parse_error(str(e)))

        response = await server.handle_payload(payload)
        if response is None:
            return Response(status_code=202)
        return _json(response)

    async def health(request: Request) -> Response:
        return _json(
            {
                "status": "closed" if server.is_closed else "healthy",
                "server": server.server_info.to_dict(),
                "sessions": len(server.store),
            }
        )

    @asynccontextmanager
    async def lifespan(app: Starlette):
        logger.info(f"HTTP endpoint ready at {config.path}")
        yield
        server.close()

    routes = [
        Route(config.path, handle_rpc, methods=["POST"]),
        Route("/tools/{name}", ToolCallEndpoint(server), methods=["POST"]),
        Route("/health", health, methods=["GET"]),
    ]
    return Starlette(routes=routes, lifespan=lifespan)


class HTTPTransport(EventSource):
    """
    Serves a NotebookMCPServer over HTTP with uvicorn.

    Usage:
        transport = HTTPTransport(server, HTTPConfig(port=2150))
        await transport.serve()
    """

    def __init__(self, server: NotebookMCPServer, config: HTTPConfig | None = None):
        super().__init__()
        self.server = server
        self.config = config or HTTPConfig()
        self.app = create_app(server, self.config)
        self._uvicorn: uvicorn.Server | None = None

    @property
    def is_running(self) -> bool:
        """Check if uvicorn is serving."""
        return self._uvicorn is not None and not self._uvicorn.should_exit

    async def serve(self) -> None:
        """Serve until stop() is called or the process is interrupted."""
        uvicorn_config = uvicorn.Config(
            self.app,
            host=self.config.host,
            port=self.config.port,
            log_level="warning",
        )
        self._uvicorn = uvicorn.Server(uvicorn_config)
        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

        logger.info(f"Serving on http://{self.config.host}:{self.config.port}")
        self._emit_event(
            TransportEventType.STARTED,
            {"host": self.config.host, "port": self.config.port},
        )
        try:
            await self._uvicorn.serve()
        except Exception as e:
            self._emit_event(TransportEventType.ERROR, error=e)
            self.server.report_fault(e, "transport")
            raise
        finally:
            self._uvicorn = None
            self._emit_event(TransportEventType.STOPPED)

    def stop(self) -> None:
        """Ask uvicorn to shut down."""
        if self._uvicorn is not None:
            self._uvicorn.should_exit = True
