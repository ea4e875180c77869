"""Stdio transport: newline-delimited JSON-RPC over stdin/stdout."""

from __future__ import annotations

import asyncio
import logging
import sys
from typing import TYPE_CHECKING, Any, BinaryIO

from peragus.lib import oj
from peragus.mcp.protocol.errors import MCPError
from peragus.mcp.protocol.messages import JSONRPCResponse
from peragus.mcp.transport.base import EventSource, TransportError
from peragus.mcp.transport.types import TransportEventType

if TYPE_CHECKING:
    from peragus.mcp.server import NotebookMCPServer

logger = logging.getLogger(__name__)


class StdioTransport(EventSource):
    """
    Serves a NotebookMCPServer over stdin/stdout.

    Each input line is one JSON-RPC message (or batch); each response is
    written as one line. Logging must go to stderr while this runs.
    """

    def __init__(
        self,
        server: NotebookMCPServer,
        reader: asyncio.StreamReader | None = None,
        output: BinaryIO | None = None,
    ):
        super().__init__()
        self.server = server
        self._reader = reader
        self._output = output
        self._running = False

    @property
    def is_running(self) -> bool:
        """Check if the read loop is active."""
        return self._running

    async def _open_stdin(self) -> asyncio.StreamReader:
        reader = asyncio.StreamReader()
        loop = asyncio.get_running_loop()
        await loop.connect_read_pipe(lambda: asyncio.StreamReaderProtocol(reader), sys.stdin)
        return reader

    async def serve(self) -> None:
        """Process lines until EOF or stop()."""
        if self._reader is None:
            self._reader = await self._open_stdin()
        if self._output is None:
            self._output = sys.stdout.buffer

        self._running = True
        self._emit_event(TransportEventType.STARTED)
        logger.info("Serving on stdio")
        try:
            while self._running:
                line = await self._reader.readline()
                if not line:
                    break
                if not line.strip():
                    continue
                await self.handle_line(line)
        finally:
            self._running = False
            self._emit_event(TransportEventType.STOPPED)
            logger.info("Stdio transport stopped")

    def stop(self) -> None:
        """Stop after the message in flight."""
        self._running = False
        if self._reader is not None:
            self._reader.feed_eof()

    async def handle_line(self, line: bytes) -> None:
        """Decode, dispatch and answer one input line."""
        self._emit_event(TransportEventType.MESSAGE_RECEIVED, {"size": len(line)})
        try:
            payload = oj.loads(line)
        except oj.JSONDecodeError as e:
            self._write(JSONRPCResponse.from_error(None, MCPError.parse_error(str(e))).to_dict())
            return

        try:
            response = await self.server.handle_payload(payload)
        except Exception as e:
            logger.exception("Error dispatching stdio message")
            self._emit_event(TransportEventType.ERROR, error=e)
            self.server.report_fault(e, "transport")
            response = JSONRPCResponse.from_error(None, MCPError.internal_error(str(e))).to_dict()

        if response is not None:
            self._write(response)

    def _write(self, message: Any) -> None:
        try:
            self._output.write(oj.dumps(message) + b"\n")
            self._output.flush()
        except (OSError, ValueError) as e:
            self._running = False
            error = TransportError(f"Failed to write to stdout: {e}", cause=e)
            self._emit_event(TransportEventType.ERROR, error=error)
            self.server.report_fault(error, "transport")
            return
        self._emit_event(TransportEventType.MESSAGE_SENT)
