"""Response channel contract and transport error types."""

import logging
import time
from abc import ABC, abstractmethod
from typing import Any, Callable

from peragus.mcp.protocol.errors import ChannelClosed
from peragus.mcp.transport.types import TransportEvent, TransportEventType

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Base exception for transport errors."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(message)
        self.cause = cause


class HeadersAlreadySent(TransportError):
    """write_head() called on a channel whose headers are committed."""

    pass


class HeadersNotSent(TransportError):
    """write() called before write_head()."""

    pass


class EventSource:
    """Mixin providing on_event()/_emit_event() for observability."""

    def __init__(self) -> None:
        self._event_handlers: list[Callable[[TransportEvent], None]] = []

    def on_event(self, handler: Callable[[TransportEvent], None]) -> None:
        """
        Register an event handler for transport events.

        Args:
            handler: Callback invoked when transport events occur.
        """
        self._event_handlers.append(handler)

    def _emit_event(
        self,
        type: TransportEventType,
        data: dict[str, Any] | None = None,
        error: Exception | None = None,
    ) -> None:
        """Emit an event to all registered handlers."""
        event = TransportEvent(type=type, timestamp=time.time(), data=data, error=error)
        for handler in self._event_handlers:
            try:
                handler(event)
            except Exception:
                logger.exception(f"Transport event handler failed for {event}")


class ResponseChannel(EventSource, ABC):
    """
    An open HTTP-style response.

    Headers are committed exactly once, before any body chunk. After
    end() the channel is closed for good: further writes raise
    ChannelClosed and further end() calls are no-ops.

    Subclasses implement the three ``_send_*`` hooks; the public methods
    enforce the ordering rules.
    """

    def __init__(self) -> None:
        super().__init__()
        self._headers_sent = False
        self._closed = False
        self.status: int | None = None

    @property
    def headers_sent(self) -> bool:
        """True once write_head() has completed."""
        return self._headers_sent

    @property
    def closed(self) -> bool:
        """True once end() has been called."""
        return self._closed

    async def write_head(self, status: int, headers: dict[str, str]) -> None:
        """
        Commit status and headers.

        Raises:
            ChannelClosed: If the channel has ended.
            HeadersAlreadySent: If headers were committed before.
        """
        if self._closed:
            raise ChannelClosed("Cannot write headers to a closed channel")
        if self._headers_sent:
            raise HeadersAlreadySent("Response headers already sent")

        await self._send_head(status, headers)
        self._headers_sent = True
        self.status = status
        self._emit_event(TransportEventType.HEADERS_SENT, {"status": status})

    async def write(self, chunk: str | bytes) -> None:
        """
        Write one body chunk.

        Raises:
            ChannelClosed: If the channel has ended or the peer went away.
            HeadersNotSent: If write_head() has not been called.
        """
        if self._closed:
            raise ChannelClosed("Cannot write to a closed channel")
        if not self._headers_sent:
            raise HeadersNotSent("write() called before write_head()")

        data = chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)
        try:
            await self._send_chunk(data)
        except OSError as e:
            self._closed = True
            self._emit_event(TransportEventType.CHANNEL_CLOSED, error=e)
            raise ChannelClosed(f"Peer went away: {e}") from e
        self._emit_event(TransportEventType.CHUNK_WRITTEN, {"size": len(data)})

    async def end(self) -> None:
        """Terminate the response. Safe to call more than once."""
        if self._closed:
            return
        self._closed = True
        await self._send_end()
        self._emit_event(TransportEventType.CHANNEL_CLOSED)

    @abstractmethod
    async def _send_head(self, status: int, headers: dict[str, str]) -> None:
        """Deliver status and headers to the peer."""
        pass

    @abstractmethod
    async def _send_chunk(self, data: bytes) -> None:
        """Deliver one body chunk to the peer."""
        pass

    @abstractmethod
    async def _send_end(self) -> None:
        """Signal end of body to the peer."""
        pass
