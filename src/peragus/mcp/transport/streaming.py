"""Stream a lazily produced body into a response channel."""

from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterable, AsyncIterator, Iterable, Union

from peragus.mcp.protocol.errors import UpstreamFailure
from peragus.mcp.transport.base import ResponseChannel
from peragus.mcp.transport.types import StreamOptions

logger = logging.getLogger(__name__)

Chunk = Union[str, bytes]
Producer = Union[AsyncIterable[Chunk], Iterable[Chunk]]


def is_producer(value: object) -> bool:
    """
    Check whether a handler result is a chunk producer.

    Strings, bytes and containers holding structured data are single
    values, not producers.
    """
    if isinstance(value, (str, bytes, bytearray, dict, list, tuple)):
        return False
    return hasattr(value, "__aiter__") or hasattr(value, "__next__")


async def _iterate_sync(iterable: Iterable[Chunk]) -> AsyncIterator[Chunk]:
    iterator = iter(iterable)
    try:
        for chunk in iterator:
            yield chunk
    finally:
        close = getattr(iterator, "close", None)
        if close is not None:
            close()


def _as_async_iterator(producer: Producer) -> AsyncIterator[Chunk]:
    if hasattr(producer, "__aiter__"):
        return producer.__aiter__()
    return _iterate_sync(producer).__aiter__()


async def _aclose(iterator: AsyncIterator[Chunk]) -> None:
    aclose = getattr(iterator, "aclose", None)
    if aclose is None:
        return
    try:
        await aclose()
    except Exception:
        logger.exception("Error closing producer")


async def _end_quietly(channel: ResponseChannel) -> None:
    try:
        await channel.end()
    except Exception:
        logger.exception("Error ending response channel after stream failure")


async def stream_response(
    producer: Producer,
    channel: ResponseChannel,
    options: StreamOptions | None = None,
) -> int:
    """
    Write every chunk of producer to channel, then end the channel.

    Headers (DEFAULT_STREAM_HEADERS merged with ``options.headers``) are
    committed once before the first chunk is requested. Each chunk is
    written and awaited before the next one is pulled, so chunks reach
    the channel one at a time in producer order.

    The producer is consumed exactly once. Nothing is buffered, so a
    producer cannot be replayed after a failure.

    Args:
        producer: Sync or async iterable of str/bytes chunks.
        channel: Open response channel whose headers are not yet sent.
        options: Status code and extra headers.

    Returns:
        Number of chunks written.

    Raises:
        UpstreamFailure: The producer raised. The channel has been ended
            and the original exception is chained as ``__cause__``.
        ChannelClosed: The channel was closed before a write. The
            producer has been closed.
    """
    options = options or StreamOptions()
    iterator = _as_async_iterator(producer)
    written = 0
    try:
        await channel.write_head(options.status, options.response_headers())
        while True:
            try:
                chunk = await anext(iterator)
                if not isinstance(chunk, (str, bytes)):
                    raise TypeError(
                        f"Producer yielded {type(chunk).__name__}, expected str or bytes"
                    )
            except StopAsyncIteration:
                break
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.warning(f"Producer failed after {written} chunk(s): {e}")
                await _end_quietly(channel)
                raise UpstreamFailure(e, written) from e

            await channel.write(chunk)
            written += 1
    except asyncio.CancelledError:
        logger.debug(f"Stream abandoned after {written} chunk(s)")
        await _aclose(iterator)
        await _end_quietly(channel)
        raise
    except UpstreamFailure:
        await _aclose(iterator)
        raise
    except Exception as e:
        logger.warning(f"Channel failed after {written} chunk(s): {e}")
        await _aclose(iterator)
        await _end_quietly(channel)
        raise

    await channel.end()
    logger.debug(f"Streamed {written} chunk(s)")
    return written
