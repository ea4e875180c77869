"""Tests for the stdio transport."""

import asyncio
import io

import pytest

from peragus.lib import oj
from peragus.mcp.protocol.errors import PARSE_ERROR
from peragus.mcp.transport import StdioTransport, TransportEventType


def feed(*lines: bytes) -> asyncio.StreamReader:
    reader = asyncio.StreamReader()
    for line in lines:
        reader.feed_data(line)
    reader.feed_eof()
    return reader


def responses(output: io.BytesIO) -> list:
    return [oj.loads(line) for line in output.getvalue().splitlines()]


class TestStdioTransport:
    """Tests for StdioTransport."""

    @pytest.mark.asyncio
    async def test_request_answered_on_one_line(self, server):
        output = io.BytesIO()
        transport = StdioTransport(
            server,
            reader=feed(b'{"jsonrpc": "2.0", "method": "ping", "id": 7}\n'),
            output=output,
        )

        await transport.serve()

        assert responses(output) == [{"jsonrpc": "2.0", "id": 7, "result": {}}]
        assert not transport.is_running

    @pytest.mark.asyncio
    async def test_notifications_and_blank_lines_produce_no_output(self, server):
        output = io.BytesIO()
        transport = StdioTransport(
            server,
            reader=feed(b"\n", b'{"jsonrpc": "2.0", "method": "notifications/initialized"}\n'),
            output=output,
        )

        await transport.serve()

        assert output.getvalue() == b""

    @pytest.mark.asyncio
    async def test_parse_error(self, server):
        output = io.BytesIO()
        transport = StdioTransport(server, reader=feed(b"not json\n"), output=output)

        await transport.serve()

        [response] = responses(output)
        assert response["id"] is None
        assert response["error"]["code"] == PARSE_ERROR

    @pytest.mark.asyncio
    async def test_tool_call_round_trip(self, server, store):
        output = io.BytesIO()
        call = {
            "jsonrpc": "2.0",
            "id": 1,
            "method": "tools/call",
            "params": {"name": "create_notebook", "arguments": {"title": "Over stdio"}},
        }
        transport = StdioTransport(server, reader=feed(oj.dumps(call) + b"\n"), output=output)

        await transport.serve()

        [response] = responses(output)
        assert response["result"]["isError"] is False
        assert [s.title for s in store.get_open_sessions()] == ["Over stdio"]

    @pytest.mark.asyncio
    async def test_events(self, server):
        events = []
        transport = StdioTransport(
            server,
            reader=feed(b'{"jsonrpc": "2.0", "method": "ping", "id": 1}\n'),
            output=io.BytesIO(),
        )
        transport.on_event(lambda e: events.append(e.type))

        await transport.serve()

        assert events == [
            TransportEventType.STARTED,
            TransportEventType.MESSAGE_RECEIVED,
            TransportEventType.MESSAGE_SENT,
            TransportEventType.STOPPED,
        ]

    @pytest.mark.asyncio
    async def test_broken_output_reported(self, server, faults):
        output = io.BytesIO()
        output.close()
        transport = StdioTransport(
            server,
            reader=feed(
                b'{"jsonrpc": "2.0", "method": "ping", "id": 1}\n',
                b'{"jsonrpc": "2.0", "method": "ping", "id": 2}\n',
            ),
            output=output,
        )

        await transport.serve()

        assert len(faults) == 1
        assert faults[0].source == "transport"
