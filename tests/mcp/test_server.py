"""Tests for NotebookMCPServer discovery and invocation."""

import pytest

from peragus.lib import oj
from peragus.mcp.protocol.errors import (
    CHANNEL_CLOSED,
    INTERNAL_ERROR,
    INVALID_PARAMS,
    METHOD_NOT_FOUND,
    NOT_FOUND,
    SERVER_CLOSED,
    UPSTREAM_FAILURE,
    ServerClosed,
)
from peragus.mcp.protocol.state import ServerState
from peragus.mcp.server import Fault, NotebookMCPServer
from peragus.mcp.tools import ToolResult
from peragus.mcp.transport import StreamOptions

EXPECTED_TOOLS = [
    "create_notebook",
    "list_notebooks",
    "get_notebook",
    "update_notebook",
    "update_project_config",
    "search_notebooks",
    "export_notebook",
    "close_notebook",
    "delete_notebook",
]


def data_of(result: ToolResult):
    return oj.loads(result.text)["data"]


class TestLifecycle:
    """Tests for server construction and close()."""

    def test_create_is_ready(self, server):
        assert server.state == ServerState.READY

    def test_constructor_alone_is_not_ready(self, store):
        server = NotebookMCPServer(store)
        assert server.state == ServerState.CONSTRUCTED
        with pytest.raises(ServerClosed):
            server.list_tools()

    def test_close_twice_is_noop(self, server):
        server.close()
        server.close()
        assert server.state == ServerState.CLOSED

    def test_discovery_after_close_raises(self, server):
        server.close()
        with pytest.raises(ServerClosed):
            server.list_tools()
        with pytest.raises(ServerClosed):
            server.list_resources()
        with pytest.raises(ServerClosed):
            server.read_resource("notebooks://index")

    @pytest.mark.asyncio
    async def test_invoke_after_close_returns_error(self, server):
        server.close()
        result = await server.invoke_tool("list_notebooks", {})
        assert result.is_error
        assert result.error.code == SERVER_CLOSED

    @pytest.mark.asyncio
    async def test_async_context_manager_closes(self, store):
        async with NotebookMCPServer.create(store) as server:
            assert server.state == ServerState.READY
        assert server.is_closed


class TestDiscovery:
    """Tests for list_tools() and list_resources()."""

    def test_tools_in_registration_order(self, server):
        assert [tool.name for tool in server.list_tools()] == EXPECTED_TOOLS

    def test_tools_stable_across_calls(self, server):
        assert server.list_tools() == server.list_tools()

    def test_descriptors_carry_schemas(self, server):
        for tool in server.list_tools():
            assert tool.description
            assert tool.input_schema["type"] == "object"

    def test_resources_follow_open_sessions(self, server, store):
        assert server.list_resources() == []

        first = store.open_session("First")
        second = store.open_session("Second")
        uris = [r.uri for r in server.list_resources()]
        assert uris == [f"notebook://{first.id}", f"notebook://{second.id}"]

        store.close_session(first.id)
        uris = [r.uri for r in server.list_resources()]
        assert f"notebook://{first.id}" not in uris
        assert f"notebook://{second.id}" in uris

    def test_read_session_resource(self, server, store):
        session = store.open_session("Readable")

        [content] = server.read_resource(f"notebook://{session.id}")

        assert content["mimeType"] == "application/json"
        assert oj.loads(content["text"])["title"] == "Readable"


class TestInvokeTool:
    """Tests for invoke_tool()."""

    @pytest.mark.asyncio
    async def test_unknown_tool(self, server):
        result = await server.invoke_tool("nonexistent_tool", {})

        assert result.is_error
        assert result.error.code == NOT_FOUND
        assert "nonexistent_tool" in result.error.message

    @pytest.mark.asyncio
    async def test_invalid_arguments(self, server):
        result = await server.invoke_tool("create_notebook", {"title": 5})

        assert result.is_error
        assert result.error.code == INVALID_PARAMS
        assert "title" in result.error.message

    @pytest.mark.asyncio
    async def test_missing_arguments_default_to_empty(self, server):
        result = await server.invoke_tool("list_notebooks")
        assert not result.is_error
        assert data_of(result) == {"notebooks": []}

    @pytest.mark.asyncio
    async def test_unknown_session_is_not_found(self, server):
        result = await server.invoke_tool("get_notebook", {"notebookId": "missing"})

        assert result.error.code == NOT_FOUND
        assert result.error.data == {"kind": "session", "name": "missing"}

    @pytest.mark.asyncio
    async def test_store_rejection_is_invalid_arguments(self, server, store):
        session = store.open_session("Guarded")
        result = await server.invoke_tool(
            "update_notebook",
            {"notebookId": session.id, "operation": "delete_cell", "cellIndex": 0},
        )
        assert result.error.code == INVALID_PARAMS

    @pytest.mark.asyncio
    async def test_streamed_export(self, server, store, channel):
        session = store.open_session("Streamed")

        result = await server.invoke_tool(
            "export_notebook",
            {"notebookId": session.id},
            channel,
            StreamOptions(headers={"Content-Type": "text/markdown"}),
        )

        assert result.streamed
        assert not result.is_error
        assert result.chunks == len(channel.chunks)
        assert channel.calls[0][0] == "head"
        assert channel.calls[0][2]["Content-Type"] == "text/markdown"
        assert channel.end_count == 1
        assert "# Streamed" in channel.body

    @pytest.mark.asyncio
    async def test_export_without_channel_is_drained(self, server, store):
        session = store.open_session("Drained")

        result = await server.invoke_tool("export_notebook", {"notebookId": session.id})

        assert not result.streamed
        assert result.text.startswith("<!-- peragus:")
        assert "# Drained" in result.text

    @pytest.mark.asyncio
    async def test_closed_channel_reported_to_hook(self, server, store, channel, faults):
        session = store.open_session("Closed")
        await channel.write_head(200, {})
        await channel.end()

        result = await server.invoke_tool("export_notebook", {"notebookId": session.id}, channel)

        assert result.error.code == CHANNEL_CLOSED
        assert [f.source for f in faults] == ["stream"]
        assert faults[0].tool == "export_notebook"


class TestFaultHandling:
    """Tests for faults raised by tool handlers and producers."""

    @pytest.fixture
    def patched(self, server):
        """Swap a tool's handler for a test double."""

        def patch(name, handler):
            descriptor = server._tools.get(name)
            object.__setattr__(descriptor, "handler", handler)

        return patch

    @pytest.mark.asyncio
    async def test_producer_failure_mid_stream(self, server, channel, faults, patched):
        def produce():
            yield "a"
            raise RuntimeError("boom")

        async def handler(arguments):
            return produce()

        patched("list_notebooks", handler)

        result = await server.invoke_tool("list_notebooks", {}, channel)

        assert result.streamed
        assert result.error.code == UPSTREAM_FAILURE
        assert channel.chunks == [b"a"]
        assert channel.end_count == 1
        assert len(faults) == 1
        assert isinstance(faults[0], Fault)
        assert isinstance(faults[0].error.__cause__, RuntimeError)

    @pytest.mark.asyncio
    async def test_producer_failure_without_channel(self, server, faults, patched):
        def produce():
            yield "a"
            raise RuntimeError("boom")

        async def handler(arguments):
            return produce()

        patched("list_notebooks", handler)

        result = await server.invoke_tool("list_notebooks", {})

        assert result.error.code == UPSTREAM_FAILURE
        assert faults == []

    @pytest.mark.asyncio
    async def test_unexpected_handler_error(self, server, faults, patched):
        async def handler(arguments):
            raise KeyError("surprise")

        patched("list_notebooks", handler)

        result = await server.invoke_tool("list_notebooks", {})

        assert result.error.code == INTERNAL_ERROR
        assert [f.source for f in faults] == ["tool"]

    @pytest.mark.asyncio
    async def test_handler_returning_text(self, server, patched):
        async def handler(arguments):
            return "plain"

        patched("list_notebooks", handler)

        result = await server.invoke_tool("list_notebooks", {})
        assert result.content == [{"type": "text", "text": "plain"}]

    def test_hook_errors_are_contained(self, server, faults):
        def broken(fault):
            raise RuntimeError("hook failed")

        server.on_error(broken)
        server.report_fault(ValueError("x"), "transport")

        assert len(faults) == 1


class TestHandleMessage:
    """Tests for the JSON-RPC surface."""

    @pytest.mark.asyncio
    async def test_ping(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "method": "ping", "id": 1})
        assert response == {"jsonrpc": "2.0", "id": 1, "result": {}}

    @pytest.mark.asyncio
    async def test_unknown_method(self, server):
        response = await server.handle_message({"jsonrpc": "2.0", "method": "nope", "id": 2})
        assert response["error"]["code"] == METHOD_NOT_FOUND

    @pytest.mark.asyncio
    async def test_notification_returns_none(self, server):
        message = {"jsonrpc": "2.0", "method": "notifications/initialized"}
        assert await server.handle_message(message) is None

    @pytest.mark.asyncio
    async def test_invalid_message_keeps_id(self, server):
        response = await server.handle_message({"jsonrpc": "1.0", "method": "ping", "id": 9})
        assert response["id"] == 9
        assert "error" in response

    @pytest.mark.asyncio
    async def test_tools_call_error_is_in_result(self, server):
        response = await server.handle_message(
            {
                "jsonrpc": "2.0",
                "id": 3,
                "method": "tools/call",
                "params": {"name": "missing"},
            }
        )
        assert response["result"]["isError"] is True
        assert response["result"]["error"]["code"] == NOT_FOUND

    @pytest.mark.asyncio
    async def test_resources_read_unknown(self, server):
        response = await server.handle_message(
            {
                "jsonrpc": "2.0",
                "id": 4,
                "method": "resources/read",
                "params": {"uri": "notebook://missing"},
            }
        )
        assert response["error"]["code"] == NOT_FOUND

    @pytest.mark.asyncio
    async def test_resources_list(self, server, store):
        store.open_session("Listed")
        response = await server.handle_message(
            {"jsonrpc": "2.0", "id": 5, "method": "resources/list"}
        )
        names = [r["name"] for r in response["result"]["resources"]]
        assert names == ["Listed"]

    @pytest.mark.asyncio
    async def test_empty_batch(self, server):
        response = await server.handle_payload([])
        assert "error" in response

    @pytest.mark.asyncio
    async def test_batch_of_notifications(self, server):
        response = await server.handle_payload(
            [{"jsonrpc": "2.0", "method": "notifications/initialized"}]
        )
        assert response is None
