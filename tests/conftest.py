"""Pytest configuration and fixtures."""

import pytest

from peragus.mcp.config import ServerConfig
from peragus.mcp.server import NotebookMCPServer
from peragus.mcp.transport.base import ResponseChannel
from peragus.sessions import SessionStore

# Enable async tests without marking each one
pytest_plugins = ["pytest_asyncio"]


class RecordingChannel(ResponseChannel):
    """In-memory response channel recording every call in order."""

    def __init__(self, fail_on_write: int | None = None):
        super().__init__()
        self.calls: list[tuple] = []
        self.fail_on_write = fail_on_write

    async def _send_head(self, status, headers):
        self.calls.append(("head", status, dict(headers)))

    async def _send_chunk(self, data):
        if self.fail_on_write is not None and len(self.chunks) == self.fail_on_write:
            raise OSError("connection reset")
        self.calls.append(("write", data))

    async def _send_end(self):
        self.calls.append(("end",))

    @property
    def chunks(self) -> list[bytes]:
        return [call[1] for call in self.calls if call[0] == "write"]

    @property
    def body(self) -> str:
        return b"".join(self.chunks).decode("utf-8")

    @property
    def end_count(self) -> int:
        return sum(1 for call in self.calls if call[0] == "end")


@pytest.fixture
def channel():
    """Fresh recording channel."""
    return RecordingChannel()


@pytest.fixture
def store(tmp_path):
    """Session store rooted in a temporary directory."""
    return SessionStore(tmp_path / "srcbooks")


@pytest.fixture
def faults():
    """List collecting faults delivered to the server's error hook."""
    return []


@pytest.fixture
def server(store, faults):
    """READY server backed by the temporary store."""
    server = NotebookMCPServer.create(
        store,
        ServerConfig(base_dir=store.base_dir),
        error_hook=faults.append,
    )
    yield server
    server.close()
