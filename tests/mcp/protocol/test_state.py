"""Tests for the server lifecycle state machine."""

import pytest

from peragus.mcp.protocol import InvalidStateTransition, ServerState, ServerStateMachine


class TestServerStateMachine:
    """Tests for ServerStateMachine."""

    def test_starts_constructed(self):
        machine = ServerStateMachine()
        assert machine.state == ServerState.CONSTRUCTED
        assert not machine.is_ready
        assert not machine.is_closed

    def test_happy_path(self):
        machine = ServerStateMachine()
        machine.transition(ServerState.READY)
        assert machine.is_ready
        machine.transition(ServerState.CLOSED)
        assert machine.is_closed

    def test_closed_is_terminal(self):
        machine = ServerStateMachine(ServerState.CLOSED)
        for state in ServerState:
            assert not machine.can_transition_to(state)
        with pytest.raises(InvalidStateTransition, match="CLOSED -> READY"):
            machine.transition(ServerState.READY)

    def test_failed_setup_can_close_directly(self):
        machine = ServerStateMachine()
        machine.transition(ServerState.CLOSED)
        assert machine.is_closed

    def test_listeners_notified(self):
        machine = ServerStateMachine()
        seen = []
        machine.on_transition(lambda old, new: seen.append((old, new)))

        machine.transition(ServerState.READY)

        assert seen == [(ServerState.CONSTRUCTED, ServerState.READY)]

    def test_listener_errors_do_not_block_transition(self):
        machine = ServerStateMachine()

        def broken(old, new):
            raise RuntimeError("listener")

        machine.on_transition(broken)
        machine.transition(ServerState.READY)

        assert machine.is_ready
