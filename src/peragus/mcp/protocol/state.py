"""Server lifecycle state machine."""

import logging
from enum import Enum, auto
from typing import Callable

logger = logging.getLogger(__name__)


class ServerState(Enum):
    """
    Server lifecycle states.

    State transitions:
        CONSTRUCTED -> READY -> CLOSED

    CLOSED is terminal. A server that fails while populating its
    registries may go straight from CONSTRUCTED to CLOSED.
    """

    CONSTRUCTED = auto()
    READY = auto()
    CLOSED = auto()

    def __str__(self) -> str:
        return self.name


class InvalidStateTransition(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_state: ServerState, to_state: ServerState):
        self.from_state = from_state
        self.to_state = to_state
        super().__init__(
            f"Invalid state transition: {from_state.name} -> {to_state.name}"
        )


# Type for state transition callbacks
StateTransitionCallback = Callable[[ServerState, ServerState], None]


class ServerStateMachine:
    """
    Tracks the lifecycle of a NotebookMCPServer.

    Enforces valid state transitions and notifies listeners
    when transitions occur.
    """

    VALID_TRANSITIONS: dict[ServerState, list[ServerState]] = {
        ServerState.CONSTRUCTED: [ServerState.READY, ServerState.CLOSED],
        ServerState.READY: [ServerState.CLOSED],
        ServerState.CLOSED: [],  # Terminal state
    }

    def __init__(self, initial_state: ServerState = ServerState.CONSTRUCTED):
        self._state = initial_state
        self._listeners: list[StateTransitionCallback] = []

    @property
    def state(self) -> ServerState:
        """Current server state."""
        return self._state

    @property
    def is_ready(self) -> bool:
        """Check if registries are populated and requests are accepted."""
        return self._state == ServerState.READY

    @property
    def is_closed(self) -> bool:
        """Check if the server reached its terminal state."""
        return self._state == ServerState.CLOSED

    def can_transition_to(self, new_state: ServerState) -> bool:
        """Check if transition to new_state is valid."""
        return new_state in self.VALID_TRANSITIONS.get(self._state, [])

    def transition(self, new_state: ServerState) -> None:
        """
        Transition to a new state.

        Args:
            new_state: The target state.

        Raises:
            InvalidStateTransition: If the transition is not valid.
        """
        if not self.can_transition_to(new_state):
            raise InvalidStateTransition(self._state, new_state)

        old_state = self._state
        self._state = new_state

        for listener in self._listeners:
            try:
                listener(old_state, new_state)
            except Exception:
                logger.exception("State listener failed")

    def on_transition(self, callback: StateTransitionCallback) -> None:
        """
        Register a callback for state transitions.

        Args:
            callback: Function called with (old_state, new_state) on transitions.
        """
        self._listeners.append(callback)

    def __repr__(self) -> str:
        return f"ServerStateMachine(state={self._state!r})"
