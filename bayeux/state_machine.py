"""The connection state machine of a Bayeux client."""

from __future__ import annotations

import threading
from enum import Enum

from .errors import BadConnectionError, BadHandshakeError, UnknownEventTypeError


class ConnectionState(Enum):
    """The states a client connection can be in."""

    UNCONNECTED = "UNCONNECTED"
    CONNECTING = "CONNECTING"
    CONNECTED = "CONNECTED"


class Event(str, Enum):
    """Events that can change the connection state."""

    HANDSHAKE_SENT = "handshake request sent"
    TIMEOUT = "Timeout"
    SUCCESSFULLY_CONNECTED = "Successful connect response"
    DISCONNECT_SENT = "Disconnect request sent"


class ConnectionStateMachine:
    """Tracks a connection's state; safe to share between threads."""

    def __init__(self, state: ConnectionState = ConnectionState.UNCONNECTED) -> None:
        self._state = state
        self._lock = threading.Lock()

    def is_connected(self) -> bool:
        """Whether the connection is connected to the server."""
        with self._lock:
            return self._state is ConnectionState.CONNECTED

    def current_state(self) -> ConnectionState:
        """The current state."""
        with self._lock:
            return self._state

    def process_event(self, event: Event | str) -> None:
        """Apply ``event``, raising if the transition is not allowed."""
        try:
            event = Event(event)
        except ValueError:
            raise UnknownEventTypeError(event) from None

        with self._lock:
            current = self._state
            if event is Event.HANDSHAKE_SENT:
                if current is not ConnectionState.UNCONNECTED:
                    raise BadHandshakeError(
                        current, ConnectionState.UNCONNECTED, ConnectionState.CONNECTING
                    )
                self._state = ConnectionState.CONNECTING
            elif event is Event.TIMEOUT:
                self._state = ConnectionState.UNCONNECTED
            elif event is Event.SUCCESSFULLY_CONNECTED:
                if current is not ConnectionState.CONNECTING:
                    raise BadConnectionError(
                        current, ConnectionState.CONNECTING, ConnectionState.CONNECTED
                    )
                self._state = ConnectionState.CONNECTED
            elif event is Event.DISCONNECT_SENT:
                if current in (ConnectionState.CONNECTED, ConnectionState.CONNECTING):
                    self._state = ConnectionState.UNCONNECTED