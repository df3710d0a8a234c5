import pytest

from bayeux.errors import (
    BadConnectionError,
    BadHandshakeError,
    BadStateError,
    UnknownEventTypeError,
)
from bayeux.state_machine import ConnectionState, ConnectionStateMachine, Event

U = ConnectionState.UNCONNECTED
C1 = ConnectionState.CONNECTING
C2 = ConnectionState.CONNECTED


def test_defaults():
    csm = ConnectionStateMachine()
    assert csm.is_connected() is False
    assert csm.current_state() is U
    assert ConnectionStateMachine(C2).is_connected() is True


@pytest.mark.parametrize(
    "start, event, end",
    [
        (U, Event.HANDSHAKE_SENT, C1),
        (U, Event.TIMEOUT, U),
        (C1, Event.SUCCESSFULLY_CONNECTED, C2),
        (C1, Event.TIMEOUT, U),
        (C1, Event.DISCONNECT_SENT, U),
        (C2, Event.TIMEOUT, U),
        (C2, Event.DISCONNECT_SENT, U),
        (U, Event.DISCONNECT_SENT, U),
    ],
)
def test_process_event_transitions(start, event, end):
    csm = ConnectionStateMachine(start)
    csm.process_event(event)
    assert csm.current_state() is end


@pytest.mark.parametrize(
    "start, event, error",
    [
        (C2, Event.HANDSHAKE_SENT, BadHandshakeError),
        (U, Event.SUCCESSFULLY_CONNECTED, BadConnectionError),
        (U, "random", UnknownEventTypeError),
        (C1, "random", UnknownEventTypeError),
        (C2, "random", UnknownEventTypeError),
    ],
)
def test_process_event_errors(start, event, error):
    csm = ConnectionStateMachine(start)
    with pytest.raises(error):
        csm.process_event(event)
    assert csm.current_state() is start


def test_event_accepts_plain_strings():
    csm = ConnectionStateMachine()
    csm.process_event("handshake request sent")
    assert csm.current_state() is C1


def test_bad_handshake_reports_states():
    csm = ConnectionStateMachine(C2)
    with pytest.raises(BadStateError) as info:
        csm.process_event(Event.HANDSHAKE_SENT)
    assert info.value.current_state is C2
    assert info.value.from_state is U
    assert info.value.to_state is C1


@pytest.mark.parametrize(
    "state, expected",
    [(C1, "CONNECTING"), (C2, "CONNECTED"), (U, "UNCONNECTED")],
)
def test_current_state(state, expected):
    assert ConnectionStateMachine(state).current_state().value == expected


def test_full_lifecycle():
    csm = ConnectionStateMachine()
    csm.process_event(Event.HANDSHAKE_SENT)
    csm.process_event(Event.SUCCESSFULLY_CONNECTED)
    assert csm.is_connected() is True
    csm.process_event(Event.DISCONNECT_SENT)
    assert csm.is_connected() is False