"""Exceptions raised by the Bayeux client and its helpers."""

from __future__ import annotations

import json
from enum import Enum
from typing import Any, Iterable


def _quote(value: Any) -> str:
    """Quote a value the way a double-quoted, escaped string is shown."""
    if isinstance(value, Enum):
        value = value.value
    return json.dumps(str(value), ensure_ascii=False)


def _state_name(state: Any) -> str:
    if isinstance(state, Enum):
        return str(state.value)
    return "unknown"


class BayeuxError(Exception):
    """Base class for every error raised by this package."""


class _FixedMessageError(BayeuxError):
    """An error whose message is fixed by its class."""

    message = ""

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message if message is not None else self.message)


class ClientNotConnectedError(_FixedMessageError):
    """The client is not connected to the server."""

    message = "client not connected to server"


class TooManyMessagesError(_FixedMessageError):
    """The handshake response held more than one message."""

    message = "more messages than expected in handshake response"


class BadChannelError(_FixedMessageError):
    """The handshake response came back on the wrong channel."""

    message = "handshake responses must come back via the /meta/handshake channel"


class FailedToConnectError(_FixedMessageError):
    """A /meta/connect request was not successful."""

    message = "connect request was not successful"


class NoSupportedConnectionTypesError(_FixedMessageError, ValueError):
    """No supported connection type was given for a handshake."""

    message = "no supported connection types provided"


class NoVersionError(_FixedMessageError, ValueError):
    """No protocol version was given for a handshake."""

    message = "no version specified"


class MissingClientIDError(_FixedMessageError, ValueError):
    """A request needs a client id that was not set."""

    message = "missing clientID value"


class MissingConnectionTypeError(_FixedMessageError, ValueError):
    """A connect request needs a connection type that was not set."""

    message = "missing connectionType value"


class _WrappingError(BayeuxError):
    """An error that carries the error that caused it."""

    def __init__(self, err: BaseException | None) -> None:
        self.err = err
        super().__init__(self._describe())
        if err is not None:
            self.__cause__ = err

    def _describe(self) -> str:
        return str(self.err)


class ConnectionFailedError(_WrappingError):
    """A call to connect failed."""

    def _describe(self) -> str:
        return f"connection failed ({self.err})"


class HandshakeFailedError(_WrappingError):
    """The handshake failed."""

    @classmethod
    def unsuccessful(cls, message: str) -> "HandshakeFailedError":
        """Build the error for a handshake the server reported as failed."""
        return cls(BayeuxError(f"handshake was not successful: {message}"))


class SubscriptionFailedError(_WrappingError):
    """Subscribing to channels failed."""

    def __init__(self, channels: Iterable[str], err: BaseException | None) -> None:
        self.channels = list(channels)
        super().__init__(err)

    def _describe(self) -> str:
        return f"subscription failed ({self.err})"


class UnsubscribeFailedError(SubscriptionFailedError):
    """Unsubscribing from channels failed."""


class ActionFailedError(BayeuxError):
    """The server reported that an action on channels failed."""

    def __init__(self, action: str, error_message: str) -> None:
        self.action = action
        self.error_message = error_message
        super().__init__(f"unable to {action} channels: {error_message}")

    @classmethod
    def subscribe(cls, error_message: str) -> "ActionFailedError":
        return cls("subscribe to", error_message)

    @classmethod
    def unsubscribe(cls, error_message: str) -> "ActionFailedError":
        return cls("unsubscribe from", error_message)


class DisconnectFailedError(_WrappingError):
    """A call to disconnect failed."""

    def __init__(self, err: BaseException | None = None) -> None:
        super().__init__(err)

    def _describe(self) -> str:
        msg = "unable to disconnect from Bayeux server"
        if self.err is None:
            return msg
        return f"{msg} ({self.err})"


class AlreadyRegisteredError(BayeuxError):
    """The extension is already registered with the client."""

    def __init__(self, extension: Any) -> None:
        self.extension = extension
        super().__init__(f"extension already registered: {extension}")


class BadResponseError(BayeuxError):
    """The server answered with something other than HTTP 200."""

    def __init__(self, status_code: int, status: str) -> None:
        self.status_code = status_code
        self.status = status
        super().__init__(
            f"expected 200 response from bayeux server, got {status_code} "
            f"with status '{status}'"
        )


class BadConnectionTypeError(BayeuxError, ValueError):
    """The connection type is not one this client knows."""

    def __init__(self, connection_type: str) -> None:
        self.connection_type = connection_type
        super().__init__(f"{_quote(connection_type)} is not a valid connection type")


class BadConnectionVersionError(BayeuxError, ValueError):
    """The protocol version cannot be supported."""

    def __init__(self, version: str) -> None:
        self.version = version
        super().__init__(f"version {_quote(version)} is invalid for Bayeux protocol")


class InvalidChannelError(BayeuxError, ValueError):
    """A channel name failed validation."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"channel {_quote(channel)} appears to not be a valid channel")


class EmptyCollectionError(BayeuxError, ValueError):
    """A collection that must not be empty was empty."""

    def __init__(self, what: str) -> None:
        self.what = what
        super().__init__(f"no {what} provided")


class MessageUnparsableError(BayeuxError, ValueError):
    """The error field of a message could not be parsed."""

    def __init__(self, error: str) -> None:
        self.error = error
        super().__init__(f"error message not parseable: {error}")


class BadStateError(BayeuxError):
    """A state machine transition is not valid."""

    def __init__(self, current_state: Any, from_state: Any, to_state: Any, message: str) -> None:
        self.current_state = current_state
        self.from_state = from_state
        self.to_state = to_state
        self.message = message
        super().__init__(
            f"{message}, (current: {_state_name(current_state)}, "
            f"from: {_state_name(from_state)}, to: {_state_name(to_state)})"
        )


class BadHandshakeError(BadStateError):
    """A handshake was attempted outside the unconnected state."""

    def __init__(self, current_state: Any, from_state: Any, to_state: Any) -> None:
        super().__init__(
            current_state,
            from_state,
            to_state,
            "attempting to handshake but not in unconnected state",
        )


class BadConnectionError(BadStateError):
    """A successful connect arrived outside the connecting state."""

    def __init__(self, current_state: Any, from_state: Any, to_state: Any) -> None:
        super().__init__(
            current_state,
            from_state,
            to_state,
            "invalid state for successful connect response event",
        )


class UnknownEventTypeError(BayeuxError, ValueError):
    """The state machine received an event it does not know."""

    def __init__(self, event: Any) -> None:
        self.event = event
        super().__init__(f"unknown event type ({_quote(event)})")


class SubscriptionExistsError(BayeuxError):
    """The channel already has a subscription."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"channel '{channel}' already subscribed")


class NoSubscriptionError(BayeuxError, LookupError):
    """The channel has no subscription."""

    def __init__(self, channel: str) -> None:
        self.channel = channel
        super().__init__(f"channel '{channel}' has no subscriptions")