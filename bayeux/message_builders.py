"""Builders that assemble valid Bayeux request messages."""

from __future__ import annotations

import re

from .channel import (
    META_CONNECT,
    META_DISCONNECT,
    META_HANDSHAKE,
    META_SUBSCRIBE,
    META_UNSUBSCRIBE,
    Channel,
)
from .errors import (
    BadConnectionTypeError,
    BadConnectionVersionError,
    EmptyCollectionError,
    InvalidChannelError,
    MissingClientIDError,
    MissingConnectionTypeError,
    NoSupportedConnectionTypesError,
    NoVersionError,
)
from .message import CONNECTION_TYPES, Message

_MAJOR_VERSION_RE = re.compile(r"[+-]?\d+")


def _validate_version(version: str) -> None:
    if not version:
        raise BadConnectionVersionError(version)
    major = version.split(".", 1)[0]
    if _MAJOR_VERSION_RE.fullmatch(major) is None:
        raise BadConnectionVersionError(version)


def _validate_connection_type(connection_type: str) -> None:
    if connection_type not in CONNECTION_TYPES:
        raise BadConnectionTypeError(connection_type)


class HandshakeRequestBuilder:
    """Builds a request for the /meta/handshake channel."""

    def __init__(self) -> None:
        self._version = ""
        self._supported_connection_types: list[str] = []
        self._minimum_version = ""

    def add_supported_connection_type(self, connection_type: str) -> None:
        """Add a supported connection type; duplicates are ignored."""
        _validate_connection_type(connection_type)
        if connection_type not in self._supported_connection_types:
            self._supported_connection_types.append(connection_type)

    def add_version(self, version: str) -> None:
        """Set the protocol version the client supports."""
        _validate_version(version)
        self._version = version

    def add_minimum_version(self, version: str) -> None:
        """Set the oldest protocol version the client supports."""
        _validate_version(version)
        self._minimum_version = version

    def build(self) -> list[Message]:
        """Return the handshake request messages."""
        if not self._supported_connection_types:
            raise NoSupportedConnectionTypesError()
        if not self._version:
            raise NoVersionError()
        return [
            Message(
                channel=META_HANDSHAKE,
                version=self._version,
                supported_connection_types=list(self._supported_connection_types),
                minimum_version=self._minimum_version,
            )
        ]


class ConnectRequestBuilder:
    """Builds a request for the /meta/connect channel."""

    def __init__(self) -> None:
        self._client_id = ""
        self._connection_type = ""

    def add_client_id(self, client_id: str) -> None:
        """Set the client id obtained from the handshake."""
        self._client_id = client_id

    def add_connection_type(self, connection_type: str) -> None:
        """Set the connection type used for this connection."""
        _validate_connection_type(connection_type)
        self._connection_type = connection_type

    def build(self) -> list[Message]:
        """Return the connect request messages."""
        if not self._client_id:
            raise MissingClientIDError()
        if not self._connection_type:
            raise MissingConnectionTypeError()
        return [
            Message(
                channel=META_CONNECT,
                client_id=self._client_id,
                connection_type=self._connection_type,
            )
        ]


class _SubscriptionRequest:
    """Shared state of the subscribe and unsubscribe builders."""

    def __init__(self) -> None:
        self._client_id = ""
        self._subscriptions: list[Channel] = []

    def _add_channel(self, channel: str) -> None:
        channel = Channel(channel)
        if not channel.is_valid():
            raise InvalidChannelError(channel)
        if channel not in self._subscriptions:
            self._subscriptions.append(channel)

    def _build_messages(self, meta_channel: Channel) -> list[Message]:
        if not self._client_id:
            raise MissingClientIDError()
        if not self._subscriptions:
            raise EmptyCollectionError("subscriptions")
        return [
            Message(channel=meta_channel, client_id=self._client_id, subscription=sub)
            for sub in self._subscriptions
        ]


class SubscribeRequestBuilder(_SubscriptionRequest):
    """Builds a request for the /meta/subscribe channel."""

    def add_client_id(self, client_id: str) -> None:
        """Set the client id obtained from the handshake."""
        self._client_id = client_id

    def add_subscription(self, channel: str) -> None:
        """Add a channel to subscribe to; duplicates are ignored."""
        self._add_channel(channel)

    def build(self) -> list[Message]:
        """Return one subscribe message per channel."""
        return self._build_messages(META_SUBSCRIBE)


class UnsubscribeRequestBuilder(_SubscriptionRequest):
    """Builds a request for the /meta/unsubscribe channel."""

    def add_client_id(self, client_id: str) -> None:
        """Set the client id obtained from the handshake."""
        self._client_id = client_id

    def add_subscription(self, channel: str) -> None:
        """Add a channel to unsubscribe from; duplicates are ignored."""
        self._add_channel(channel)

    def build(self) -> list[Message]:
        """Return one unsubscribe message per channel."""
        return self._build_messages(META_UNSUBSCRIBE)


class DisconnectRequestBuilder:
    """Builds a request for the /meta/disconnect channel."""

    def __init__(self) -> None:
        self._client_id = ""

    def add_client_id(self, client_id: str) -> None:
        """Set the client id obtained from the handshake."""
        self._client_id = client_id

    def build(self) -> list[Message]:
        """Return the disconnect request messages."""
        if not self._client_id:
            raise MissingClientIDError()
        return [Message(channel=META_DISCONNECT, client_id=self._client_id)]