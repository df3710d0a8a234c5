"""A low-level client that speaks the Bayeux protocol over HTTP long-polling."""

from __future__ import annotations

import json
import logging
import threading
import time
from types import TracebackType
from typing import Any, Iterable
from urllib.parse import urlsplit

import httpx

from .channel import (
    META_CONNECT,
    META_DISCONNECT,
    META_HANDSHAKE,
    META_SUBSCRIBE,
    META_UNSUBSCRIBE,
    Channel,
)
from .errors import (
    ActionFailedError,
    AlreadyRegisteredError,
    BadChannelError,
    BadResponseError,
    BayeuxError,
    ClientNotConnectedError,
    ConnectionFailedError,
    DisconnectFailedError,
    FailedToConnectError,
    HandshakeFailedError,
    SubscriptionFailedError,
    TooManyMessagesError,
    UnsubscribeFailedError,
)
from .extension import MessageExtender
from .message import CONNECTION_TYPE_LONG_POLLING, Message
from .message_builders import (
    ConnectRequestBuilder,
    DisconnectRequestBuilder,
    HandshakeRequestBuilder,
    SubscribeRequestBuilder,
    UnsubscribeRequestBuilder,
)
from .state_machine import ConnectionStateMachine, Event

_REQUEST_ERRORS = (httpx.HTTPError, httpx.InvalidURL, ValueError, TypeError, BayeuxError)


def _parse_address(address: str) -> str:
    """Validate a server address, raising ValueError if it is not a usable URL."""
    parts = urlsplit(address)
    host = parts.netloc.rpartition("@")[2]
    if "%" in host:
        raise ValueError(f"invalid URL escape in host of {address!r}")
    try:
        httpx.URL(address)
    except httpx.InvalidURL as exc:
        raise ValueError(str(exc)) from exc
    return address


class ClientState:
    """Session state shared between threads: the client id."""

    def __init__(self, client_id: str = "") -> None:
        self._client_id = client_id
        self._lock = threading.Lock()

    @property
    def client_id(self) -> str:
        with self._lock:
            return self._client_id

    @client_id.setter
    def client_id(self, value: str) -> None:
        with self._lock:
            self._client_id = value


class BayeuxClient:
    """Sends Bayeux meta requests to one server and parses its replies."""

    def __init__(
        self,
        server_address: str,
        *,
        http_client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.server_address = _parse_address(server_address)
        if http_client is not None and transport is not None:
            raise ValueError("pass either http_client or transport, not both")
        self._owns_http = http_client is None
        self._http = http_client if http_client is not None else httpx.Client(transport=transport)
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self.state_machine = ConnectionStateMachine()
        self.state = ClientState()
        self._extensions: list[MessageExtender] = []

    def __enter__(self) -> "BayeuxClient":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if self._owns_http:
            self._http.close()

    def handshake(self) -> list[Message]:
        """Send the /meta/handshake request and record the client id."""
        start = time.monotonic()
        self.logger.debug("handshake: starting")
        try:
            self.state_machine.process_event(Event.HANDSHAKE_SENT)
        except BayeuxError as exc:
            self.logger.debug("handshake: invalid action for current state: %s", exc)
            raise HandshakeFailedError(exc) from exc

        try:
            builder = HandshakeRequestBuilder()
            builder.add_version("1.0")
            builder.add_supported_connection_type(CONNECTION_TYPE_LONG_POLLING)
            response = self._exchange(builder.build())
        except _REQUEST_ERRORS as exc:
            self.logger.debug("handshake: request failed: %s", exc)
            raise HandshakeFailedError(exc) from exc

        if len(response) > 1:
            raise HandshakeFailedError(TooManyMessagesError())

        message = next((m for m in response if m.channel == META_HANDSHAKE), None)
        if message is None:
            raise HandshakeFailedError(BadChannelError())
        if not message.successful:
            raise HandshakeFailedError.unsuccessful(message.error)

        self.state.client_id = message.client_id
        try:
            self.state_machine.process_event(Event.SUCCESSFULLY_CONNECTED)
        except BayeuxError:
            pass
        self.logger.debug("handshake: finished in %.3fs", time.monotonic() - start)
        return response

    def connect(self) -> list[Message]:
        """Send a /meta/connect request; only one should be outstanding."""
        start = time.monotonic()
        self.logger.debug("connect: starting")
        client_id = self._require_connected()
        if client_id is None:
            raise ClientNotConnectedError()

        try:
            builder = ConnectRequestBuilder()
            builder.add_client_id(client_id)
            builder.add_connection_type(CONNECTION_TYPE_LONG_POLLING)
            response = self._exchange(builder.build())
        except _REQUEST_ERRORS as exc:
            self.logger.debug("connect: request failed: %s", exc)
            raise ConnectionFailedError(exc) from exc

        if any(m.channel == META_CONNECT and not m.successful for m in response):
            raise ConnectionFailedError(FailedToConnectError())
        self.logger.debug("connect: finished in %.3fs", time.monotonic() - start)
        return response

    def subscribe(self, subscriptions: Iterable[str]) -> list[Message]:
        """Send a /meta/subscribe request for each of ``subscriptions``."""
        channels = [Channel(s) for s in subscriptions]
        start = time.monotonic()
        self.logger.debug("subscribe: starting")
        client_id = self._require_connected()
        if client_id is None:
            self.logger.debug("subscribe: client is not connected")
            raise SubscriptionFailedError(channels, ClientNotConnectedError())

        try:
            builder = SubscribeRequestBuilder()
            builder.add_client_id(client_id)
            for channel in channels:
                builder.add_subscription(channel)
            response = self._exchange(builder.build())
        except _REQUEST_ERRORS as exc:
            raise SubscriptionFailedError(channels, exc) from exc

        for m in response:
            if m.channel == META_SUBSCRIBE and not m.successful:
                raise SubscriptionFailedError(channels, ActionFailedError.subscribe(m.error))
        self.logger.debug("subscribe: finished in %.3fs", time.monotonic() - start)
        return response

    def unsubscribe(self, subscriptions: Iterable[str]) -> list[Message]:
        """Send a /meta/unsubscribe request for each of ``subscriptions``."""
        channels = [Channel(s) for s in subscriptions]
        client_id = self._require_connected()
        if client_id is None:
            raise UnsubscribeFailedError(channels, ClientNotConnectedError())

        try:
            builder = UnsubscribeRequestBuilder()
            builder.add_client_id(client_id)
            for channel in channels:
                builder.add_subscription(channel)
            response = self._exchange(builder.build())
        except _REQUEST_ERRORS as exc:
            raise UnsubscribeFailedError(channels, exc) from exc

        for m in response:
            if m.channel == META_UNSUBSCRIBE and not m.successful:
                raise UnsubscribeFailedError(channels, ActionFailedError.unsubscribe(m.error))
        return response

    def disconnect(self) -> list[Message]:
        """Send a /meta/disconnect request to end the session."""
        client_id = self._require_connected()
        if client_id is None:
            raise DisconnectFailedError(ClientNotConnectedError())

        try:
            builder = DisconnectRequestBuilder()
            builder.add_client_id(client_id)
            response = self._exchange(builder.build())
        except _REQUEST_ERRORS as exc:
            raise DisconnectFailedError(exc) from exc

        if any(m.channel == META_DISCONNECT and not m.successful for m in response):
            raise DisconnectFailedError()
        return response

    def use_extension(self, extension: MessageExtender) -> None:
        """Register an extension; raise if it is already registered."""
        if any(extension is registered for registered in self._extensions):
            raise AlreadyRegisteredError(extension)
        self._extensions.append(extension)

    def _require_connected(self) -> str | None:
        client_id = self.state.client_id
        if not self.state_machine.is_connected() or not client_id:
            return None
        return client_id

    def _exchange(self, messages: list[Message]) -> list[Message]:
        for extension in self._extensions:
            for message in messages:
                extension.outgoing(message)

        body = json.dumps([m.to_dict() for m in messages]).encode("utf-8")
        response = self._http.post(
            self.server_address,
            content=body,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        return self._parse_response(response)

    def _parse_response(self, response: httpx.Response) -> list[Message]:
        try:
            if response.status_code != 200:
                raise BadResponseError(
                    response.status_code,
                    f"{response.status_code} {response.reason_phrase}".strip(),
                )
            payload: Any = json.loads(response.content)
        finally:
            response.close()

        if payload is None:
            payload = []
        if not isinstance(payload, list) or not all(isinstance(i, dict) for i in payload):
            raise ValueError("expected a JSON array of message objects")

        messages = [Message.from_dict(item) for item in payload]
        for extension in self._extensions:
            for message in messages:
                extension.incoming(message)
        return messages