"""A high-level Bayeux client that long-polls the server in the background."""

from __future__ import annotations

import logging
import queue
import threading
from dataclasses import dataclass
from itertools import groupby
from typing import Any, Callable, Iterable

import httpx

from .bayeux_client import BayeuxClient
from .channel import META_CONNECT, Channel
from .errors import SubscriptionExistsError
from .extension import MessageExtender
from .message import Message
from .subscriptions_map import SubscriptionsMap

Receiver = Callable[[list[Message]], Any]

_EMPTY = object()


@dataclass(frozen=True)
class _SubscriptionRequest:
    channel: Channel
    receiver: Receiver | None


def _take(source: queue.Queue) -> Any:
    """Return the next queued item without waiting, or ``_EMPTY``."""
    try:
        return source.get_nowait()
    except queue.Empty:
        return _EMPTY


def _drain(source: queue.Queue) -> list[Any]:
    items = []
    while (item := _take(source)) is not _EMPTY:
        items.append(item)
    return items


class Client:
    """Handshakes, subscribes and long-polls a Bayeux server on a background thread.

    Messages for a subscribed channel are handed, in batches, to the receiver
    given for it: any callable taking a list of messages, such as ``Queue.put``.
    """

    def __init__(
        self,
        server_address: str,
        *,
        logger: logging.Logger | None = None,
        http_client: httpx.Client | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.logger = logger if logger is not None else logging.getLogger(__name__)
        self._client = BayeuxClient(
            server_address,
            http_client=http_client,
            transport=transport,
            logger=self.logger,
        )
        self._subscriptions = SubscriptionsMap()
        self._subscribe_requests: queue.Queue[_SubscriptionRequest] = queue.Queue()
        self._unsubscribe_requests: queue.Queue[Channel] = queue.Queue()
        self._connect_requests: queue.Queue[None] = queue.Queue(maxsize=1)
        self._connect_messages: queue.Queue[list[Message]] = queue.Queue()
        self._handshake_requests: queue.Queue[None] = queue.Queue()
        self._shutdown = threading.Event()
        self._thread: threading.Thread | None = None

    def subscribe(self, channel: str, receiver: Receiver | None) -> None:
        """Queue a request to subscribe ``receiver`` to ``channel``."""
        self._subscribe_requests.put(_SubscriptionRequest(Channel(channel), receiver))

    def unsubscribe(self, channel: str) -> None:
        """Queue a request to unsubscribe from ``channel``."""
        self._unsubscribe_requests.put(Channel(channel))

    def start(self, stop_event: threading.Event | None = None) -> queue.Queue[BaseException]:
        """Start talking to the server in the background.

        Returns a queue on which an error that stops the client is put.
        Setting ``stop_event`` ends the polling loop and disconnects.
        """
        errors: queue.Queue[BaseException] = queue.Queue()
        self._thread = threading.Thread(
            target=self._run, args=(stop_event, errors), name="bayeux-client", daemon=True
        )
        self._thread.start()
        return errors

    def disconnect(self) -> None:
        """Send /meta/disconnect to the server and stop the polling loop."""
        try:
            self._client.disconnect()
        finally:
            self._shutdown.set()

    def use_extension(self, extension: MessageExtender) -> None:
        """Register ``extension`` for this session."""
        self._client.use_extension(extension)

    def _run(self, stop_event: threading.Event | None, errors: queue.Queue) -> None:
        try:
            self._client.handshake()
            try:
                self._subscriptions.add(META_CONNECT, self._connect_messages.put)
            except SubscriptionExistsError:
                pass
            self.logger.debug("start: starting long-polling loop")
            if self._poll(stop_event):
                self._client.disconnect()
        except Exception as exc:  # reported to the caller through the queue
            errors.put(exc)

    def _poll(self, stop_event: threading.Event | None) -> bool:
        """Run the polling loop; return whether a disconnect is still due."""
        while True:
            if self._shutdown.is_set():
                self.logger.debug("poll: shutting down due to disconnect()")
                return False
            if stop_event is not None and stop_event.is_set():
                self.logger.debug("poll: shutting down due to stop event")
                return True

            if (request := _take(self._subscribe_requests)) is not _EMPTY:
                self._handle_subscribe([request, *_drain(self._subscribe_requests)])
            elif (channel := _take(self._unsubscribe_requests)) is not _EMPTY:
                self._handle_unsubscribe([channel, *_drain(self._unsubscribe_requests)])
            elif _take(self._handshake_requests) is not _EMPTY:
                self.logger.debug("poll: re-handshaking")
                self._client.handshake()
                self._enqueue_connect()
            elif (messages := _take(self._connect_messages)) is not _EMPTY:
                self._handle_connect_messages(messages)
            elif _take(self._connect_requests) is not _EMPTY:
                self._handle_connect()
            else:
                self._enqueue_connect()

    def _handle_subscribe(self, requests: list[_SubscriptionRequest]) -> None:
        self.logger.debug("poll: got %d subscription requests", len(requests))
        self._client.subscribe([r.channel for r in requests])
        for request in requests:
            self._subscriptions.add(request.channel, request.receiver)
        self._enqueue_connect()

    def _handle_unsubscribe(self, channels: Iterable[Channel]) -> None:
        channels = list(channels)
        self.logger.debug("poll: got %d unsubscribe requests", len(channels))
        self._client.unsubscribe(channels)
        for channel in channels:
            self._subscriptions.remove(channel)

    def _handle_connect_messages(self, messages: list[Message]) -> None:
        self.logger.debug("poll: handling messages from /meta/connect")
        for message in messages:
            advice = message.advice
            if advice is not None and advice.should_handshake():
                self.logger.debug("poll: queueing new handshake request")
                self._handshake_requests.put(None)
            interval = advice.interval_as_duration().total_seconds() if advice else 0.0
            self.logger.debug("poll: waiting %.3fs per advice", interval)
            timer = threading.Timer(interval, self._enqueue_connect)
            timer.daemon = True
            timer.start()

    def _handle_connect(self) -> None:
        self.logger.debug("poll: checking for new messages")
        messages = self._client.connect()
        for channel, batch in groupby(messages, key=lambda m: m.channel):
            receiver = self._subscriptions.get(channel)
            self.logger.debug("poll: sending batch for %s", channel)
            if receiver is not None:
                receiver(list(batch))

    def _enqueue_connect(self) -> None:
        try:
            self._connect_requests.put_nowait(None)
        except queue.Full:
            self.logger.debug("/meta/connect request queue full")
        else:
            self.logger.debug("queued next /meta/connect request")