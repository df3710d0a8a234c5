"""A thread-safe mapping from channels to the receivers of their messages."""

from __future__ import annotations

import threading
from typing import Any

from .channel import Channel
from .errors import NoSubscriptionError, SubscriptionExistsError


class SubscriptionsMap:
    """Maps each subscribed channel to the object that receives its messages."""

    def __init__(self) -> None:
        self._subs: dict[Channel, Any] = {}
        self._lock = threading.Lock()

    def add(self, channel: str, receiver: Any) -> None:
        """Register ``receiver`` for ``channel``; raise if already subscribed."""
        channel = Channel(channel)
        with self._lock:
            if channel in self._subs:
                raise SubscriptionExistsError(channel)
            self._subs[channel] = receiver

    def remove(self, channel: str) -> None:
        """Forget the subscription for ``channel``, if there is one."""
        with self._lock:
            self._subs.pop(Channel(channel), None)

    def get(self, channel: str) -> Any:
        """Return the receiver for ``channel``; raise if there is none."""
        channel = Channel(channel)
        with self._lock:
            try:
                return self._subs[channel]
            except KeyError:
                raise NoSubscriptionError(channel) from None

    def __len__(self) -> int:
        with self._lock:
            return len(self._subs)

    def __contains__(self, channel: object) -> bool:
        with self._lock:
            return channel in self._subs