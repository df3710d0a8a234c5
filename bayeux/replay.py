"""The replay-id extension with a thread-safe in-memory store."""

from __future__ import annotations

import json
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Mapping

from .channel import META_HANDSHAKE, META_SUBSCRIBE, META_UNSUBSCRIBE, ChannelType
from .extension import MessageExtender
from .message import Message

EXTENSION_NAME = "replay"
_EVENT_KEY = "event"
_REPLAY_ID_KEY = "replayId"


class IDStore(ABC):
    """Stores the last replay id seen on each channel."""

    @abstractmethod
    def set(self, channel: str, replay_id: int) -> None:
        """Record ``replay_id`` for ``channel``."""

    @abstractmethod
    def get(self, channel: str) -> int | None:
        """Return the replay id for ``channel``, or None if there is none."""

    @abstractmethod
    def delete(self, channel: str) -> None:
        """Forget the replay id for ``channel``."""

    @abstractmethod
    def as_map(self) -> dict[str, int]:
        """Return a copy of every stored channel and replay id."""


class MapStorage(IDStore):
    """An IDStore backed by a dict guarded by a lock."""

    def __init__(self, initial: Mapping[str, int] | None = None) -> None:
        self._store: dict[str, int] = dict(initial or {})
        self._lock = threading.Lock()

    def set(self, channel: str, replay_id: int) -> None:
        with self._lock:
            self._store[str(channel)] = replay_id

    def get(self, channel: str) -> int | None:
        with self._lock:
            return self._store.get(str(channel))

    def delete(self, channel: str) -> None:
        with self._lock:
            self._store.pop(str(channel), None)

    def as_map(self) -> dict[str, int]:
        with self._lock:
            return dict(self._store)


@dataclass
class MessageData:
    """The object that carries a message's data payload."""

    data: str = ""
    last: bool = False
    meta: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MessageData":
        """Build from a decoded JSON object; raise ValueError on wrong types."""
        if not isinstance(data, Mapping):
            raise ValueError("message data must be an object")
        payload = data.get("data")
        last = data.get("last")
        meta = data.get("meta")
        if payload is not None and not isinstance(payload, str):
            raise ValueError("'data' must be a string")
        if last is not None and not isinstance(last, bool):
            raise ValueError("'last' must be a boolean")
        if meta is not None and not (
            isinstance(meta, Mapping) and all(isinstance(v, str) for v in meta.values())
        ):
            raise ValueError("'meta' must be an object of strings")
        return cls(data=payload or "", last=bool(last), meta=dict(meta or {}))

    def to_dict(self) -> dict[str, Any]:
        """The JSON object for this payload, empty fields left out."""
        result: dict[str, Any] = {}
        if self.data:
            result["data"] = self.data
        if self.last:
            result["last"] = True
        if self.meta:
            result["meta"] = dict(self.meta)
        return result


class Extension(MessageExtender):
    """Negotiates the replay extension and tracks replay ids per channel."""

    def __init__(self, store: IDStore) -> None:
        self.replay_store = store
        self._supported = False
        self._lock = threading.Lock()

    def is_supported(self) -> bool:
        """Whether the server announced support for the extension."""
        with self._lock:
            return self._supported

    def outgoing(self, message: Message) -> None:
        if message.channel == META_HANDSHAKE:
            message.get_ext(True)[EXTENSION_NAME] = True
        elif message.channel == META_SUBSCRIBE and self.is_supported():
            message.get_ext(True)[EXTENSION_NAME] = self.replay_store.as_map()

    def incoming(self, message: Message) -> None:
        channel_type = message.channel.type()
        if channel_type is ChannelType.META:
            if message.channel == META_HANDSHAKE:
                ext = message.get_ext(False)
                if ext is not None and ext.get(EXTENSION_NAME) is True:
                    with self._lock:
                        self._supported = True
            elif message.channel == META_UNSUBSCRIBE and message.subscription:
                self.replay_store.delete(message.subscription)
        elif channel_type is ChannelType.BROADCAST:
            self._update_replay_id(message)

    def registered(self, extension_name: str, client: Any) -> None:
        """Nothing to do on registration."""

    def unregistered(self) -> None:
        """Nothing to do on removal."""

    def _update_replay_id(self, message: Message) -> None:
        try:
            payload = MessageData.from_dict(message.data)
            decoded = json.loads(payload.data)
        except (ValueError, TypeError):
            return
        if not isinstance(decoded, dict):
            return
        event = decoded.get(_EVENT_KEY)
        if not isinstance(event, dict):
            return
        replay_id = event.get(_REPLAY_ID_KEY)
        if isinstance(replay_id, bool) or not isinstance(replay_id, (int, float)):
            return
        self.replay_store.set(message.channel, int(replay_id))