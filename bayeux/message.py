"""Bayeux messages, server advice and parsed error fields."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from .channel import Channel
from .errors import MessageUnparsableError

CONNECTION_TYPE_LONG_POLLING = "long-polling"
CONNECTION_TYPE_CALLBACK_POLLING = "callback-polling"
CONNECTION_TYPE_IFRAME = "iframe"

CONNECTION_TYPES = (
    CONNECTION_TYPE_LONG_POLLING,
    CONNECTION_TYPE_CALLBACK_POLLING,
    CONNECTION_TYPE_IFRAME,
)

_TIMESTAMP_RE = re.compile(
    r"(\d{4})-(\d{2})-(\d{2})T(\d{2}):(\d{2}):(\d{2})\.(\d{2})"
)
_ERROR_CODE_RE = re.compile(r"[+-]?\d+")


@dataclass
class Advice:
    """The server's advice on how the client should operate."""

    reconnect: str = ""
    timeout: int = 0
    interval: int = 0
    multiple_clients: bool = False
    hosts: list[str] = field(default_factory=list)

    def must_not_retry_or_handshake(self) -> bool:
        """Whether neither a retry nor a handshake is allowed."""
        return self.reconnect == "none"

    def should_retry(self) -> bool:
        """Whether the client should retry."""
        return self.reconnect == "retry"

    def should_handshake(self) -> bool:
        """Whether the client should handshake again."""
        return self.reconnect == "handshake"

    def timeout_as_duration(self) -> timedelta:
        """The timeout, given in milliseconds, as a duration."""
        return timedelta(milliseconds=self.timeout)

    def interval_as_duration(self) -> timedelta:
        """The interval, given in milliseconds, as a duration."""
        return timedelta(milliseconds=self.interval)

    def to_dict(self) -> dict[str, Any]:
        """The JSON object for this advice, empty fields left out."""
        result: dict[str, Any] = {}
        if self.reconnect:
            result["reconnect"] = self.reconnect
        if self.timeout:
            result["timeout"] = self.timeout
        if self.interval:
            result["interval"] = self.interval
        if self.multiple_clients:
            result["multiple-clients"] = True
        if self.hosts:
            result["hosts"] = list(self.hosts)
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Advice":
        """Build advice from a decoded JSON object."""
        return cls(
            reconnect=data.get("reconnect") or "",
            timeout=int(data.get("timeout") or 0),
            interval=int(data.get("interval") or 0),
            multiple_clients=bool(data.get("multiple-clients", False)),
            hosts=list(data.get("hosts") or []),
        )


@dataclass
class MessageError:
    """The parsed form of a message's error field."""

    error_code: int
    error_args: list[str]
    error_message: str


@dataclass
class Message:
    """A single Bayeux message."""

    channel: Channel = Channel("")
    advice: Advice | None = None
    id: str = ""
    client_id: str = ""
    data: Any = None
    version: str = ""
    minimum_version: str = ""
    supported_connection_types: list[str] = field(default_factory=list)
    connection_type: str = ""
    timestamp: str = ""
    successful: bool = False
    auth_successful: bool = False
    subscription: Channel = Channel("")
    error: str = ""
    ext: dict[str, Any] | None = None

    def __post_init__(self) -> None:
        self.channel = Channel(self.channel)
        self.subscription = Channel(self.subscription)

    def timestamp_as_time(self) -> datetime:
        """Parse the timestamp (``YYYY-MM-DDThh:mm:ss.ss``) as a UTC time."""
        match = _TIMESTAMP_RE.fullmatch(self.timestamp)
        if match is None:
            raise ValueError(f"cannot parse timestamp {self.timestamp!r}")
        year, month, day, hour, minute, second, hundredths = map(int, match.groups())
        return datetime(
            year, month, day, hour, minute, second,
            hundredths * 10_000, tzinfo=timezone.utc,
        )

    def parse_error(self) -> MessageError:
        """Parse the error field as ``code:args:message``."""
        pieces = self.error.split(":", 2)
        if len(pieces) != 3:
            raise MessageUnparsableError(self.error)
        code, args, text = pieces
        if _ERROR_CODE_RE.fullmatch(code) is None:
            raise ValueError(f"invalid error code {code!r}")
        return MessageError(int(code), args.split(","), text)

    def get_ext(self, create: bool) -> dict[str, Any] | None:
        """Return the ext mapping, creating it first if asked and missing."""
        if self.ext is None and create:
            self.ext = {}
        return self.ext

    def to_dict(self) -> dict[str, Any]:
        """The JSON object for this message, empty fields left out."""
        result: dict[str, Any] = {}
        if self.advice is not None:
            result["advice"] = self.advice.to_dict()
        if self.id:
            result["id"] = self.id
        result["channel"] = str(self.channel)
        if self.client_id:
            result["clientId"] = self.client_id
        if self.data is not None:
            result["data"] = self.data
        if self.version:
            result["version"] = self.version
        if self.minimum_version:
            result["minimumVersion"] = self.minimum_version
        if self.supported_connection_types:
            result["supportedConnectionTypes"] = list(self.supported_connection_types)
        if self.connection_type:
            result["connectionType"] = self.connection_type
        if self.timestamp:
            result["timestamp"] = self.timestamp
        if self.successful:
            result["successful"] = True
        if self.auth_successful:
            result["authSuccessful"] = True
        if self.subscription:
            result["subscription"] = str(self.subscription)
        if self.error:
            result["error"] = self.error
        if self.ext:
            result["ext"] = self.ext
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Message":
        """Build a message from a decoded JSON object."""
        advice = data.get("advice")
        ext = data.get("ext")
        return cls(
            channel=Channel(data.get("channel") or ""),
            advice=Advice.from_dict(advice) if advice is not None else None,
            id=data.get("id") or "",
            client_id=data.get("clientId") or "",
            data=data.get("data"),
            version=data.get("version") or "",
            minimum_version=data.get("minimumVersion") or "",
            supported_connection_types=list(data.get("supportedConnectionTypes") or []),
            connection_type=data.get("connectionType") or "",
            timestamp=data.get("timestamp") or "",
            successful=bool(data.get("successful", False)),
            auth_successful=bool(data.get("authSuccessful", False)),
            subscription=Channel(data.get("subscription") or ""),
            error=data.get("error") or "",
            ext=dict(ext) if ext is not None else None,
        )