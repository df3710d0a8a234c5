"""Bayeux channel names and their matching rules."""

from __future__ import annotations

from enum import Enum

_META_PREFIX = "/meta/"
_SERVICE_PREFIX = "/service/"


class ChannelType(str, Enum):
    """The three kinds of Bayeux channel."""

    META = "meta"
    SERVICE = "service"
    BROADCAST = "broadcast"


class Channel(str):
    """A Bayeux channel name, a string that looks like a URL path."""

    __slots__ = ()

    def type(self) -> ChannelType:
        """Return the kind of channel this name denotes."""
        if self.startswith(_META_PREFIX):
            return ChannelType.META
        if self.startswith(_SERVICE_PREFIX):
            return ChannelType.SERVICE
        return ChannelType.BROADCAST

    def has_wildcard(self) -> bool:
        """Whether the channel ends with ``*`` or ``**``."""
        return self.endswith("*")

    def is_valid(self) -> bool:
        """Check, as far as possible, that the channel name is valid."""
        if "*" in self and not self.has_wildcard():
            return False
        return self.startswith("/")

    def match(self, other: str) -> bool:
        """Whether ``other`` matches this channel, wildcards included.

        Wildcards are only valid after the last ``/``.
        """
        if self.has_wildcard():
            return self._match_wildcards(str(other))
        return str(self) == str(other)

    def _match_wildcards(self, other: str) -> bool:
        index = self.rfind("/")
        if index == -1:
            return False
        if not other.startswith(self[:index]) or len(other) <= index:
            return False

        wildcards = self[index + 1:]
        remainder = other[index + 1:]
        if wildcards == "*":
            return "/" not in remainder
        if wildcards == "**":
            return True
        return False


META_HANDSHAKE = Channel("/meta/handshake")
META_CONNECT = Channel("/meta/connect")
META_DISCONNECT = Channel("/meta/disconnect")
META_SUBSCRIBE = Channel("/meta/subscribe")
META_UNSUBSCRIBE = Channel("/meta/unsubscribe")