"""The interface that message extensions implement."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from .message import Message


class MessageExtender(ABC):
    """An extension that can inspect and change messages in both directions."""

    @abstractmethod
    def outgoing(self, message: Message) -> None:
        """Adjust a message before it is sent to the server."""

    @abstractmethod
    def incoming(self, message: Message) -> None:
        """Inspect or adjust a message received from the server."""

    @abstractmethod
    def registered(self, extension_name: str, client: Any) -> None:
        """Called after the extension is registered with a client."""

    @abstractmethod
    def unregistered(self) -> None:
        """Called when the extension is unregistered."""