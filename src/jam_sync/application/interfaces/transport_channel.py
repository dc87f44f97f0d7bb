"""Port interface for the room-scoped real-time channel."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...domain.jam.events import ChannelMessage

MessageHandler = Callable[["ChannelMessage"], Awaitable[None]]


class TransportChannel(ABC):
    """Bidirectional pub/sub with one room per jam session.

    Delivery is at-most-once with no acknowledgement or retry. The only
    ordering guarantee is that one sender's messages reach any single
    receiver in send order. Receivers that are disconnected miss messages.
    """

    @property
    @abstractmethod
    def client_id(self) -> str:
        """Identifier of this connection, used to exclude the sender."""
        ...

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        ...

    @abstractmethod
    async def join(self, session_id: str) -> None:
        """Subscribe this connection to the session room."""
        ...

    @abstractmethod
    async def leave(self, session_id: str) -> None:
        """Unsubscribe this connection from the session room."""
        ...

    @abstractmethod
    async def broadcast(self, message: ChannelMessage, *, exclude_self: bool = True) -> None:
        """Send ``message`` to everyone in ``message.session_id``'s room.

        Raises:
            ChannelUnavailableError: The connection is down.
        """
        ...

    @abstractmethod
    def subscribe(self, session_id: str, handler: MessageHandler) -> None:
        """Register ``handler`` for messages delivered to the session room."""
        ...

    @abstractmethod
    def unsubscribe(self, session_id: str, handler: MessageHandler) -> None:
        ...
