"""Transport channel over a socket.io connection to the jam relay."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any

import pydantic
import socketio
from socketio.exceptions import SocketIOError

from jam_sync.application.interfaces.transport_channel import MessageHandler, TransportChannel
from jam_sync.domain.jam.events import ChannelMessage, parse_message
from jam_sync.domain.jam.exceptions import ChannelUnavailableError
from jam_sync.domain.shared.constants import ChannelEvents
from jam_sync.domain.shared.exceptions import ValidationError
from jam_sync.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)


class SocketIOTransportChannel(TransportChannel):
    """Client side of the relay protocol.

    Whether the sender receives its own message is decided by the relay
    per event type (membership notices echo back, transport events do
    not), so ``exclude_self`` is informational here. Incoming events are
    queued and handled one at a time to preserve their arrival order.
    """

    def __init__(self, url: str, *, client: socketio.AsyncClient | None = None) -> None:
        self._url = url
        self._sio = client or socketio.AsyncClient(reconnection=True)
        self._rooms: set[str] = set()
        self._handlers: dict[str, list[MessageHandler]] = defaultdict(list)
        self._inbox: asyncio.Queue[ChannelMessage] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

        self._sio.on("connect", handler=self._on_connect)
        self._sio.on("disconnect", handler=self._on_disconnect)
        for name in ChannelEvents.ALL:
            self._sio.on(name, handler=self._event_handler(name))

    @property
    def client_id(self) -> str:
        return self._sio.sid or ""

    @property
    def is_connected(self) -> bool:
        return bool(self._sio.connected)

    async def connect(self) -> None:
        await self._sio.connect(self._url)

    async def disconnect(self) -> None:
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        await self._sio.disconnect()

    async def join(self, session_id: str) -> None:
        await self._send(ChannelEvents.JOIN_ROOM, session_id)
        self._rooms.add(session_id)
        logger.debug(LogTemplates.CHANNEL_JOINED, self.client_id, session_id)

    async def leave(self, session_id: str) -> None:
        self._rooms.discard(session_id)
        if self.is_connected:
            await self._send(ChannelEvents.LEAVE_ROOM, session_id)
        logger.debug(LogTemplates.CHANNEL_LEFT, self.client_id, session_id)

    async def broadcast(self, message: ChannelMessage, *, exclude_self: bool = True) -> None:
        await self._send(message.name, message.to_payload())

    def subscribe(self, session_id: str, handler: MessageHandler) -> None:
        self._handlers[session_id].append(handler)

    def unsubscribe(self, session_id: str, handler: MessageHandler) -> None:
        handlers = self._handlers.get(session_id, [])
        if handler in handlers:
            handlers.remove(handler)

    async def _send(self, event: str, data: Any) -> None:
        if not self.is_connected:
            raise ChannelUnavailableError()
        try:
            await self._sio.emit(event, data)
        except SocketIOError as e:
            raise ChannelUnavailableError(str(e)) from e

    async def _on_connect(self) -> None:
        logger.info(LogTemplates.CHANNEL_CONNECTED, self._url)
        # socket.io forgets room membership across reconnects.
        for session_id in list(self._rooms):
            await self._sio.emit(ChannelEvents.JOIN_ROOM, session_id)

    async def _on_disconnect(self, *args: Any) -> None:
        logger.info(LogTemplates.CHANNEL_DISCONNECTED)

    def _event_handler(self, name: str) -> Callable[..., Awaitable[None]]:
        async def handler(data: Any = None) -> None:
            self.receive(name, data)

        return handler

    def receive(self, name: str, data: Any) -> None:
        """Decode one incoming event and queue it for the subscribed handlers."""
        if not isinstance(data, dict):
            logger.warning(LogTemplates.CHANNEL_BAD_PAYLOAD, name, data)
            return

        # Relayed payloads without a routing key belong to our only room.
        fallback = next(iter(self._rooms)) if len(self._rooms) == 1 else None
        try:
            message = parse_message(name, data, session_id=fallback)
        except (ValidationError, pydantic.ValidationError) as e:
            logger.warning(LogTemplates.CHANNEL_BAD_PAYLOAD, name, e)
            return

        self._inbox.put_nowait(message)
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(self._dispatch_loop(), name="socketio-dispatch")

    async def drain(self) -> None:
        await self._inbox.join()

    async def _dispatch_loop(self) -> None:
        while True:
            message = await self._inbox.get()
            try:
                for handler in list(self._handlers.get(message.session_id, [])):
                    try:
                        await handler(message)
                    except Exception as e:
                        logger.exception(LogTemplates.CHANNEL_HANDLER_ERROR, message.name, e)
            finally:
                self._inbox.task_done()
