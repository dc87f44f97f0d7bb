"""In-process transport: rooms, fan-out and simulated network latency.

Each receiving channel owns one FIFO delivery queue drained by a single
worker task, so messages from any sender reach a receiver in send order.
A per-channel ``latency`` delays every delivery to that receiver, which
is how tests model fast and slow participants.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections import defaultdict
from collections.abc import Awaitable, Callable
from typing import Any
from uuid import uuid4

from jam_sync.application.interfaces.transport_channel import MessageHandler, TransportChannel
from jam_sync.domain.jam.events import ChannelMessage
from jam_sync.domain.jam.exceptions import ChannelUnavailableError
from jam_sync.domain.shared.messages import LogTemplates

logger = logging.getLogger(__name__)

MessageObserver = Callable[[ChannelMessage], Awaitable[Any]]


class InMemoryTransportHub:
    """Server side of the in-process transport.

    Observers see every relayed message once, the way the socket relay
    lets the snapshot writer persist transport state.
    """

    def __init__(self) -> None:
        self._rooms: dict[str, set[InMemoryTransportChannel]] = defaultdict(set)
        self._channels: list[InMemoryTransportChannel] = []
        self._observers: list[MessageObserver] = []

    def create_channel(
        self, client_id: str | None = None, *, latency: float = 0.0
    ) -> InMemoryTransportChannel:
        channel = InMemoryTransportChannel(self, client_id or uuid4().hex, latency=latency)
        self._channels.append(channel)
        return channel

    def add_observer(self, observer: MessageObserver) -> None:
        self._observers.append(observer)

    def members(self, session_id: str) -> set[str]:
        return {channel.client_id for channel in self._rooms.get(session_id, set())}

    async def publish(
        self, sender: InMemoryTransportChannel, message: ChannelMessage, *, exclude_self: bool
    ) -> None:
        for observer in self._observers:
            try:
                await observer(message)
            except Exception as e:
                logger.exception(LogTemplates.CHANNEL_HANDLER_ERROR, message.name, e)

        room = self._rooms.get(message.session_id, set())
        for receiver in sorted(room, key=lambda c: c.client_id):
            if exclude_self and receiver is sender:
                continue
            receiver.enqueue(message)

    async def drain(self) -> None:
        """Wait until every queued message has been delivered."""
        for channel in list(self._channels):
            await channel.drain()

    async def close(self) -> None:
        for channel in list(self._channels):
            await channel.close()
        self._channels.clear()
        self._rooms.clear()
        self._observers.clear()

    def add_member(self, session_id: str, channel: InMemoryTransportChannel) -> None:
        self._rooms[session_id].add(channel)

    def remove_member(self, session_id: str, channel: InMemoryTransportChannel) -> None:
        room = self._rooms.get(session_id)
        if room is None:
            return
        room.discard(channel)
        if not room:
            del self._rooms[session_id]


class InMemoryTransportChannel(TransportChannel):
    def __init__(self, hub: InMemoryTransportHub, client_id: str, *, latency: float = 0.0) -> None:
        self._hub = hub
        self._client_id = client_id
        self._latency = max(0.0, latency)
        self._connected = True
        self._rooms: set[str] = set()
        self._handlers: dict[str, list[MessageHandler]] = defaultdict(list)
        self._queue: asyncio.Queue[tuple[float, ChannelMessage]] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None

    @property
    def client_id(self) -> str:
        return self._client_id

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def rooms(self) -> frozenset[str]:
        return frozenset(self._rooms)

    @property
    def latency(self) -> float:
        return self._latency

    def set_latency(self, latency: float) -> None:
        self._latency = max(0.0, latency)

    async def join(self, session_id: str) -> None:
        if not self._connected:
            raise ChannelUnavailableError()
        self._rooms.add(session_id)
        self._hub.add_member(session_id, self)
        logger.debug(LogTemplates.CHANNEL_JOINED, self._client_id, session_id)

    async def leave(self, session_id: str) -> None:
        self._rooms.discard(session_id)
        self._hub.remove_member(session_id, self)
        logger.debug(LogTemplates.CHANNEL_LEFT, self._client_id, session_id)

    async def broadcast(self, message: ChannelMessage, *, exclude_self: bool = True) -> None:
        if not self._connected:
            raise ChannelUnavailableError()
        await self._hub.publish(self, message, exclude_self=exclude_self)

    def subscribe(self, session_id: str, handler: MessageHandler) -> None:
        self._handlers[session_id].append(handler)

    def unsubscribe(self, session_id: str, handler: MessageHandler) -> None:
        handlers = self._handlers.get(session_id, [])
        if handler in handlers:
            handlers.remove(handler)

    def disconnect(self) -> None:
        """Simulate a dropped connection; queued and future messages are lost."""
        self._connected = False

    def reconnect(self) -> None:
        """Restore the connection. Room membership survives the outage."""
        self._connected = True

    def enqueue(self, message: ChannelMessage) -> None:
        if not self._connected:
            logger.debug(LogTemplates.CHANNEL_DROPPED_EVENT, message.name, self._client_id)
            return
        loop = asyncio.get_running_loop()
        self._queue.put_nowait((loop.time() + self._latency, message))
        if self._worker is None or self._worker.done():
            self._worker = asyncio.create_task(
                self._deliver_loop(), name=f"transport-{self._client_id}"
            )

    async def drain(self) -> None:
        await self._queue.join()

    async def close(self) -> None:
        self._connected = False
        for session_id in list(self._rooms):
            await self.leave(session_id)
        if self._worker is not None:
            self._worker.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._worker
            self._worker = None
        # Release anyone blocked in drain().
        while not self._queue.empty():
            self._queue.get_nowait()
            self._queue.task_done()

    async def _deliver_loop(self) -> None:
        loop = asyncio.get_running_loop()
        while True:
            deliver_at, message = await self._queue.get()
            try:
                delay = deliver_at - loop.time()
                if delay > 0:
                    await asyncio.sleep(delay)
                await self._dispatch(message)
            finally:
                self._queue.task_done()

    async def _dispatch(self, message: ChannelMessage) -> None:
        if not self._connected:
            logger.debug(LogTemplates.CHANNEL_DROPPED_EVENT, message.name, self._client_id)
            return
        if message.session_id not in self._rooms:
            return

        for handler in list(self._handlers.get(message.session_id, [])):
            try:
                await handler(message)
            except Exception as e:
                logger.exception(LogTemplates.CHANNEL_HANDLER_ERROR, message.name, e)
