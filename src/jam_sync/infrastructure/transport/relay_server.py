"""socket.io relay: room membership and fan-out of jam session events."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any

import pydantic
import socketio

from jam_sync.domain.jam.events import parse_message
from jam_sync.domain.shared.constants import ChannelEvents, WireKeys
from jam_sync.domain.shared.exceptions import ValidationError
from jam_sync.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from jam_sync.application.services.snapshot_writer import SnapshotWriter
    from jam_sync.domain.jam.events import ChannelMessage

logger = logging.getLogger(__name__)

# Membership notices go to the whole room, sender included; everything
# else skips the socket it came from.
_INCLUDE_SENDER = frozenset(ChannelEvents.MEMBERSHIP)


def _session_id_from(data: Any) -> str | None:
    if isinstance(data, str):
        return data or None
    if isinstance(data, dict):
        value = data.get("sessionId") or data.get(WireKeys.SESSION_ID)
        return str(value) if value else None
    return None


class JamRelayServer:
    """Relays jam events between the sockets of a session room.

    The relay is stateless apart from socket.io's own room membership.
    Transport events are also handed to the ``SnapshotWriter`` so late
    joiners can bootstrap from the store.
    """

    def __init__(
        self,
        *,
        snapshot_writer: SnapshotWriter | None = None,
        server: socketio.AsyncServer | None = None,
        cors_allowed_origins: str | list[str] = "*",
    ) -> None:
        self._sio = server or socketio.AsyncServer(
            async_mode="asgi", cors_allowed_origins=cors_allowed_origins
        )
        self._snapshots = snapshot_writer
        self._register()

    @property
    def sio(self) -> socketio.AsyncServer:
        return self._sio

    def asgi_app(self, other_app: Any = None) -> socketio.ASGIApp:
        """Wrap ``other_app`` (the HTTP API) so both share one ASGI server."""
        return socketio.ASGIApp(self._sio, other_app)

    def _register(self) -> None:
        self._sio.on("connect", handler=self.on_connect)
        self._sio.on("disconnect", handler=self.on_disconnect)
        self._sio.on(ChannelEvents.JOIN_ROOM, handler=self.on_join)
        self._sio.on(ChannelEvents.LEAVE_ROOM, handler=self.on_leave)
        for name in ChannelEvents.ALL:
            self._sio.on(name, handler=self._relay_handler(name))

    def _relay_handler(self, name: str) -> Callable[..., Awaitable[None]]:
        async def handler(sid: str, data: Any = None) -> None:
            await self.relay(sid, name, data)

        return handler

    async def on_connect(self, sid: str, environ: dict[str, Any], auth: Any = None) -> None:
        logger.info(LogTemplates.RELAY_CLIENT_CONNECTED, sid)

    async def on_disconnect(self, sid: str, reason: Any = None) -> None:
        logger.info(LogTemplates.RELAY_CLIENT_DISCONNECTED, sid)

    async def on_join(self, sid: str, data: Any = None) -> None:
        session_id = _session_id_from(data)
        if session_id is None:
            logger.warning(LogTemplates.RELAY_MISSING_SESSION, ChannelEvents.JOIN_ROOM, sid)
            return
        await self._sio.enter_room(sid, ChannelEvents.room_name(session_id))
        logger.info(LogTemplates.RELAY_ROOM_JOINED, sid, session_id)

    async def on_leave(self, sid: str, data: Any = None) -> None:
        session_id = _session_id_from(data)
        if session_id is None:
            logger.warning(LogTemplates.RELAY_MISSING_SESSION, ChannelEvents.LEAVE_ROOM, sid)
            return
        await self._sio.leave_room(sid, ChannelEvents.room_name(session_id))
        logger.info(LogTemplates.RELAY_ROOM_LEFT, sid, session_id)

    async def relay(self, sid: str, name: str, data: Any) -> None:
        if not isinstance(data, dict) or not data.get(WireKeys.SESSION_ID):
            logger.warning(LogTemplates.RELAY_MISSING_SESSION, name, sid)
            return

        try:
            message = parse_message(name, data)
        except (ValidationError, pydantic.ValidationError) as e:
            logger.warning(LogTemplates.CHANNEL_BAD_PAYLOAD, name, e)
            return

        logger.debug(LogTemplates.RELAY_EVENT, name, message.session_id, sid)
        if self._snapshots is not None:
            await self._snapshots.record(message)

        await self._emit(sid, message)

    async def _emit(self, sid: str, message: ChannelMessage) -> None:
        room = ChannelEvents.room_name(message.session_id)
        payload = message.to_payload()
        if message.name in _INCLUDE_SENDER:
            await self._sio.emit(message.name, payload, room=room)
        else:
            await self._sio.emit(message.name, payload, room=room, skip_sid=sid)
