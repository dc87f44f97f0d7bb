"""Messages exchanged over a jam session room, and their wire codec.

Transport events (``Play``, ``Pause``, ``Seek``, ``SongChange``) are commands
from the host; room notifications (``ParticipantJoined``,
``ParticipantLeft``, ``QueueUpdated``) keep every client's view of the
session current. All of them serialize to the payload shapes of the
socket protocol, e.g. ``jam:play {songId, position}``.
"""

from __future__ import annotations

import time
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field

from jam_sync.domain.jam.entities import UserProfile
from jam_sync.domain.jam.exceptions import UnknownEventError
from jam_sync.domain.jam.value_objects import SongIdField
from jam_sync.domain.shared.constants import ChannelEvents, WireKeys
from jam_sync.domain.shared.types import (
    NonNegativeFloat,
    NonNegativeInt,
    PositionSeconds,
    SessionIdStr,
    UserIdStr,
)


class ChannelMessage(BaseModel):
    """Base class for everything broadcast to a session room."""

    model_config = ConfigDict(frozen=True)

    EVENT_NAME: ClassVar[str] = ""

    session_id: SessionIdStr
    sent_at: NonNegativeFloat = Field(default_factory=time.time)
    # Monotonic per sender; None for senders that do not number their events.
    seq: NonNegativeInt | None = None

    @property
    def name(self) -> str:
        return self.EVENT_NAME

    def body(self) -> dict[str, Any]:
        return {}

    def to_payload(self, *, include_session: bool = True) -> dict[str, Any]:
        """Serialize to the wire payload.

        ``include_session`` adds the ``jamSessionId`` routing key; payloads
        without it are matched to the receiving room instead.
        """
        payload: dict[str, Any] = {}
        if include_session:
            payload[WireKeys.SESSION_ID] = self.session_id
        payload.update(self.body())
        payload[WireKeys.SENT_AT] = self.sent_at
        if self.seq is not None:
            payload[WireKeys.SEQ] = self.seq
        return payload


class TransportEvent(ChannelMessage):
    """A playback-affecting command originated by the host."""


class Play(TransportEvent):
    EVENT_NAME: ClassVar[str] = ChannelEvents.PLAY

    song_id: SongIdField
    position: PositionSeconds = 0.0

    def body(self) -> dict[str, Any]:
        return {WireKeys.SONG_ID: self.song_id.value, WireKeys.POSITION: self.position}


class Pause(TransportEvent):
    EVENT_NAME: ClassVar[str] = ChannelEvents.PAUSE

    position: PositionSeconds = 0.0

    def body(self) -> dict[str, Any]:
        return {WireKeys.POSITION: self.position}


class Seek(TransportEvent):
    EVENT_NAME: ClassVar[str] = ChannelEvents.SEEK

    position: PositionSeconds

    def body(self) -> dict[str, Any]:
        return {WireKeys.POSITION: self.position}


class SongChange(TransportEvent):
    EVENT_NAME: ClassVar[str] = ChannelEvents.SONG_CHANGE

    song_id: SongIdField

    def body(self) -> dict[str, Any]:
        return {WireKeys.SONG_ID: self.song_id.value}


class ParticipantJoined(ChannelMessage):
    EVENT_NAME: ClassVar[str] = ChannelEvents.PARTICIPANT_JOINED

    user: UserProfile

    def body(self) -> dict[str, Any]:
        return {WireKeys.USER: self.user.to_payload()}


class ParticipantLeft(ChannelMessage):
    EVENT_NAME: ClassVar[str] = ChannelEvents.PARTICIPANT_LEFT

    user_id: UserIdStr

    def body(self) -> dict[str, Any]:
        return {WireKeys.USER_ID: self.user_id}


class QueueUpdated(ChannelMessage):
    EVENT_NAME: ClassVar[str] = ChannelEvents.QUEUE_UPDATED

    queue: list[SongIdField] = Field(default_factory=list)

    def body(self) -> dict[str, Any]:
        return {WireKeys.QUEUE: [song_id.value for song_id in self.queue]}


_MESSAGE_TYPES: dict[str, type[ChannelMessage]] = {
    cls.EVENT_NAME: cls
    for cls in (Play, Pause, Seek, SongChange, ParticipantJoined, ParticipantLeft, QueueUpdated)
}


def _queue_entry_id(entry: Any) -> Any:
    # Populated song documents carry their id as _id / songId / id.
    if isinstance(entry, dict):
        return entry.get("_id") or entry.get("songId") or entry.get("id")
    return entry


def parse_message(
    name: str, payload: dict[str, Any], *, session_id: str | None = None
) -> ChannelMessage:
    """Decode a wire payload into its message model.

    ``session_id`` fills in the room for relayed payloads, which arrive
    without ``jamSessionId``.

    Raises:
        UnknownEventError: ``name`` is not part of the protocol.
        pydantic.ValidationError: the payload does not match the event shape.
    """
    message_cls = _MESSAGE_TYPES.get(name)
    if message_cls is None:
        raise UnknownEventError(name)

    data: dict[str, Any] = {
        "session_id": payload.get(WireKeys.SESSION_ID) or session_id,
    }
    if payload.get(WireKeys.SENT_AT) is not None:
        data["sent_at"] = payload[WireKeys.SENT_AT]
    if payload.get(WireKeys.SEQ) is not None:
        data["seq"] = payload[WireKeys.SEQ]

    if WireKeys.SONG_ID in payload:
        data["song_id"] = payload[WireKeys.SONG_ID]
    if WireKeys.POSITION in payload and payload[WireKeys.POSITION] is not None:
        data["position"] = payload[WireKeys.POSITION]
    if WireKeys.USER in payload:
        data["user"] = payload[WireKeys.USER]
    if WireKeys.USER_ID in payload:
        data["user_id"] = payload[WireKeys.USER_ID]
    if WireKeys.QUEUE in payload:
        data["queue"] = [_queue_entry_id(entry) for entry in payload[WireKeys.QUEUE] or []]

    return message_cls.model_validate(data)
