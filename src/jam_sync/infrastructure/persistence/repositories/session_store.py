"""SQLite implementation of the jam session store.

Membership and queue entries are stored one row per entry, so concurrent
joins and queue additions are independent inserts rather than rewrites of
a shared list. Every mutation runs inside a single ``BEGIN IMMEDIATE``
transaction that re-reads the session before changing it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Any

from jam_sync.domain.jam.entities import JamSession, Participant, SessionConfig
from jam_sync.domain.jam.exceptions import (
    NotAParticipantError,
    SessionNotFoundError,
    SongNotFoundError,
)
from jam_sync.domain.jam.repository import SessionStore
from jam_sync.domain.jam.value_objects import SessionEndReason, SongId
from jam_sync.domain.shared.constants import SessionDefaults
from jam_sync.domain.shared.datetime_utils import UtcDateTime, utcnow
from jam_sync.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    import aiosqlite

    from jam_sync.application.interfaces.catalog import SongCatalog

    from ..database import Database

logger = logging.getLogger(__name__)


def _ts(dt: datetime) -> str:
    # Fixed-width timestamps so string comparison in SQL orders correctly.
    return UtcDateTime(dt).db_timestamp


def _dt(value: str | None) -> datetime | None:
    return UtcDateTime.from_iso(value).dt if value else None


class SQLiteSessionStore(SessionStore):
    def __init__(self, database: Database, song_catalog: SongCatalog) -> None:
        self._db = database
        self._catalog = song_catalog

    async def create(self, host_id: str, config: SessionConfig) -> JamSession:
        session = JamSession.start(host_id, config)

        async with self._db.transaction() as conn:
            await conn.execute(
                """
                INSERT INTO jam_sessions (
                    id, name, host_id, current_song_id, playing, position,
                    last_updated, is_active, is_public, max_participants,
                    created_at, ended_at
                ) VALUES (?, ?, ?, NULL, 0, 0, ?, 1, ?, ?, ?, NULL)
                """,
                (
                    session.id,
                    session.name,
                    session.host_id,
                    _ts(session.last_updated),
                    int(session.is_public),
                    session.max_participants,
                    _ts(session.created_at),
                ),
            )
            host = session.participants[0]
            await conn.execute(
                "INSERT INTO jam_participants (session_id, user_id, joined_at) VALUES (?, ?, ?)",
                (session.id, host.user_id, _ts(host.joined_at)),
            )

        logger.info(LogTemplates.SESSION_CREATED, session.id, host_id)
        return session

    async def get(self, session_id: str) -> JamSession:
        async with self._db.connection() as conn:
            session = await self._load(conn, session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    async def join(self, session_id: str, user_id: str) -> JamSession:
        async with self._db.transaction() as conn:
            session = await self._load(conn, session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            # Raises on inactive or full sessions before anything is written.
            added = session.add_participant(user_id)
            if added:
                joined = session.participants[-1]
                await conn.execute(
                    """
                    INSERT OR IGNORE INTO jam_participants (session_id, user_id, joined_at)
                    VALUES (?, ?, ?)
                    """,
                    (session_id, user_id, _ts(joined.joined_at)),
                )

        if added:
            logger.info(LogTemplates.SESSION_JOINED, user_id, session_id)
        else:
            logger.debug(LogTemplates.SESSION_ALREADY_JOINED, user_id, session_id)
        return session

    async def leave(self, session_id: str, user_id: str) -> None:
        async with self._db.transaction() as conn:
            session = await self._load(conn, session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            await conn.execute(
                "DELETE FROM jam_participants WHERE session_id = ? AND user_id = ?",
                (session_id, user_id),
            )
            was_active = session.is_active
            reason = session.remove_participant(user_id)
            if was_active and reason is not None:
                await self._write_deactivation(conn, session)

        logger.info(LogTemplates.SESSION_LEFT, user_id, session_id)
        if was_active and reason is not None:
            logger.info(LogTemplates.SESSION_ENDED, session_id, reason.value)

    async def end(self, session_id: str, user_id: str) -> None:
        async with self._db.transaction() as conn:
            session = await self._load(conn, session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            session.end(user_id)
            await self._write_deactivation(conn, session)

        logger.info(LogTemplates.SESSION_ENDED, session_id, SessionEndReason.HOST_ENDED.value)

    async def append_to_queue(self, session_id: str, user_id: str, song_id: SongId) -> JamSession:
        session = await self.get(session_id)
        if not session.is_participant(user_id):
            raise NotAParticipantError(session_id, user_id)

        if await self._catalog.resolve(song_id) is None:
            raise SongNotFoundError(song_id.value)

        async with self._db.transaction() as conn:
            session = await self._load(conn, session_id)
            if session is None:
                raise SessionNotFoundError(session_id)

            if session.enqueue(user_id, song_id):
                await conn.execute(
                    """
                    INSERT OR IGNORE INTO jam_queue (session_id, song_id, added_by, added_at)
                    VALUES (?, ?, ?, ?)
                    """,
                    (session_id, song_id.value, user_id, _ts(utcnow())),
                )
                logger.info(LogTemplates.SESSION_QUEUE_APPENDED, song_id, session_id)

        return session

    async def update_transport_state(
        self,
        session_id: str,
        *,
        current_song_id: SongId | None = None,
        position: float | None = None,
        playing: bool | None = None,
    ) -> None:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE jam_sessions SET
                    current_song_id = COALESCE(?, current_song_id),
                    position = COALESCE(?, position),
                    playing = COALESCE(?, playing),
                    last_updated = ?
                WHERE id = ?
                """,
                (
                    current_song_id.value if current_song_id is not None else None,
                    max(0.0, float(position)) if position is not None else None,
                    int(playing) if playing is not None else None,
                    _ts(utcnow()),
                    session_id,
                ),
            )
            if cursor.rowcount == 0:
                raise SessionNotFoundError(session_id)

    async def list_visible(
        self, user_id: str, limit: int = SessionDefaults.LIST_LIMIT
    ) -> list[JamSession]:
        async with self._db.connection() as conn:
            cursor = await conn.execute(
                """
                SELECT s.* FROM jam_sessions s
                WHERE s.is_active = 1
                  AND (
                    s.is_public = 1
                    OR s.host_id = ?
                    OR EXISTS (
                        SELECT 1 FROM jam_participants p
                        WHERE p.session_id = s.id AND p.user_id = ?
                    )
                  )
                ORDER BY s.created_at DESC
                LIMIT ?
                """,
                (user_id, user_id, limit),
            )
            rows = await cursor.fetchall()
            return [await self._hydrate(conn, dict(row)) for row in rows]

    async def deactivate_stale(self, older_than: datetime) -> int:
        async with self._db.transaction() as conn:
            cursor = await conn.execute(
                """
                UPDATE jam_sessions SET is_active = 0, playing = 0, ended_at = ?
                WHERE is_active = 1 AND last_updated < ?
                """,
                (_ts(utcnow()), _ts(older_than)),
            )
            return cursor.rowcount

    async def _write_deactivation(self, conn: aiosqlite.Connection, session: JamSession) -> None:
        await conn.execute(
            "UPDATE jam_sessions SET is_active = 0, playing = 0, ended_at = ? WHERE id = ?",
            (_ts(session.ended_at or utcnow()), session.id),
        )

    async def _load(self, conn: aiosqlite.Connection, session_id: str) -> JamSession | None:
        cursor = await conn.execute("SELECT * FROM jam_sessions WHERE id = ?", (session_id,))
        row = await cursor.fetchone()
        if row is None:
            return None
        return await self._hydrate(conn, dict(row))

    async def _hydrate(self, conn: aiosqlite.Connection, row: dict[str, Any]) -> JamSession:
        session_id = row["id"]
        cursor = await conn.execute(
            """
            SELECT user_id, joined_at FROM jam_participants
            WHERE session_id = ?
            ORDER BY joined_at ASC, rowid ASC
            """,
            (session_id,),
        )
        participant_rows = await cursor.fetchall()

        cursor = await conn.execute(
            "SELECT song_id FROM jam_queue WHERE session_id = ? ORDER BY id ASC",
            (session_id,),
        )
        queue_rows = await cursor.fetchall()

        return JamSession(
            id=session_id,
            name=row["name"],
            host_id=row["host_id"],
            participants=[
                Participant(user_id=r["user_id"], joined_at=UtcDateTime.from_iso(r["joined_at"]).dt)
                for r in participant_rows
            ],
            queue=[SongId(r["song_id"]) for r in queue_rows],
            current_song_id=SongId(row["current_song_id"]) if row["current_song_id"] else None,
            playing=bool(row["playing"]),
            position=float(row["position"]),
            last_updated=UtcDateTime.from_iso(row["last_updated"]).dt,
            is_active=bool(row["is_active"]),
            is_public=bool(row["is_public"]),
            max_participants=int(row["max_participants"]),
            created_at=UtcDateTime.from_iso(row["created_at"]).dt,
            ended_at=_dt(row["ended_at"]),
        )
