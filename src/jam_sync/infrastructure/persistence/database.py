"""aiosqlite access to the jam session tables.

Every operation opens its own connection. Writes go through `BEGIN IMMEDIATE`
transactions serialized by an in-process lock.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import uuid
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

import aiosqlite

from jam_sync.domain.shared.constants import DatabaseTables, DatabaseURLSchemes, SQLPragmas
from jam_sync.domain.shared.messages import LogTemplates

if TYPE_CHECKING:
    from ...config.settings import DatabaseSettings

logger = logging.getLogger(__name__)


class Database:
    def __init__(self, url: str, settings: DatabaseSettings | None = None) -> None:
        self._db_path = url.removeprefix("sqlite:///")

        self._initialized = False
        self._keepalive_conn: aiosqlite.Connection | None = None
        self._busy_timeout = settings.busy_timeout_ms if settings else 5000
        self._connection_timeout = settings.connection_timeout_s if settings else 10

        # Writers in this process queue here instead of failing on the SQLite
        # write lock. Shared-cache in-memory DBs report table locks immediately
        # (busy_timeout does not apply), so their readers queue as well.
        self._write_lock = asyncio.Lock()
        self._memory_name = uuid.uuid4().hex

    @property
    def db_path(self) -> str:
        return self._db_path

    @property
    def is_memory(self) -> bool:
        return self._db_path == DatabaseURLSchemes.MEMORY

    async def initialize(self) -> None:
        """Create the jam tables. Safe to call more than once."""
        if self._initialized:
            return

        if self.is_memory:
            # The shared in-memory database lives only while a connection holds it.
            if self._keepalive_conn is None:
                self._keepalive_conn = await self._connect()
            await self._ensure_schema(self._keepalive_conn)
            await self._keepalive_conn.commit()
        else:
            Path(self._db_path).parent.mkdir(parents=True, exist_ok=True)
            async with self.transaction() as conn:
                await self._ensure_schema(conn)

        self._initialized = True
        logger.info(LogTemplates.DATABASE_INITIALIZED, self._db_path)

    async def _ensure_schema(self, conn: aiosqlite.Connection) -> None:
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.JAM_SESSIONS} (
                id TEXT PRIMARY KEY,
                name TEXT NOT NULL,
                host_id TEXT NOT NULL,
                current_song_id TEXT,
                playing INTEGER NOT NULL DEFAULT 0,
                position REAL NOT NULL DEFAULT 0,
                last_updated TEXT NOT NULL,
                is_active INTEGER NOT NULL DEFAULT 1,
                is_public INTEGER NOT NULL DEFAULT 0,
                max_participants INTEGER NOT NULL DEFAULT 10,
                created_at TEXT NOT NULL,
                ended_at TEXT
            )
            """
        )
        await conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_jam_sessions_active_created "
            f"ON {DatabaseTables.JAM_SESSIONS}(is_active, created_at)"
        )

        # One row per member: concurrent joins insert rows, never rewrite a list.
        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.JAM_PARTICIPANTS} (
                session_id TEXT NOT NULL,
                user_id TEXT NOT NULL,
                joined_at TEXT NOT NULL,
                PRIMARY KEY (session_id, user_id),
                FOREIGN KEY(session_id) REFERENCES {DatabaseTables.JAM_SESSIONS}(id)
                    ON DELETE CASCADE
            )
            """
        )
        await conn.execute(
            f"CREATE INDEX IF NOT EXISTS idx_jam_participants_user "
            f"ON {DatabaseTables.JAM_PARTICIPANTS}(user_id)"
        )

        await conn.execute(
            f"""
            CREATE TABLE IF NOT EXISTS {DatabaseTables.JAM_QUEUE} (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                session_id TEXT NOT NULL,
                song_id TEXT NOT NULL,
                added_by TEXT NOT NULL,
                added_at TEXT NOT NULL,
                UNIQUE (session_id, song_id),
                FOREIGN KEY(session_id) REFERENCES {DatabaseTables.JAM_SESSIONS}(id)
                    ON DELETE CASCADE
            )
            """
        )

    async def _connect(self) -> aiosqlite.Connection:
        if self.is_memory:
            target = DatabaseURLSchemes.MEMORY_SHARED_URI.format(name=self._memory_name)
        else:
            target = self._db_path

        # Timestamps are stored as ISO text and parsed by the store, not by sqlite3.
        conn = await aiosqlite.connect(
            target, detect_types=0, uri=self.is_memory, timeout=self._connection_timeout
        )
        conn.row_factory = aiosqlite.Row
        for pragma in (
            SQLPragmas.JOURNAL_MODE_WAL,
            SQLPragmas.FOREIGN_KEYS_ON,
            SQLPragmas.BUSY_TIMEOUT.format(timeout=self._busy_timeout),
        ):
            await conn.execute(pragma)
        return conn

    @asynccontextmanager
    async def _open(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        conn = await self._connect()
        try:
            yield conn
        except Exception:
            with contextlib.suppress(Exception):
                await conn.rollback()
            raise
        finally:
            await conn.close()

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        if self.is_memory:
            async with self._write_lock, self._open() as conn:
                yield conn
        else:
            async with self._open() as conn:
                yield conn

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a write transaction with auto-commit/rollback.

        The transaction starts with ``BEGIN IMMEDIATE`` so read-modify-write
        sequences inside it see no interleaved writers.
        """
        async with self._write_lock, self._open() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                yield conn
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def execute(self, sql: str, parameters: tuple[Any, ...] = ()) -> aiosqlite.Cursor:
        """Run one statement in its own write transaction."""
        async with self.transaction() as conn:
            return await conn.execute(sql, parameters)

    async def fetch_one(self, sql: str, parameters: tuple[Any, ...] = ()) -> dict[str, Any] | None:
        async with self.connection() as conn:
            cursor = await conn.execute(sql, parameters)
            row = await cursor.fetchone()
        return dict(row) if row is not None else None

    async def fetch_all(self, sql: str, parameters: tuple[Any, ...] = ()) -> list[dict[str, Any]]:
        async with self.connection() as conn:
            cursor = await conn.execute(sql, parameters)
            rows = await cursor.fetchall()
        return [dict(row) for row in rows]

    async def close(self) -> None:
        """Drop the in-memory keepalive connection, discarding its data."""
        conn, self._keepalive_conn = self._keepalive_conn, None
        if conn is not None:
            await conn.close()
        self._initialized = False
        logger.info(LogTemplates.DATABASE_CLOSED)
