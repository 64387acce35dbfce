"""SQLite persistence adapter.

This implementation uses aiosqlite for async SQLite operations.
It's suitable for development and single-host deployments.
"""

import json
from pathlib import Path
from typing import List, Optional

import aiosqlite

from ..core.models import SerializedSession
from .base import PersistenceAdapter


class SQLitePersistenceAdapter(PersistenceAdapter):
    """Stores one row per session in a SQLite database."""

    def __init__(self, db_path: str = "data/sessions.db"):
        """Initialize SQLite persistence.

        Args:
            db_path: Path to the SQLite database file, or ``:memory:``
        """
        self.db_path = db_path
        if db_path != ":memory:":
            Path(db_path).parent.mkdir(parents=True, exist_ok=True)
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Open the connection and create tables."""
        if self._connection:
            return
        self._connection = await aiosqlite.connect(str(self.db_path))
        await self._create_tables()

    async def close(self) -> None:
        """Close database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    async def _create_tables(self) -> None:
        await self._connection.executescript("""
            CREATE TABLE IF NOT EXISTS sessions (
                session_id TEXT PRIMARY KEY,
                current_stage TEXT NOT NULL,
                research_topic TEXT NOT NULL DEFAULT '',
                data TEXT NOT NULL,
                timestamp INTEGER NOT NULL
            );

            CREATE INDEX IF NOT EXISTS idx_sessions_timestamp ON sessions(timestamp);
        """)
        await self._connection.commit()

    async def _conn(self) -> aiosqlite.Connection:
        if not self._connection:
            await self.initialize()
        return self._connection

    async def save(self, session_id: str, state: SerializedSession) -> None:
        conn = await self._conn()
        payload = state.model_dump(mode="json")
        async with conn.execute(
            """
            INSERT OR REPLACE INTO sessions (
                session_id, current_stage, research_topic, data, timestamp
            ) VALUES (?, ?, ?, ?, ?)
            """,
            (
                session_id,
                payload["current_stage"],
                payload["research_topic"],
                json.dumps(payload["data"], ensure_ascii=False),
                payload["timestamp"],
            )
        ):
            pass
        await conn.commit()

    async def load(self, session_id: str) -> Optional[SerializedSession]:
        conn = await self._conn()
        async with conn.execute(
            "SELECT session_id, current_stage, research_topic, data, timestamp "
            "FROM sessions WHERE session_id = ?",
            (session_id,)
        ) as cursor:
            row = await cursor.fetchone()
        if not row:
            return None
        return SerializedSession(
            session_id=row[0],
            current_stage=row[1],
            research_topic=row[2],
            data=json.loads(row[3]) if row[3] else {},
            timestamp=row[4],
        )

    async def delete(self, session_id: str) -> None:
        conn = await self._conn()
        async with conn.execute(
            "DELETE FROM sessions WHERE session_id = ?",
            (session_id,)
        ):
            pass
        await conn.commit()

    async def list(self) -> List[str]:
        conn = await self._conn()
        ids = []
        async with conn.execute("SELECT session_id FROM sessions ORDER BY timestamp DESC") as cursor:
            async for row in cursor:
                ids.append(row[0])
        return ids
