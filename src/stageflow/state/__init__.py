"""State module for session persistence.

This module provides:
- Session state with turn-scoped temp keys
- The state manager used by the engine
- Pluggable persistence adapters (memory, JSON files, SQLite, PostgreSQL)
"""

import os
from typing import Optional

from .base import PersistenceAdapter
from .file import FilePersistenceAdapter, sanitize_session_id
from .memory import MemoryPersistenceAdapter
from .session import SessionState, StateManager
from .sqlite import SQLitePersistenceAdapter

try:
    from .postgres import PostgresPersistenceAdapter
except ImportError:
    PostgresPersistenceAdapter = None


def create_persistence_adapter(
    kind: Optional[str] = None,
    data_dir: Optional[str] = None,
    db_path: Optional[str] = None,
    dsn: Optional[str] = None,
) -> PersistenceAdapter:
    """Create a persistence adapter based on configuration.

    Args:
        kind: Adapter type ("memory", "file", "sqlite", "postgres", or None
            to read ``STAGEFLOW_PERSISTENCE``)
        data_dir: Data directory for the file adapter
        db_path: Database path for the sqlite adapter
        dsn: Connection string for the postgres adapter

    Returns:
        Configured persistence adapter

    Environment Variables (used when the matching argument is omitted):
        STAGEFLOW_PERSISTENCE: Adapter type (default: file)
        STAGEFLOW_DATA_DIR: Data directory for the file adapter
        SQLITE_DB_PATH: Database path for the sqlite adapter
        POSTGRES_DSN: Connection string for the postgres adapter
    """
    if kind is None:
        kind = os.getenv("STAGEFLOW_PERSISTENCE", "file")
    kind = kind.lower()

    if kind == "memory":
        return MemoryPersistenceAdapter()

    elif kind == "file":
        return FilePersistenceAdapter(data_dir or os.getenv("STAGEFLOW_DATA_DIR"))

    elif kind == "sqlite":
        db_path = db_path or os.getenv("SQLITE_DB_PATH", "data/sessions.db")
        return SQLitePersistenceAdapter(db_path=db_path)

    elif kind == "postgres":
        if PostgresPersistenceAdapter is None:
            raise ImportError(
                "PostgreSQL persistence requires asyncpg. "
                "Install it with: pip install asyncpg"
            )

        postgres_dsn = dsn or os.getenv("POSTGRES_DSN")
        if not postgres_dsn:
            raise ValueError(
                "POSTGRES_DSN environment variable is required for PostgreSQL persistence"
            )

        return PostgresPersistenceAdapter(dsn=postgres_dsn)

    else:
        raise ValueError(
            f"Unknown persistence type: {kind}. "
            f"Supported types: memory, file, sqlite, postgres"
        )


__all__ = [
    "PersistenceAdapter",
    "MemoryPersistenceAdapter",
    "FilePersistenceAdapter",
    "SQLitePersistenceAdapter",
    "PostgresPersistenceAdapter",
    "SessionState",
    "StateManager",
    "create_persistence_adapter",
    "sanitize_session_id",
]
