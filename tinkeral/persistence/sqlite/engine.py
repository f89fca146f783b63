"""SQLite engine helpers for the persistence layer.

Purpose
-------
Open SQLite connections with consistent PRAGMAs and create the
``conversations`` table when missing.

Reliability strategy
--------------------
- WAL journaling with NORMAL synchronous mode.
- A ``busy_timeout`` from ``tinkeral.config.defaults`` to absorb short lock
  contention.
- ``check_same_thread=False`` because the orchestrator may persist from a
  thread other than the one that opened the connection; repositories
  serialize access with their own lock.
"""

from __future__ import annotations

import os
import sqlite3
from pathlib import Path
from typing import Optional

from ...config.defaults import (
    SQLITE_BUSY_TIMEOUT_MS,
    SQLITE_DEFAULT_FILENAME,
    SQLITE_JOURNAL_MODE,
    SQLITE_SYNCHRONOUS,
)
from ...config.env import DB_PATH_ENV

DEFAULT_DB_DIR = Path("~/.tinkeral").expanduser()


def get_db_path(db_path: Optional[str] = None) -> Path:
    """Return the database path: explicit value, ``$TINKERAL_DB_PATH`` or the default."""
    if db_path:
        return Path(db_path).expanduser()
    if env_path := os.environ.get(DB_PATH_ENV):
        return Path(env_path).expanduser()
    return DEFAULT_DB_DIR / SQLITE_DEFAULT_FILENAME


def create_connection(db_path: Optional[str] = None) -> sqlite3.Connection:
    """Open a connection with ``sqlite3.Row`` rows and the standard PRAGMAs.

    The special path ``":memory:"`` opens a private in-memory database.
    """
    if db_path == ":memory:":
        conn = sqlite3.connect(":memory:", check_same_thread=False)
    else:
        path = get_db_path(db_path)
        path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(path), check_same_thread=False)
        conn.execute(f"PRAGMA journal_mode={SQLITE_JOURNAL_MODE};")
    conn.row_factory = sqlite3.Row
    conn.execute(f"PRAGMA synchronous={SQLITE_SYNCHRONOUS};")
    conn.execute(f"PRAGMA busy_timeout={SQLITE_BUSY_TIMEOUT_MS};")
    return conn


def init_schema(conn: sqlite3.Connection) -> None:
    """Create the ``conversations`` table and index if they do not exist, then commit.

    Messages, parameters and metadata are stored as JSON text columns using
    the camelCase record shape of the domain models.
    """
    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS conversations (
            id TEXT PRIMARY KEY,
            title TEXT NOT NULL,
            model_id TEXT NOT NULL,
            parameters_json TEXT NOT NULL,
            system_prompt TEXT,
            messages_json TEXT NOT NULL,
            metadata_json TEXT,
            created_at INTEGER NOT NULL,
            updated_at INTEGER NOT NULL
        )
        """
    )
    conn.execute(
        "CREATE INDEX IF NOT EXISTS idx_conversations_updated_at ON conversations(updated_at DESC)"
    )
    conn.commit()


__all__ = ["DEFAULT_DB_DIR", "get_db_path", "create_connection", "init_schema"]
