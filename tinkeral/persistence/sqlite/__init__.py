"""SQLite persistence backend."""

from .conversation_repo import ConversationRepoSqlite
from .engine import create_connection, get_db_path, init_schema

__all__ = ["ConversationRepoSqlite", "create_connection", "get_db_path", "init_schema"]
