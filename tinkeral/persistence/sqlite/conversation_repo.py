"""SQLite-backed ``ConversationRepository``.

Each operation runs in its own transaction (``with conn:``). Reads rebuild
fresh ``Conversation`` objects from the JSON columns, so callers never share
state with the store.
"""

from __future__ import annotations

import json
import sqlite3
import threading
from typing import Any, Dict, List, Mapping, Optional

from ...base.models import Conversation, now_ms
from ..interfaces.repos import ConversationNotFoundError, validate_changes

_COLUMNS = (
    "id, title, model_id, parameters_json, system_prompt, messages_json, "
    "metadata_json, created_at, updated_at"
)


def _to_row(conversation: Conversation) -> Dict[str, Any]:
    data = conversation.to_dict()
    return {
        "id": conversation.id,
        "title": conversation.title,
        "model_id": conversation.model_id,
        "parameters_json": json.dumps(data["parameters"], ensure_ascii=False),
        "system_prompt": conversation.system_prompt,
        "messages_json": json.dumps(data["messages"], ensure_ascii=False),
        "metadata_json": json.dumps(data["metadata"], ensure_ascii=False) if "metadata" in data else None,
        "created_at": conversation.created_at,
        "updated_at": conversation.updated_at,
    }


def _from_row(row: sqlite3.Row) -> Conversation:
    record: Dict[str, Any] = {
        "id": row["id"],
        "title": row["title"],
        "modelId": row["model_id"],
        "parameters": json.loads(row["parameters_json"]),
        "systemPrompt": row["system_prompt"],
        "messages": json.loads(row["messages_json"]),
        "createdAt": row["created_at"],
        "updatedAt": row["updated_at"],
    }
    if row["metadata_json"]:
        record["metadata"] = json.loads(row["metadata_json"])
    return Conversation.from_dict(record)


class ConversationRepoSqlite:
    """Conversation store on a ``sqlite3`` connection (see ``engine.init_schema``)."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._lock = threading.Lock()

    def create(self, conversation: Conversation) -> str:
        row = _to_row(conversation)
        placeholders = ", ".join(f":{k}" for k in row)
        with self._lock, self.conn:
            self.conn.execute(f"INSERT INTO conversations({', '.join(row)}) VALUES({placeholders})", row)
        return conversation.id

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            r = self.conn.execute(
                f"SELECT {_COLUMNS} FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
        return _from_row(r) if r else None

    def get_all(self) -> List[Conversation]:
        """Return every conversation, most recently updated first."""
        with self._lock:
            rows = self.conn.execute(
                f"SELECT {_COLUMNS} FROM conversations ORDER BY updated_at DESC"
            ).fetchall()
        return [_from_row(r) for r in rows]

    def update(self, conversation_id: str, changes: Mapping[str, Any]) -> None:
        validate_changes(changes)
        with self._lock, self.conn:
            r = self.conn.execute(
                f"SELECT {_COLUMNS} FROM conversations WHERE id = ?", (conversation_id,)
            ).fetchone()
            if r is None:
                raise ConversationNotFoundError(conversation_id)
            conversation = _from_row(r)
            for key, value in changes.items():
                if key != "updated_at":
                    setattr(conversation, key, value)
            conversation.touch(changes.get("updated_at", now_ms()))
            row = _to_row(conversation)
            assignments = ", ".join(f"{k} = :{k}" for k in row if k != "id")
            self.conn.execute(f"UPDATE conversations SET {assignments} WHERE id = :id", row)

    def delete(self, conversation_id: str) -> None:
        with self._lock, self.conn:
            self.conn.execute("DELETE FROM conversations WHERE id = ?", (conversation_id,))


__all__ = ["ConversationRepoSqlite"]
