"""In-memory ``ConversationRepository``.

Stores serialized snapshots so callers never share mutable state with the
store. Thread-safe via a single lock.
"""

from __future__ import annotations

import threading
from typing import Any, Dict, List, Mapping, Optional

from ...base.models import Conversation, now_ms
from ..interfaces.repos import ConversationNotFoundError, validate_changes


class InMemoryConversationRepo:
    """Dictionary-backed conversation store for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._rows: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def create(self, conversation: Conversation) -> str:
        with self._lock:
            self._rows[conversation.id] = conversation.to_dict()
        return conversation.id

    def get(self, conversation_id: str) -> Optional[Conversation]:
        with self._lock:
            row = self._rows.get(conversation_id)
        return Conversation.from_dict(row) if row is not None else None

    def get_all(self) -> List[Conversation]:
        with self._lock:
            rows = list(self._rows.values())
        return [Conversation.from_dict(r) for r in rows]

    def update(self, conversation_id: str, changes: Mapping[str, Any]) -> None:
        validate_changes(changes)
        with self._lock:
            row = self._rows.get(conversation_id)
            if row is None:
                raise ConversationNotFoundError(conversation_id)
            conversation = Conversation.from_dict(row)
            for key, value in changes.items():
                if key != "updated_at":
                    setattr(conversation, key, value)
            conversation.touch(changes.get("updated_at", now_ms()))
            self._rows[conversation_id] = conversation.to_dict()

    def delete(self, conversation_id: str) -> None:
        with self._lock:
            self._rows.pop(conversation_id, None)

    def __len__(self) -> int:
        with self._lock:
            return len(self._rows)


__all__ = ["InMemoryConversationRepo"]
