"""Repository protocol for conversation persistence.

The orchestrator depends only on :class:`ConversationRepository`; concrete
implementations live under ``persistence/memory`` and ``persistence/sqlite``.

Semantics
---------
- ``update`` applies a partial change set keyed by ``Conversation`` attribute
  names and always advances ``updated_at`` (to the supplied value or now,
  never backwards).
- ``update`` and ``delete`` on an unknown id: ``update`` raises
  :class:`ConversationNotFoundError`; ``delete`` is a no-op.
- Implementations return copies; mutating a returned conversation does not
  change stored state.
"""

from __future__ import annotations

from typing import Any, List, Mapping, Optional, Protocol, runtime_checkable

from ...base.models import Conversation

UPDATABLE_FIELDS = frozenset(
    {"title", "messages", "model_id", "parameters", "system_prompt", "metadata", "updated_at"}
)


class ConversationNotFoundError(KeyError):
    """Raised when a repository operation targets an unknown conversation id."""


@runtime_checkable
class ConversationRepository(Protocol):
    def create(self, conversation: Conversation) -> str:
        """Store ``conversation`` and return its id."""
        ...

    def get(self, conversation_id: str) -> Optional[Conversation]:
        ...

    def get_all(self) -> List[Conversation]:
        ...

    def update(self, conversation_id: str, changes: Mapping[str, Any]) -> None:
        """Apply ``changes`` and bump ``updated_at``."""
        ...

    def delete(self, conversation_id: str) -> None:
        ...


def validate_changes(changes: Mapping[str, Any]) -> None:
    """Reject keys that are not updatable conversation attributes."""
    unknown = set(changes) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Unsupported conversation fields: {sorted(unknown)}")


__all__ = [
    "ConversationRepository",
    "ConversationNotFoundError",
    "UPDATABLE_FIELDS",
    "validate_changes",
]
