"""In-memory persistence backend."""

from .conversation_repo import InMemoryConversationRepo

__all__ = ["InMemoryConversationRepo"]
