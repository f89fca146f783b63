"""Conversation persistence: repository contract and its backends."""

from .interfaces import ConversationNotFoundError, ConversationRepository
from .memory import InMemoryConversationRepo
from .sqlite import ConversationRepoSqlite, create_connection, init_schema

__all__ = [
    "ConversationNotFoundError",
    "ConversationRepository",
    "InMemoryConversationRepo",
    "ConversationRepoSqlite",
    "create_connection",
    "init_schema",
]
