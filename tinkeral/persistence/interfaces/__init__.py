"""Persistence contracts."""

from .repos import ConversationNotFoundError, ConversationRepository, UPDATABLE_FIELDS, validate_changes

__all__ = ["ConversationNotFoundError", "ConversationRepository", "UPDATABLE_FIELDS", "validate_changes"]
