"""
Normalized error types (closed taxonomy).

Every failure that crosses the provider boundary is classified into exactly
one ``ErrorType``. Values are lowercase snake_case and are part of the public
contract for logging and for the conversation session ``error_type`` field.
"""
from __future__ import annotations

from enum import Enum


class ErrorType(str, Enum):
    """Enumerated failure categories shared by adapters and the orchestrator."""

    NETWORK = "network"
    AUTH = "auth"
    RATE_LIMIT = "rate_limit"
    VALIDATION = "validation"
    SERVER = "server"
    QUOTA = "quota"
    MODEL_UNAVAILABLE = "model_unavailable"
    CONTENT_FILTER = "content_filter"
    CONTEXT_LENGTH = "context_length"
    CANCELLED = "cancelled"
    UNKNOWN = "unknown"


__all__ = ["ErrorType"]
