"""Display strings and retry hints keyed by :class:`ErrorType`."""

from __future__ import annotations

from typing import Dict

from .error_type import ErrorType

DEFAULT_USER_MESSAGE = "Something went wrong. Please try again."

USER_MESSAGES: Dict[ErrorType, str] = {
    ErrorType.NETWORK: "Network connection failed. Please check your internet connection.",
    ErrorType.AUTH: "Authentication failed. Please check your API key.",
    ErrorType.RATE_LIMIT: "Rate limit exceeded. Please try again later.",
    ErrorType.QUOTA: "Usage quota exhausted. Please check your plan or try again later.",
    ErrorType.MODEL_UNAVAILABLE: "The selected model is currently unavailable.",
    ErrorType.SERVER: "The AI provider is experiencing issues. Please try again later.",
    ErrorType.VALIDATION: "The request was rejected as invalid. Please adjust your input or parameters.",
    ErrorType.CONTENT_FILTER: "The response was blocked by the provider's safety filters.",
    ErrorType.CONTEXT_LENGTH: "The conversation is too long for this model. Start a new conversation or shorten it.",
    ErrorType.CANCELLED: "Generation was cancelled.",
    ErrorType.UNKNOWN: DEFAULT_USER_MESSAGE,
}

_RETRIABLE = frozenset(
    {ErrorType.NETWORK, ErrorType.RATE_LIMIT, ErrorType.SERVER, ErrorType.UNKNOWN}
)


def user_message_for(error_type: ErrorType) -> str:
    """Return the display string for ``error_type``."""
    return USER_MESSAGES.get(error_type, DEFAULT_USER_MESSAGE)


def is_retriable(error_type: ErrorType) -> bool:
    """Return True for types where a retry can plausibly succeed."""
    return error_type in _RETRIABLE


__all__ = ["USER_MESSAGES", "DEFAULT_USER_MESSAGE", "user_message_for", "is_retriable"]
