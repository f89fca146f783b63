"""Errors parts package public surface.

Re-exports individual error taxonomy components for optional direct imports.
Prefer importing from `tinkeral.base.errors` for the stable surface.
"""

from .error_type import ErrorType
from .provider_error import ProviderError
from .empty_response_error import EmptyResponseError
from .nested_message import NestedErrorDetail, extract_nested_error
from .user_messages import is_retriable, user_message_for
from .classification import cancelled_error, normalize_error

__all__ = [
    "ErrorType",
    "ProviderError",
    "EmptyResponseError",
    "NestedErrorDetail",
    "extract_nested_error",
    "is_retriable",
    "user_message_for",
    "cancelled_error",
    "normalize_error",
]
