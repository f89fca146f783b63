"""Unified provider error taxonomy public surface.

This module re-exports the one-class-per-file implementations under
``tinkeral.base.errors_parts`` so callers have one stable import path for the
taxonomy, the normalizer and the nested error-body extractor.
"""

from .errors_parts.error_type import ErrorType
from .errors_parts.provider_error import ProviderError
from .errors_parts.empty_response_error import EmptyResponseError
from .errors_parts.nested_message import NestedErrorDetail, extract_nested_error
from .errors_parts.user_messages import is_retriable, user_message_for
from .errors_parts.classification import cancelled_error, normalize_error

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
