"""
Error normalization: map arbitrary exceptions onto :class:`ProviderError`.

Classification is a single ordered table of ``(ErrorType, predicate)`` rules
evaluated over an :class:`ErrorFacts` snapshot of the raw failure. The first
matching rule wins and ``UNKNOWN`` is the fallback, so precedence is visible
in one place instead of being spread across nested conditionals.

Status precedence: the innermost ``code`` found in a JSON-encoded error body
wins over any status attribute carried by the exception object itself.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Tuple

from ..cancellation_parts.cancelled_error import CancelledError
from .empty_response_error import EmptyResponseError
from .error_type import ErrorType
from .nested_message import extract_nested_error
from .provider_error import ProviderError
from .user_messages import is_retriable, user_message_for


@dataclass(frozen=True)
class ErrorFacts:
    """Pre-computed view of a raw error used by classification rules."""

    exc: BaseException
    message: str
    lowered: str
    status: Optional[int]
    status_text: Optional[str]
    cancelled: bool


def _extract_status(exc: BaseException) -> Optional[int]:
    """Attempt to extract an HTTP status code from a provider exception.

    Supported attribute shapes (checked in order):
    - ``exc.status_code``
    - ``exc.status``
    - ``exc.code`` (google-api-core style exceptions)
    - ``exc.response.status_code``
    Returns ``None`` if no valid status can be found.
    """
    for attr in ("status_code", "status", "code"):
        val = getattr(exc, attr, None)
        if isinstance(val, int) and not isinstance(val, bool) and 100 <= val < 600:
            return val
    resp = getattr(exc, "response", None)
    if resp is not None:
        sc = getattr(resp, "status_code", None)
        if isinstance(sc, int) and 100 <= sc < 600:
            return sc
    return None


def _extract_retry_after(exc: BaseException) -> Optional[float]:
    """Read a retry hint from ``retry_after`` or a ``Retry-After`` header."""
    val = getattr(exc, "retry_after", None)
    if val is None:
        headers = getattr(getattr(exc, "response", None), "headers", None)
        if headers is not None and hasattr(headers, "get"):
            val = headers.get("Retry-After") or headers.get("retry-after")
    if val is None:
        return None
    try:
        seconds = float(val)
    except (TypeError, ValueError):
        return None
    return seconds if seconds >= 0 else None


def _mentions(facts: ErrorFacts, *needles: str) -> bool:
    return any(n in facts.lowered for n in needles)


def _is_network(f: ErrorFacts) -> bool:
    if isinstance(f.exc, (ConnectionError, TimeoutError)):
        return True
    return f.status is None and _mentions(f, "fetch", "network", "connection", "timed out")


_QUOTA_EXCEEDED = ("quota exceeded", "exceeded your current quota", "insufficient_quota", "out of quota")


def _is_quota(f: ErrorFacts) -> bool:
    """Hard quota exhaustion.

    A 429 is a quota failure only when the text says the quota is exceeded;
    the SDK's per-minute "Resource has been exhausted (e.g. check quota)" stays
    a retriable rate limit.
    """
    if _mentions(f, *_QUOTA_EXCEEDED):
        return True
    if f.status == 429:
        return False
    return _mentions(f, "quota") or (f.status_text or "").upper() == "RESOURCE_EXHAUSTED"


def _is_rate_limit(f: ErrorFacts) -> bool:
    return f.status == 429 or _mentions(f, "rate limit", "rate_limit", "too many requests")


def _is_auth(f: ErrorFacts) -> bool:
    return f.status in (401, 403) or _mentions(
        f, "api key", "api_key", "unauthorized", "unauthenticated", "permission denied"
    )


def _is_context_length(f: ErrorFacts) -> bool:
    return _mentions(
        f, "context length", "context window", "too many tokens", "token limit", "input is too long"
    )


def _is_content_filter(f: ErrorFacts) -> bool:
    if isinstance(f.exc, EmptyResponseError):
        return f.exc.finish_reason == "content_filter"
    return _mentions(f, "safety", "blocked", "content filter")


def _is_model_unavailable(f: ErrorFacts) -> bool:
    return f.status == 404 or _mentions(f, "model not found", "is not found", "not supported for")


def _is_validation(f: ErrorFacts) -> bool:
    return f.status in (400, 422) or _mentions(f, "invalid", "malformed")


def _is_server(f: ErrorFacts) -> bool:
    return f.status is not None and f.status >= 500


RULES: List[Tuple[ErrorType, Callable[[ErrorFacts], bool]]] = [
    (ErrorType.CANCELLED, lambda f: f.cancelled),
    (ErrorType.NETWORK, _is_network),
    (ErrorType.QUOTA, _is_quota),
    (ErrorType.RATE_LIMIT, _is_rate_limit),
    (ErrorType.AUTH, _is_auth),
    (ErrorType.CONTEXT_LENGTH, _is_context_length),
    (ErrorType.CONTENT_FILTER, _is_content_filter),
    (ErrorType.MODEL_UNAVAILABLE, _is_model_unavailable),
    (ErrorType.VALIDATION, _is_validation),
    (ErrorType.SERVER, _is_server),
]


def _gather_facts(exc: BaseException, cancellation_token: Any = None) -> ErrorFacts:
    nested = extract_nested_error(str(exc) or exc.__class__.__name__)
    status = nested.code if nested.code is not None else _extract_status(exc)
    cancelled = isinstance(exc, CancelledError) or bool(
        cancellation_token is not None and getattr(cancellation_token, "cancelled", False)
    )
    return ErrorFacts(
        exc=exc,
        message=nested.message,
        lowered=nested.message.lower(),
        status=status,
        status_text=nested.status,
        cancelled=cancelled,
    )


def classify(facts: ErrorFacts) -> ErrorType:
    """Return the first matching :class:`ErrorType` for ``facts``."""
    for error_type, predicate in RULES:
        if predicate(facts):
            return error_type
    return ErrorType.UNKNOWN


def cancelled_error(provider: Optional[str], reason: Optional[str] = None, original: Optional[BaseException] = None) -> ProviderError:
    """Build the normalized cancellation error."""
    return ProviderError(
        type=ErrorType.CANCELLED,
        message=reason or "operation cancelled",
        user_message=user_message_for(ErrorType.CANCELLED),
        retriable=False,
        provider=provider,
        original_error=original,
    )


def normalize_error(
    error: BaseException,
    provider: Optional[str] = None,
    *,
    cancellation_token: Any = None,
) -> ProviderError:
    """Normalize ``error`` into a :class:`ProviderError`.

    Parameters
    ----------
    error: BaseException
        Raw failure raised by an SDK, transport, or adapter.
    provider: Optional[str]
        Provider key recorded on the result.
    cancellation_token: Optional[CancellationToken]
        When supplied and already cancelled, the failure is reported as a
        cancellation regardless of what the backend raised.

    Returns
    -------
    ProviderError
        Already-normalized errors are returned unchanged.
    """
    if isinstance(error, ProviderError):
        return error
    facts = _gather_facts(error, cancellation_token)
    error_type = classify(facts)
    if error_type is ErrorType.CANCELLED:
        reason = getattr(cancellation_token, "reason", None) if cancellation_token is not None else None
        return cancelled_error(provider, reason or facts.message, error)
    return ProviderError(
        type=error_type,
        message=facts.message,
        user_message=user_message_for(error_type),
        retriable=is_retriable(error_type),
        status_code=facts.status,
        provider=provider,
        retry_after=_extract_retry_after(error),
        original_error=error,
    )


__all__ = [
    "ErrorFacts",
    "RULES",
    "classify",
    "cancelled_error",
    "normalize_error",
    "_extract_status",
]
