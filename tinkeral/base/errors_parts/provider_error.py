"""
Structured provider error exception type.

``ProviderError`` is the single normalized failure shape surfaced by provider
adapters. It carries the taxonomy type, a diagnostic message, a display-ready
``user_message`` and the retry hint used by the retry policy.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .error_type import ErrorType


@dataclass
class ProviderError(Exception):
    """Represents a normalized provider failure.

    Attributes:
        type: Normalized :class:`ErrorType` classification.
        message: Leaf diagnostic message (nested JSON bodies already unwrapped).
        user_message: Human-readable message suitable for display.
        retriable: Whether a retry may succeed (derived from ``type``).
        status_code: HTTP-like status when one could be determined.
        provider: Provider key where the error originated (e.g., ``"google"``).
        retry_after: Seconds the backend asked callers to wait, if advertised.
        original_error: The raw exception, kept for diagnostics only.
    """

    type: ErrorType
    message: str
    user_message: str = "Something went wrong. Please try again."
    retriable: bool = False
    status_code: Optional[int] = None
    provider: Optional[str] = None
    retry_after: Optional[float] = None
    original_error: Optional[BaseException] = None

    def __post_init__(self) -> None:
        super().__init__(self.message)

    @property
    def is_cancellation(self) -> bool:
        """True when this error represents a cooperative cancellation."""
        return self.type is ErrorType.CANCELLED

    def __str__(self) -> str:  # pragma: no cover - trivial
        status = f" [{self.status_code}]" if self.status_code is not None else ""
        return f"{self.provider or '-'} {self.type.value}{status}: {self.message}"


__all__ = ["ProviderError"]
