"""Cancellation error type.

Defines ``CancelledError``, raised by token polling when cooperative
cancellation has been requested. The error normalizer maps it to the
``cancelled`` error type, which is never surfaced to users.
"""

from __future__ import annotations


class CancelledError(RuntimeError):
    """Raised when an operation observes a cancellation request."""


__all__ = ["CancelledError"]
