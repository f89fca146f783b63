"""Cooperative cancellation primitives (public API facade).

Purpose
-------
Expose stable cancellation constructs via the canonical
``tinkeral.base.cancellation`` import path while the concrete implementations
live under ``cancellation_parts``.

Notes
-----
- ``CancellationToken`` signals cancellation across streaming and blocking
	calls; listeners registered on it fire once when it is cancelled.
- ``CancelledError`` is raised by token polling.
- ``run_cancellable`` races a blocking call against a token.
"""

from .cancellation_parts.cancelled_error import CancelledError
from .cancellation_parts.cancellation_token import CancellationToken
from .cancellation_parts.race import run_cancellable

__all__ = ["CancellationToken", "CancelledError", "run_cancellable"]
