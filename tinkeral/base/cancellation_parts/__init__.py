"""Cancellation parts package.

Holds the one-class-per-file implementations behind
``tinkeral.base.cancellation``. The race helper is exposed only through the
facade because it depends on the error taxonomy.
"""

from .cancelled_error import CancelledError
from .cancellation_token import CancellationToken

__all__ = ["CancellationToken", "CancelledError"]
