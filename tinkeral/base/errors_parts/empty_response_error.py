"""Raised when a call succeeds but carries no text."""

from __future__ import annotations

from typing import Optional


class EmptyResponseError(RuntimeError):
    """A successful backend response that produced no content.

    ``finish_reason`` records what the backend reported, which lets the
    normalizer distinguish a safety stop from a plain empty reply.
    """

    def __init__(self, message: str = "Empty response from provider", *, finish_reason: Optional[str] = None) -> None:
        super().__init__(message)
        self.finish_reason = finish_reason


__all__ = ["EmptyResponseError"]
