"""Local token estimation used when a provider cannot count tokens."""

from __future__ import annotations

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Return ``ceil(len(text) / 4)``; empty text is zero tokens."""
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)


__all__ = ["estimate_tokens", "CHARS_PER_TOKEN"]
