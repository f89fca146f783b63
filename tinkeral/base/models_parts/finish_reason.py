"""Finish reason literal reported on the terminal stream chunk."""
from __future__ import annotations

from typing import Literal

FinishReason = Literal["stop", "length", "function_call", "content_filter", "unknown"]

FINISH_REASONS = ("stop", "length", "function_call", "content_filter", "unknown")


__all__ = ["FinishReason", "FINISH_REASONS"]
