"""
One increment of a streamed reply.

Only the terminal chunk carries ``finish_reason`` and ``usage``; an empty
``delta`` is a normal value (it typically accompanies the terminal chunk).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .finish_reason import FinishReason
from .function_call import FunctionCall
from .token_usage import TokenUsage


@dataclass(frozen=True)
class StreamChunk:
    delta: str = ""
    finish_reason: Optional[FinishReason] = None
    usage: Optional[TokenUsage] = None
    function_call: Optional[FunctionCall] = None

    @property
    def is_terminal(self) -> bool:
        return self.finish_reason is not None or self.usage is not None


__all__ = ["StreamChunk"]
