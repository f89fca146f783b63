"""Result of a non-streaming chat call."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .finish_reason import FinishReason
from .message import Message
from .token_usage import TokenUsage


@dataclass
class ChatResponse:
    """A complete assistant reply with its usage accounting."""

    message: Message
    model: str
    finish_reason: FinishReason = "stop"
    usage: Optional[TokenUsage] = None

    @property
    def text(self) -> str:
        return self.message.content


__all__ = ["ChatResponse"]
