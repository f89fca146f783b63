"""
ChatRequest DTO handed to provider adapters.

Adapters map this provider-agnostic shape to their SDK call. The message list
is the conversation transcript up to (and excluding) the reply placeholder.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .message import Message
from .model_parameters import ModelParameters


@dataclass
class ChatRequest:
    """Normalized chat request.

    Attributes:
        messages: Ordered transcript to send.
        model: Target model identifier.
        parameters: Sampling parameters.
        system_prompt: Optional system instruction (ignored when blank).
    """

    messages: List[Message]
    model: str
    parameters: ModelParameters = field(default_factory=ModelParameters)
    system_prompt: Optional[str] = None

    def prompt_text(self) -> str:
        """Concatenate message contents; used for token estimation and logging."""
        return "\n".join(m.content for m in self.messages if m.content)


__all__ = ["ChatRequest"]
