"""Transient bookkeeping for one in-flight reply stream."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from ..base.cancellation import CancellationToken
from ..base.models import FinishReason, TokenUsage
from ..base.streaming import CommitThrottle


@dataclass
class StreamSession:
    """State owned by the orchestrator while a reply streams.

    Attributes:
        conversation_id: Conversation receiving the reply.
        token: Cancellation token handed to the provider.
        message_id: Placeholder message id once it exists.
        buffer: Deltas received so far, in order.
        throttle: Commit gate; its ``last_commit`` is the last commit time.
        finish_reason: Terminal finish reason, set from the last chunk.
        usage: Terminal token usage, set from the last chunk.
    """

    conversation_id: str
    token: CancellationToken = field(default_factory=CancellationToken)
    message_id: Optional[str] = None
    buffer: List[str] = field(default_factory=list)
    throttle: Optional[CommitThrottle] = None
    finish_reason: Optional[FinishReason] = None
    usage: Optional[TokenUsage] = None

    @property
    def content(self) -> str:
        return "".join(self.buffer)


__all__ = ["StreamSession"]
