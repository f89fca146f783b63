"""Immutable snapshot of the orchestrator's observable state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Tuple

from ..base.errors import ErrorType
from ..base.models import Conversation
from .send_phase import SendPhase


@dataclass(frozen=True)
class SessionState:
    """What observers see after each state change.

    Attributes:
        conversations: Copies of all conversations, most recently updated first.
        active_conversation_id: Conversation targeted by ``send_message``.
        is_loading: A request or a repository load is in flight.
        is_streaming: A reply stream is in flight.
        error: Display-ready message of the last failure, ``None`` after a
            success or a cancellation.
        error_type: Taxonomy type of ``error``.
        phase: Phase reached by the latest send.
    """

    conversations: Tuple[Conversation, ...] = ()
    active_conversation_id: Optional[str] = None
    is_loading: bool = False
    is_streaming: bool = False
    error: Optional[str] = None
    error_type: Optional[ErrorType] = None
    phase: SendPhase = SendPhase.IDLE

    @property
    def active_conversation(self) -> Optional[Conversation]:
        if self.active_conversation_id is None:
            return None
        return next((c for c in self.conversations if c.id == self.active_conversation_id), None)


__all__ = ["SessionState"]
