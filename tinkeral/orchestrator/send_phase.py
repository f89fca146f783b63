"""Lifecycle phases of a single ``send_message`` call."""
from __future__ import annotations

from enum import Enum


class SendPhase(str, Enum):
    """Phase reached by the most recent send.

    ``IDLE -> USER_MESSAGE_COMMITTED -> ASSISTANT_PLACEHOLDER_CREATED ->
    STREAMING -> {FINALIZED | FAILED | CANCELLED}``
    """

    IDLE = "idle"
    USER_MESSAGE_COMMITTED = "user_message_committed"
    ASSISTANT_PLACEHOLDER_CREATED = "assistant_placeholder_created"
    STREAMING = "streaming"
    FINALIZED = "finalized"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SendPhase.FINALIZED, SendPhase.FAILED, SendPhase.CANCELLED)


__all__ = ["SendPhase"]
