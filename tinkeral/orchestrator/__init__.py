"""Conversation orchestration: state ownership and reply streaming."""

from .errors import GenerationInProgressError
from .orchestrator import ConversationOrchestrator
from .send_phase import SendPhase
from .session_state import SessionState
from .stream_session import StreamSession

__all__ = [
    "ConversationOrchestrator",
    "GenerationInProgressError",
    "SendPhase",
    "SessionState",
    "StreamSession",
]
