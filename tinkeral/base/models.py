"""
Provider-agnostic domain models public surface.

Re-exports the one-class-per-file implementations under
``tinkeral.base.models_parts``.
"""

from .models_parts.finish_reason import FINISH_REASONS, FinishReason
from .models_parts.identity import new_id, now_ms
from .models_parts.function_call import FunctionCall
from .models_parts.function_result import FunctionResult
from .models_parts.message_metadata import MessageMetadata
from .models_parts.message import Message, Role
from .models_parts.model_parameters import ModelParameters
from .models_parts.conversation_metadata import ConversationMetadata
from .models_parts.conversation import Conversation
from .models_parts.token_usage import TokenUsage
from .models_parts.chat_request import ChatRequest
from .models_parts.chat_response import ChatResponse
from .models_parts.stream_chunk import StreamChunk
from .models_parts.model_capabilities import ModelCapabilities
from .models_parts.model_info import ModelInfo

__all__ = [
    "FINISH_REASONS",
    "FinishReason",
    "new_id",
    "now_ms",
    "FunctionCall",
    "FunctionResult",
    "MessageMetadata",
    "Message",
    "Role",
    "ModelParameters",
    "ConversationMetadata",
    "Conversation",
    "TokenUsage",
    "ChatRequest",
    "ChatResponse",
    "StreamChunk",
    "ModelCapabilities",
    "ModelInfo",
]
