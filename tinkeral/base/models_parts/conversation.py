"""
Conversation aggregate.

A conversation owns an ordered message list, the model and sampling
parameters used for every request, and an optional system prompt.
``updated_at`` never moves backwards: ``touch`` clamps to the previous value.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from .conversation_metadata import ConversationMetadata
from .identity import new_id, now_ms
from .message import Message
from .model_parameters import ModelParameters


@dataclass
class Conversation:
    """An ordered chat transcript with its generation settings.

    Attributes:
        title: Display title.
        model_id: Model used for requests in this conversation.
        parameters: Sampling parameters.
        messages: Transcript in insertion order.
        system_prompt: Optional system instruction.
        id: Opaque identifier, immutable.
        created_at: Creation time (epoch ms), immutable.
        updated_at: Last mutation time (epoch ms), non-decreasing.
        metadata: Optional token/cost accounting.
    """

    title: str
    model_id: str
    parameters: ModelParameters = field(default_factory=ModelParameters)
    messages: List[Message] = field(default_factory=list)
    system_prompt: Optional[str] = None
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)
    updated_at: int = 0
    metadata: Optional[ConversationMetadata] = None

    def __post_init__(self) -> None:
        if self.updated_at < self.created_at:
            self.updated_at = self.created_at

    def touch(self, at: Optional[int] = None) -> int:
        """Advance ``updated_at`` to ``at`` (default: now) without going backwards."""
        stamp = now_ms() if at is None else at
        self.updated_at = max(self.updated_at, stamp)
        return self.updated_at

    def find_message(self, message_id: str) -> Optional[Message]:
        return next((m for m in self.messages if m.id == message_id), None)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "messages": [m.to_dict() for m in self.messages],
            "modelId": self.model_id,
            "parameters": self.parameters.to_dict(),
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }
        if self.system_prompt is not None:
            data["systemPrompt"] = self.system_prompt
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Conversation":
        meta = data.get("metadata")
        return cls(
            id=str(data["id"]),
            title=str(data.get("title", "")),
            model_id=str(data.get("modelId", "")),
            parameters=ModelParameters.from_dict(data.get("parameters") or {}),
            messages=[Message.from_dict(m) for m in data.get("messages") or []],
            system_prompt=data.get("systemPrompt"),
            created_at=int(data.get("createdAt", 0)),
            updated_at=int(data.get("updatedAt", 0)),
            metadata=ConversationMetadata.from_dict(meta) if isinstance(meta, Mapping) else None,
        )


__all__ = ["Conversation"]
