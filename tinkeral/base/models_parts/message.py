"""
Chat message domain model.

``Message`` is the unit stored in a conversation transcript. ``id`` and
``created_at`` are fixed at creation; ``content`` grows while a reply streams.
Serialization uses the camelCase record shape persisted by repositories.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Literal, Mapping, Optional

from .function_call import FunctionCall
from .function_result import FunctionResult
from .identity import new_id, now_ms
from .message_metadata import MessageMetadata

Role = Literal["user", "model", "system"]

_IMMUTABLE_FIELDS = ("id", "created_at")


@dataclass
class Message:
    """A single transcript entry.

    Attributes:
        role: ``"user"``, ``"model"`` (assistant) or ``"system"``.
        content: Message text; may be empty for a reply that has not streamed yet.
        id: Opaque identifier, immutable after creation.
        created_at: Creation time in epoch milliseconds, immutable.
        metadata: Optional model/tokens/finish-reason details.
        function_call: Optional function invocation requested by the model.
        function_result: Optional function outcome supplied back to the model.
    """

    role: Role
    content: str = ""
    id: str = field(default_factory=new_id)
    created_at: int = field(default_factory=now_ms)
    metadata: Optional[MessageMetadata] = None
    function_call: Optional[FunctionCall] = None
    function_result: Optional[FunctionResult] = None

    def __setattr__(self, name: str, value: Any) -> None:
        if name in _IMMUTABLE_FIELDS and name in self.__dict__:
            raise AttributeError(f"Message.{name} is immutable")
        super().__setattr__(name, value)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.created_at,
        }
        if self.metadata is not None:
            data["metadata"] = self.metadata.to_dict()
        if self.function_call is not None:
            data["functionCall"] = self.function_call.to_dict()
        if self.function_result is not None:
            data["functionResult"] = self.function_result.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Message":
        meta = data.get("metadata")
        call = data.get("functionCall")
        result = data.get("functionResult")
        return cls(
            id=str(data["id"]),
            role=data["role"],
            content=str(data.get("content", "")),
            created_at=int(data.get("timestamp", 0)),
            metadata=MessageMetadata.from_dict(meta) if isinstance(meta, Mapping) else None,
            function_call=FunctionCall.from_dict(call) if isinstance(call, Mapping) else None,
            function_result=FunctionResult.from_dict(result) if isinstance(result, Mapping) else None,
        )


__all__ = ["Message", "Role"]
