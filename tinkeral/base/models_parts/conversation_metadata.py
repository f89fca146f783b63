"""Aggregate accounting for a conversation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass
class ConversationMetadata:
    total_tokens: int = 0
    estimated_cost: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"totalTokens": self.total_tokens}
        if self.estimated_cost is not None:
            data["estimatedCost"] = self.estimated_cost
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ConversationMetadata":
        return cls(
            total_tokens=int(data.get("totalTokens", 0) or 0),
            estimated_cost=data.get("estimatedCost"),
        )


__all__ = ["ConversationMetadata"]
