"""Per-message metadata recorded when an assistant reply is finalized."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .finish_reason import FinishReason


@dataclass
class MessageMetadata:
    """Model that produced the message plus its terminal stream details.

    Attributes:
        model: Model identifier used for the reply.
        tokens: Total tokens reported by the provider for the exchange.
        finish_reason: Why generation stopped.
    """

    model: Optional[str] = None
    tokens: Optional[int] = None
    finish_reason: Optional[FinishReason] = None

    def merged(self, other: "MessageMetadata") -> "MessageMetadata":
        """Return a copy where non-``None`` fields of ``other`` win."""
        return MessageMetadata(
            model=other.model if other.model is not None else self.model,
            tokens=other.tokens if other.tokens is not None else self.tokens,
            finish_reason=other.finish_reason if other.finish_reason is not None else self.finish_reason,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = {"model": self.model, "tokens": self.tokens, "finishReason": self.finish_reason}
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "MessageMetadata":
        return cls(
            model=data.get("model"),
            tokens=data.get("tokens"),
            finish_reason=data.get("finishReason"),
        )


__all__ = ["MessageMetadata"]
