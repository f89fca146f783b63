"""Sampling parameters sent with every request of a conversation."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional


@dataclass
class ModelParameters:
    """Sampling controls for a conversation.

    Attributes:
        temperature: Sampling temperature.
        max_tokens: Upper bound on generated tokens.
        top_p: Nucleus sampling mass.
        top_k: Optional top-k cutoff.
        frequency_penalty: Optional frequency penalty.
        presence_penalty: Optional presence penalty.
        stop_sequences: Sequences that end generation.
    """

    temperature: float = 0.7
    max_tokens: int = 1024
    top_p: float = 0.9
    top_k: Optional[int] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None
    stop_sequences: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "temperature": self.temperature,
            "maxTokens": self.max_tokens,
            "topP": self.top_p,
            "topK": self.top_k,
            "frequencyPenalty": self.frequency_penalty,
            "presencePenalty": self.presence_penalty,
            "stopSequences": list(self.stop_sequences) or None,
        }
        return {k: v for k, v in data.items() if v is not None}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ModelParameters":
        defaults = cls()
        return cls(
            temperature=float(data.get("temperature", defaults.temperature)),
            max_tokens=int(data.get("maxTokens", defaults.max_tokens)),
            top_p=float(data.get("topP", defaults.top_p)),
            top_k=data.get("topK"),
            frequency_penalty=data.get("frequencyPenalty"),
            presence_penalty=data.get("presencePenalty"),
            stop_sequences=list(data.get("stopSequences") or []),
        )


__all__ = ["ModelParameters"]
