"""Function-call payload attached to model messages and stream chunks."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping


@dataclass(frozen=True)
class FunctionCall:
    """A model request to invoke a named function with JSON arguments."""

    name: str
    arguments: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "arguments": dict(self.arguments)}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FunctionCall":
        return cls(name=str(data.get("name", "")), arguments=dict(data.get("arguments") or {}))


__all__ = ["FunctionCall"]
