"""Outcome of a function invocation fed back into the conversation."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class FunctionResult:
    name: str
    result: Any = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"name": self.name, "result": self.result}
        if self.error is not None:
            data["error"] = self.error
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "FunctionResult":
        return cls(name=str(data.get("name", "")), result=data.get("result"), error=data.get("error"))


__all__ = ["FunctionResult"]
