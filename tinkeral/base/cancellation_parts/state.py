"""Internal state holder for cancellation tokens."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, Optional


@dataclass
class State:
    """Cancellation flag, reason and registered listeners keyed by handle."""

    cancelled: bool = False
    reason: Optional[str] = None
    listeners: Dict[int, Callable[[Optional[str]], None]] = field(default_factory=dict)
    next_handle: int = 0


__all__ = ["State"]
