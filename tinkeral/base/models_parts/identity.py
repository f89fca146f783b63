"""Identifier and timestamp helpers shared by the domain models."""
from __future__ import annotations

import time
import uuid


def new_id() -> str:
    """Return a fresh opaque identifier."""
    return uuid.uuid4().hex


def now_ms() -> int:
    """Return the current wall-clock time in milliseconds since the epoch."""
    return int(time.time() * 1000)


__all__ = ["new_id", "now_ms"]
