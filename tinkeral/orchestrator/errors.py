"""Orchestrator-specific exceptions."""
from __future__ import annotations


class GenerationInProgressError(RuntimeError):
    """Raised by ``send_message`` while a previous reply is still streaming."""


__all__ = ["GenerationInProgressError"]
