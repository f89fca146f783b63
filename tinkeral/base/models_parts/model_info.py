"""Catalog entry describing a model offered by a provider."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from .model_capabilities import ModelCapabilities


@dataclass(frozen=True)
class ModelInfo:
    """A listable model.

    Attributes:
        id: Identifier passed back in requests (no ``models/`` prefix).
        name: Display name.
        provider: Provider key (e.g. ``"google"``).
        description: Optional provider description.
        context_window: Input token limit when known.
        max_output_tokens: Output token limit when known.
        capabilities: Inferred feature flags.
    """

    id: str
    name: str
    provider: str
    description: Optional[str] = None
    context_window: Optional[int] = None
    max_output_tokens: Optional[int] = None
    capabilities: ModelCapabilities = field(default_factory=ModelCapabilities)


__all__ = ["ModelInfo"]
