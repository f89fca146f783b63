"""Feature flags and parameter ranges inferred for a model."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class ModelCapabilities:
    """What a model supports.

    Attributes:
        streaming: Incremental generation is available.
        function_calling: Tool/function calls are supported.
        system_prompt: A system instruction is honoured.
        vision: Image input is accepted.
        temperature_range: Inclusive ``(min, max)`` temperature.
        top_p_range: Inclusive ``(min, max)`` top-p.
        supports_top_k: Whether ``top_k`` may be sent.
    """

    streaming: bool = True
    function_calling: bool = False
    system_prompt: bool = True
    vision: bool = False
    temperature_range: Tuple[float, float] = (0.0, 2.0)
    top_p_range: Tuple[float, float] = (0.0, 1.0)
    supports_top_k: bool = True


__all__ = ["ModelCapabilities"]
