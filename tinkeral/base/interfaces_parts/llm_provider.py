"""LLMProvider Protocol (single-class module).

Defines the contract every provider adapter satisfies. The orchestrator only
depends on this shape, never on a concrete SDK.
"""

from __future__ import annotations

from typing import Iterator, List, Optional, Protocol, runtime_checkable

from ..cancellation import CancellationToken
from ..errors import ProviderError
from ..models import ChatRequest, ChatResponse, ModelInfo, StreamChunk


@runtime_checkable
class LLMProvider(Protocol):
    """Interface for large-language-model provider adapters.

    Failure handling: every operation raises :class:`ProviderError` (already
    normalized) for backend failures. ``count_tokens`` is the exception: it
    falls back to a local estimate instead of raising.
    """

    @property
    def provider_id(self) -> str:
        """Canonical provider identifier, e.g. ``"google"``."""
        ...

    def get_models(self) -> List[ModelInfo]:
        """List models available to the configured credential."""
        ...

    def get_model(self, model_id: str) -> ModelInfo:
        """Describe one model; raises ``model_unavailable`` when unknown."""
        ...

    def count_tokens(self, text: str, model_id: str) -> int:
        """Count tokens remotely, or estimate ``ceil(len/4)`` on failure."""
        ...

    def chat(self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None) -> ChatResponse:
        """Run a complete (non-streaming) request, racing it against cancellation."""
        ...

    def stream_chat(
        self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None
    ) -> Iterator[StreamChunk]:
        """Yield reply increments; each call returns a fresh, single-pass iterator.

        The token is checked before every yield. Only the terminal chunk
        carries ``finish_reason`` and ``usage``.
        """
        ...

    def normalize_error(
        self, error: BaseException, cancellation_token: Optional[CancellationToken] = None
    ) -> ProviderError:
        """Map any exception raised by this provider onto the shared taxonomy."""
        ...
