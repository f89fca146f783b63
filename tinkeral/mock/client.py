"""Deterministic mock provider backed by JSON fixtures for offline use.

Purpose
-------
Implement the ``LLMProvider`` contract without any network traffic. Replies
are looked up by the last user message in a declarative JSON catalog, so the
orchestrator, CLI and tests can exercise streaming, cancellation and error
paths without a real backend.

Fixture format
--------------
``responses`` maps a lowercase prompt (or ``"*"``) to either a reply
(``text``, optional ``stream`` deltas, optional ``finishReason``) or an
``error`` block (``message`` and ``status``) that is raised normalized. A reply
without text raises a normalized ``EmptyResponseError``.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from importlib import resources
from typing import Any, Dict, Iterator, List, Mapping, Optional

from ..base.cancellation import CancellationToken, run_cancellable
from ..base.errors import EmptyResponseError, ProviderError, normalize_error
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import (
    ChatRequest,
    ChatResponse,
    ModelCapabilities,
    ModelInfo,
    StreamChunk,
    TokenUsage,
)
from ..base.streaming import accumulate_chunks, iterate_cancellable
from ..base.tokens import estimate_tokens

_FIXTURE_PACKAGE = "tinkeral.mock.fixtures"
_FIXTURE_RESOURCE = "chat_completions.json"

EMPTY_RESPONSE = "Empty response from mock provider"


class FixtureError(Exception):
    """Synthetic backend failure described by a fixture ``error`` block."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass
class FixtureResponse:
    """A single resolved fixture entry."""

    text: str
    stream: List[str] = field(default_factory=list)
    finish_reason: str = "stop"
    error: Optional[Mapping[str, Any]] = None
    prompt_key: str = "*"


def load_fixture_catalog(resource: str = _FIXTURE_RESOURCE) -> Dict[str, Any]:
    """Load the JSON fixture catalog bundled with the mock provider."""
    data = resources.files(_FIXTURE_PACKAGE).joinpath(resource).read_text(encoding="utf-8")
    return json.loads(data)


def _chunk_text(text: str, chunk_size: int = 16) -> List[str]:
    """Split ``text`` into fixed-size deltas for deterministic streaming."""
    if not text:
        return []
    return [text[i : i + chunk_size] for i in range(0, len(text), chunk_size)]


def _extract_prompt(request: ChatRequest) -> str:
    """Return the last user message (normalized) used as the fixture key."""
    for message in reversed(request.messages):
        if message.role == "user" and message.content.strip():
            return message.content.strip()
    return "*"


class MockProvider:
    """Adapter that returns canned responses instead of calling a backend."""

    def __init__(
        self,
        *,
        api_key: Optional[str] = None,
        catalog: Optional[Dict[str, Any]] = None,
        chunk_size: int = 16,
    ) -> None:
        """Initialize the mock provider.

        Parameters
        ----------
        api_key: Optional[str]
            Accepted for factory parity; never validated.
        catalog: Optional[Dict[str, Any]]
            Pre-parsed fixture catalog, mainly for tests.
        chunk_size: int
            Delta size used when a fixture has no explicit ``stream`` list.
        """
        self._api_key = api_key
        self._catalog = catalog if catalog is not None else load_fixture_catalog()
        self._chunk_size = chunk_size
        self._model = str(self._catalog.get("default_model", "mock-chat"))
        self._responses: Mapping[str, Any] = self._catalog.get("responses", {})
        self._logger = get_logger("tinkeral.mock")

    @property
    def provider_id(self) -> str:
        return "mock"

    # ------------------------------------------------------------------
    # Catalog

    def get_models(self) -> List[ModelInfo]:
        return [self._model_info(entry) for entry in self._catalog.get("models", [])]

    def get_model(self, model_id: str) -> ModelInfo:
        for info in self.get_models():
            if info.id == model_id:
                return info
        raise normalize_error(FixtureError(f"Model {model_id} not found", 404), self.provider_id)

    def count_tokens(self, text: str, model_id: str) -> int:
        return estimate_tokens(text)

    # ------------------------------------------------------------------
    # Generation

    def chat(self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None) -> ChatResponse:
        """Return the fixture reply as a complete response.

        The reply is assembled from the same chunks ``stream_chat`` yields.
        """
        ctx = LogContext(provider=self.provider_id, model=request.model)
        normalized_log_event(self._logger, "chat.start", ctx, phase="start")
        entry = self._select_response(request)
        model = request.model or self._model
        try:
            response: ChatResponse = run_cancellable(
                lambda: accumulate_chunks(self._chunks(request, entry), model=model),
                cancellation_token,
                provider=self.provider_id,
            )
        except Exception as exc:
            err = self.normalize_error(exc, cancellation_token)
            normalized_log_event(self._logger, "chat.error", ctx, phase="finalize", error_code=err.type.value)
            if err is exc:
                raise
            raise err from exc
        normalized_log_event(self._logger, "chat.end", ctx, phase="finalize", emitted=True, tokens=response.usage)
        return response

    def stream_chat(
        self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None
    ) -> Iterator[StreamChunk]:
        """Yield the fixture deltas followed by one terminal chunk."""
        ctx = LogContext(provider=self.provider_id, model=request.model)
        normalized_log_event(self._logger, "stream.start", ctx, phase="start")
        entry = self._select_response(request)
        emitted = False
        try:
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
            chunks = self._chunks(request, entry)
            for chunk in iterate_cancellable(chunks, cancellation_token, provider=self.provider_id):
                emitted = emitted or bool(chunk.delta)
                yield chunk
        except Exception as exc:
            err = self.normalize_error(exc, cancellation_token)
            normalized_log_event(
                self._logger, "stream.error", ctx, phase="finalize", emitted=emitted, error_code=err.type.value
            )
            if err is exc:
                raise
            raise err from exc
        normalized_log_event(self._logger, "stream.end", ctx, phase="finalize", emitted=emitted)

    def normalize_error(
        self, error: BaseException, cancellation_token: Optional[CancellationToken] = None
    ) -> ProviderError:
        return normalize_error(error, self.provider_id, cancellation_token=cancellation_token)

    # ------------------------------------------------------------------
    # Helpers

    def _select_response(self, request: ChatRequest) -> FixtureResponse:
        prompt = _extract_prompt(request)
        raw = (
            self._responses.get(prompt)
            or self._responses.get(prompt.lower())
            or self._responses.get("*")
            or {"text": ""}
        )
        return FixtureResponse(
            text=str(raw.get("text", "")),
            stream=list(raw.get("stream", [])),
            finish_reason=str(raw.get("finishReason", "stop")),
            error=raw.get("error"),
            prompt_key=prompt,
        )

    def _resolve_text(self, entry: FixtureResponse) -> str:
        if entry.error:
            raise FixtureError(str(entry.error.get("message", "fixture error")), entry.error.get("status"))
        return entry.text

    def _chunks(self, request: ChatRequest, entry: FixtureResponse) -> List[StreamChunk]:
        """Build the delta chunks plus the terminal chunk for ``entry``.

        A fixture without any text raises :class:`EmptyResponseError`.
        """
        text = self._resolve_text(entry)
        deltas = entry.stream or _chunk_text(text, self._chunk_size)
        if not any(deltas):
            raise EmptyResponseError(EMPTY_RESPONSE, finish_reason=entry.finish_reason)
        chunks = [StreamChunk(delta=d) for d in deltas]
        chunks.append(
            StreamChunk(delta="", finish_reason=entry.finish_reason, usage=self._usage(request, text))  # type: ignore[arg-type]
        )
        return chunks

    def _usage(self, request: ChatRequest, text: str) -> TokenUsage:
        prompt_tokens = estimate_tokens(request.prompt_text())
        completion_tokens = estimate_tokens(text)
        return TokenUsage(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        )

    def _model_info(self, entry: Mapping[str, Any]) -> ModelInfo:
        caps = entry.get("capabilities", {}) or {}
        return ModelInfo(
            id=str(entry["id"]),
            name=str(entry.get("name", entry["id"])),
            provider=self.provider_id,
            description=entry.get("description"),
            context_window=entry.get("contextWindow"),
            max_output_tokens=entry.get("maxOutputTokens"),
            capabilities=ModelCapabilities(
                function_calling=bool(caps.get("functionCalling", True)),
                vision=bool(caps.get("vision", False)),
            ),
        )


__all__ = ["MockProvider", "FixtureError", "load_fixture_catalog", "EMPTY_RESPONSE"]
