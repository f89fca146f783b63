"""GeminiProvider adapter.

Uses google-generativeai (``GenerativeModel``) for chat, streaming, model
listing and token counting. Every backend failure is re-raised as a
normalized :class:`ProviderError`; the initial request of ``chat`` and
``stream_chat`` runs under the shared start-phase retry policy.
"""

from __future__ import annotations

import time
from concurrent.futures import Executor
from typing import Any, Iterator, List, Optional

import google.generativeai as genai

from ..base.cancellation import CancellationToken, run_cancellable
from ..base.errors import EmptyResponseError, ErrorType, ProviderError, normalize_error, user_message_for
from ..base.logging import LogContext, get_logger, normalized_log_event
from ..base.models import ChatRequest, ChatResponse, Message, MessageMetadata, ModelInfo, StreamChunk
from ..base.resilience.retry import RetryConfig, retry
from ..base.streaming import iterate_cancellable
from ..base.tokens import estimate_tokens
from ..config.defaults import RETRY_DELAY_BASE, RETRY_MAX_ATTEMPTS
from .helpers import (
    PROVIDER_ID,
    build_contents,
    build_generation_config,
    extract_finish_reason,
    extract_text,
    extract_usage,
    qualify_model_name,
    system_instruction,
    to_model_info,
)

INVALID_API_KEY = "Invalid API key"
EMPTY_RESPONSE = "Empty response from Google API"


class GeminiProvider:
    """Gemini provider implementing the ``LLMProvider`` contract.

    Parameters
    ----------
    api_key: Optional[str]
        Credential passed to ``genai.configure``. Calls without a key fail
        with an ``auth`` error from the backend.
    retry_config: Optional[RetryConfig]
        Base retry policy for start-phase calls; attempt logging and the
        cancellation token are attached per call.
    executor: Optional[Executor]
        Executor used to race non-streaming calls against cancellation.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        retry_config: Optional[RetryConfig] = None,
        executor: Optional[Executor] = None,
    ) -> None:
        self._api_key = api_key
        self._retry_config = retry_config or RetryConfig(
            max_attempts=RETRY_MAX_ATTEMPTS, delay_base=RETRY_DELAY_BASE
        )
        self._executor = executor
        self._logger = get_logger("tinkeral.gemini")
        if api_key:
            genai.configure(api_key=api_key)

    @property
    def provider_id(self) -> str:
        return PROVIDER_ID

    # ---- Credential helpers ----
    @classmethod
    def validate_key(cls, api_key: str) -> bool:
        """Return True when ``api_key`` can list models; never raises."""
        logger = get_logger("tinkeral.gemini")
        try:
            genai.configure(api_key=api_key)
            next(iter(genai.list_models()), None)
        except Exception as exc:  # validation reports a bool by contract
            normalized_log_event(
                logger,
                "key.invalid",
                LogContext(provider=PROVIDER_ID),
                phase="validate",
                error_code=normalize_error(exc, PROVIDER_ID).type.value,
            )
            return False
        return True

    @classmethod
    def create_client(cls, api_key: str, **kwargs: Any) -> "GeminiProvider":
        """Validate ``api_key`` and return a configured provider.

        Raises
        ------
        ProviderError
            ``auth`` error with message ``"Invalid API key"`` when validation fails.
        """
        if not cls.validate_key(api_key):
            raise ProviderError(
                type=ErrorType.AUTH,
                message=INVALID_API_KEY,
                user_message=user_message_for(ErrorType.AUTH),
                retriable=False,
                provider=PROVIDER_ID,
            )
        return cls(api_key=api_key, **kwargs)

    # ---- Catalog ----
    def get_models(self) -> List[ModelInfo]:
        """List models exposed to the configured key."""
        try:
            return [to_model_info(m) for m in genai.list_models()]
        except Exception as exc:
            raise self.normalize_error(exc) from exc

    def get_model(self, model_id: str) -> ModelInfo:
        """Describe one model (``models/`` prefix optional)."""
        try:
            return to_model_info(genai.get_model(qualify_model_name(model_id)))
        except Exception as exc:
            raise self.normalize_error(exc) from exc

    def count_tokens(self, text: str, model_id: str) -> int:
        """Count tokens remotely; fall back to the local estimate on failure."""
        try:
            result = genai.GenerativeModel(qualify_model_name(model_id)).count_tokens(text)
            return int(result.total_tokens)
        except Exception as exc:  # fallback contract: estimate instead of raising
            normalized_log_event(
                self._logger,
                "count_tokens.fallback",
                LogContext(provider=self.provider_id, model=model_id),
                phase="finalize",
                error_code=self.normalize_error(exc).type.value,
            )
            return estimate_tokens(text)

    # ---- Generation ----
    def chat(self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None) -> ChatResponse:
        """Generate a complete reply.

        The SDK call runs on a worker thread raced against
        ``cancellation_token``. A response without text raises a normalized
        ``EmptyResponseError`` (``content_filter`` for safety stops).
        """
        ctx = LogContext(provider=self.provider_id, model=request.model)
        normalized_log_event(
            self._logger,
            "chat.start",
            ctx,
            phase="start",
            temperature=request.parameters.temperature,
            max_tokens=request.parameters.max_tokens,
        )
        t0 = time.perf_counter()
        try:
            resp = run_cancellable(
                lambda: self._start(request, ctx, cancellation_token, stream=False),
                cancellation_token,
                provider=self.provider_id,
                executor=self._executor,
            )
            text = extract_text(resp)
            finish = extract_finish_reason(resp) or "stop"
            if not text:
                raise EmptyResponseError(EMPTY_RESPONSE, finish_reason=finish)
        except Exception as exc:
            err = self.normalize_error(exc, cancellation_token)
            normalized_log_event(
                self._logger, "chat.error", ctx, phase="finalize", error=err.message, error_code=err.type.value
            )
            if err is exc:
                raise
            raise err from exc
        usage = extract_usage(resp)
        normalized_log_event(
            self._logger,
            "chat.end",
            ctx,
            phase="finalize",
            emitted=True,
            tokens=usage,
            latency_ms=(time.perf_counter() - t0) * 1000.0,
        )
        message = Message(
            role="model",
            content=text,
            metadata=MessageMetadata(
                model=request.model, tokens=usage.total_tokens if usage else None, finish_reason=finish
            ),
        )
        return ChatResponse(message=message, model=request.model, finish_reason=finish, usage=usage)

    def stream_chat(
        self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None
    ) -> Iterator[StreamChunk]:
        """Yield text deltas, then one terminal chunk with finish reason and usage.

        SDK chunks may carry usage on every increment; it is held back and
        reported once on the terminal chunk. A stream that ends without any
        text raises a normalized ``EmptyResponseError`` instead of the
        terminal chunk; empty deltas along the way are skipped.
        """
        ctx = LogContext(provider=self.provider_id, model=request.model)
        normalized_log_event(
            self._logger,
            "stream.start",
            ctx,
            phase="start",
            temperature=request.parameters.temperature,
            max_tokens=request.parameters.max_tokens,
        )
        emitted = False
        finish = None
        usage = None
        try:
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
            response = self._start(request, ctx, cancellation_token, stream=True)
            for chunk in iterate_cancellable(response, cancellation_token, provider=self.provider_id):
                finish = extract_finish_reason(chunk) or finish
                usage = extract_usage(chunk) or usage
                text = extract_text(chunk)
                if text:
                    emitted = True
                    yield StreamChunk(delta=text)
            if cancellation_token is not None:
                cancellation_token.raise_if_cancelled()
            if not emitted:
                raise EmptyResponseError(EMPTY_RESPONSE, finish_reason=finish or "stop")
            yield StreamChunk(delta="", finish_reason=finish or "stop", usage=usage)
        except Exception as exc:
            err = self.normalize_error(exc, cancellation_token)
            normalized_log_event(
                self._logger,
                "stream.error",
                ctx,
                phase="finalize",
                emitted=emitted,
                error=err.message,
                error_code=err.type.value,
            )
            if err is exc:
                raise
            raise err from exc
        normalized_log_event(self._logger, "stream.end", ctx, phase="finalize", emitted=emitted, tokens=usage)

    def normalize_error(
        self, error: BaseException, cancellation_token: Optional[CancellationToken] = None
    ) -> ProviderError:
        return normalize_error(error, self.provider_id, cancellation_token=cancellation_token)

    # -------------------- internal helpers --------------------
    def _build_model(self, request: ChatRequest) -> Any:
        """Create the ``GenerativeModel`` for ``request``.

        The system instruction is attached only when non-blank.
        """
        kwargs = {"generation_config": build_generation_config(request.parameters)}
        instruction = system_instruction(request)
        if instruction is not None:
            kwargs["system_instruction"] = instruction
        return genai.GenerativeModel(model_name=request.model, **kwargs)

    def _start(
        self,
        request: ChatRequest,
        ctx: LogContext,
        token: Optional[CancellationToken],
        *,
        stream: bool,
    ) -> Any:
        """Issue the SDK request under the retry policy.

        SDK exceptions are normalized inside the retried callable so the
        policy can inspect ``retriable``.
        """
        model = self._build_model(request)
        contents = build_contents(request)

        def _call() -> Any:
            try:
                if stream:
                    return model.generate_content(contents, stream=True)
                return model.generate_content(contents)
            except Exception as exc:
                raise self.normalize_error(exc, token) from exc

        phase = "stream.start" if stream else "chat.start"
        return retry(self._retry_config_for(ctx, phase, token))(_call)()

    def _retry_config_for(
        self, ctx: LogContext, phase: str, token: Optional[CancellationToken]
    ) -> RetryConfig:
        """Return the base retry policy with attempt logging and ``token`` attached."""

        def _attempt_logger(*, attempt: int, max_attempts: int, delay: float | None, error: ProviderError | None) -> None:
            normalized_log_event(
                self._logger,
                "retry",
                ctx,
                phase=phase,
                attempt=attempt,
                max_attempts=max_attempts,
                delay=delay,
                error_code=error.type.value if error else None,
            )

        base = self._retry_config
        return RetryConfig(
            max_attempts=base.max_attempts,
            delay_base=base.delay_base,
            max_delay=base.max_delay,
            attempt_logger=_attempt_logger,
            cancellation_token=token,
            sleep=base.sleep,
        )


__all__ = ["GeminiProvider", "INVALID_API_KEY", "EMPTY_RESPONSE"]
