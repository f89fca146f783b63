"""Streaming helpers shared by the provider adapters and the orchestrator."""

from __future__ import annotations

from typing import Iterable, Iterator, List, Optional

from ..cancellation import CancellationToken
from ..errors import cancelled_error
from ..models import ChatResponse, FinishReason, Message, StreamChunk, TokenUsage


def iterate_cancellable(
    chunks: Iterable[StreamChunk],
    token: Optional[CancellationToken],
    *,
    provider: Optional[str] = None,
) -> Iterator[StreamChunk]:
    """Re-yield ``chunks`` while checking ``token`` before every yield.

    Raises the normalized cancellation error as soon as the token is observed
    cancelled; the upstream iterator is closed on exit.
    """
    iterator = iter(chunks)
    try:
        for chunk in iterator:
            if token is not None and token.cancelled:
                raise cancelled_error(provider, token.reason)
            yield chunk
    finally:
        close = getattr(iterator, "close", None)
        if callable(close):
            close()


def accumulate_chunks(chunks: Iterable[StreamChunk], *, model: str) -> ChatResponse:
    """Drain a stream into a complete :class:`ChatResponse`.

    Deltas are concatenated in order; the terminal chunk's finish reason and
    usage are carried over.
    """
    parts: List[str] = []
    finish: Optional[FinishReason] = None
    usage: Optional[TokenUsage] = None
    for chunk in chunks:
        if chunk.delta:
            parts.append(chunk.delta)
        if chunk.finish_reason is not None:
            finish = chunk.finish_reason
        if chunk.usage is not None:
            usage = chunk.usage
    message = Message(role="model", content="".join(parts))
    return ChatResponse(message=message, model=model, finish_reason=finish or "stop", usage=usage)


__all__ = ["iterate_cancellable", "accumulate_chunks"]
