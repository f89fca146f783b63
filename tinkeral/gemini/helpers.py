"""Translation helpers between tinkeral models and google-generativeai objects.

Kept separate from the adapter so the mapping rules (message roles, model
capabilities, finish reasons, usage extraction) can be unit-tested against
plain stand-in objects without the SDK.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..base.models import (
    ChatRequest,
    FinishReason,
    ModelCapabilities,
    ModelInfo,
    ModelParameters,
    TokenUsage,
)

PROVIDER_ID = "google"
MODEL_PREFIX = "models/"

_FINISH_REASONS: Dict[str, FinishReason] = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
    "BLOCKLIST": "content_filter",
    "PROHIBITED_CONTENT": "content_filter",
}


def strip_model_prefix(name: str) -> str:
    return name[len(MODEL_PREFIX):] if name.startswith(MODEL_PREFIX) else name


def qualify_model_name(model_id: str) -> str:
    return model_id if model_id.startswith(MODEL_PREFIX) else f"{MODEL_PREFIX}{model_id}"


def map_finish_reason(raw: Any) -> FinishReason:
    """Map an SDK finish reason (enum, name or int) onto :data:`FinishReason`.

    ``STOP`` maps to ``stop``, ``MAX_TOKENS`` to ``length``, safety-style
    stops to ``content_filter``; anything else is ``unknown``.
    """
    if raw is None:
        return "unknown"
    name = getattr(raw, "name", raw)
    return _FINISH_REASONS.get(str(name).upper(), "unknown")


def infer_capabilities(model: Any) -> ModelCapabilities:
    """Infer capability flags from an SDK ``Model`` description.

    Notes
    -----
    - Streaming requires ``generateContent`` among the supported methods.
    - Function calling and system prompts are assumed for ``gemini`` models
      except TTS and image-generation variants.
    - Vision is assumed unless the model is an Imagen, TTS, embedding or AQA model.
    """
    model_id = strip_model_prefix(str(getattr(model, "name", ""))).lower()
    methods = list(getattr(model, "supported_generation_methods", None) or [])
    is_gemini = "gemini" in model_id
    is_special = "tts" in model_id or "image" in model_id
    max_temperature = getattr(model, "max_temperature", None) or 2.0
    return ModelCapabilities(
        streaming="generateContent" in methods,
        function_calling=is_gemini and not is_special,
        system_prompt=is_gemini and not is_special,
        vision=not any(tag in model_id for tag in ("imagen", "tts", "embedding", "aqa")),
        temperature_range=(0.0, float(max_temperature)),
        top_p_range=(0.0, 1.0),
        supports_top_k=True,
    )


def to_model_info(model: Any) -> ModelInfo:
    """Convert an SDK ``Model`` into :class:`ModelInfo`."""
    model_id = strip_model_prefix(str(getattr(model, "name", "")))
    return ModelInfo(
        id=model_id,
        name=getattr(model, "display_name", None) or model_id,
        provider=PROVIDER_ID,
        description=getattr(model, "description", None) or None,
        context_window=getattr(model, "input_token_limit", None),
        max_output_tokens=getattr(model, "output_token_limit", None),
        capabilities=infer_capabilities(model),
    )


def build_contents(request: ChatRequest) -> List[Dict[str, Any]]:
    """Map transcript messages to SDK ``contents``.

    ``model`` messages keep the ``model`` role; everything else is sent as
    ``user``. Messages with empty or whitespace-only text are skipped.
    """
    contents: List[Dict[str, Any]] = []
    for message in request.messages:
        if not message.content.strip():
            continue
        role = "model" if message.role == "model" else "user"
        contents.append({"role": role, "parts": [message.content]})
    return contents


def build_generation_config(params: ModelParameters) -> Dict[str, Any]:
    """Return the ``generation_config`` mapping for ``params``."""
    config: Dict[str, Any] = {
        "temperature": params.temperature,
        "max_output_tokens": params.max_tokens,  # nosec B106 - SDK parameter name
        "top_p": params.top_p,
    }
    if params.top_k is not None:
        config["top_k"] = params.top_k
    if params.stop_sequences:
        config["stop_sequences"] = list(params.stop_sequences)
    if params.presence_penalty is not None:
        config["presence_penalty"] = params.presence_penalty
    if params.frequency_penalty is not None:
        config["frequency_penalty"] = params.frequency_penalty
    return config


def system_instruction(request: ChatRequest) -> Optional[str]:
    """Return the system prompt when it is non-blank."""
    prompt = request.system_prompt
    return prompt if prompt and prompt.strip() else None


def extract_text(chunk: Any) -> str:
    """Read text from a response or stream chunk.

    ``.text`` raises ``ValueError`` on the SDK when a candidate has no parts
    (for example a safety stop), so the candidate parts are inspected
    directly instead.
    """
    try:
        candidates = chunk.candidates
    except AttributeError:
        candidates = None
    if candidates:
        content = getattr(candidates[0], "content", None)
        parts = getattr(content, "parts", None) or []
        return "".join(getattr(p, "text", "") or "" for p in parts)
    try:
        return chunk.text or ""
    except (AttributeError, ValueError):
        return ""


def extract_finish_reason(chunk: Any) -> Optional[FinishReason]:
    """Return the mapped finish reason of the first candidate, if it has one."""
    candidates = getattr(chunk, "candidates", None) or []
    if not candidates:
        return None
    raw = getattr(candidates[0], "finish_reason", None)
    name = getattr(raw, "name", raw)
    if raw is None or name in (0, "FINISH_REASON_UNSPECIFIED"):
        return None
    return map_finish_reason(raw)


def extract_usage(chunk: Any) -> Optional[TokenUsage]:
    """Return token usage from ``usage_metadata`` when present."""
    meta = getattr(chunk, "usage_metadata", None)
    if meta is None:
        return None
    prompt = int(getattr(meta, "prompt_token_count", 0) or 0)
    completion = int(getattr(meta, "candidates_token_count", 0) or 0)
    total = int(getattr(meta, "total_token_count", 0) or 0) or prompt + completion
    if not total:
        return None
    return TokenUsage(prompt_tokens=prompt, completion_tokens=completion, total_tokens=total)


__all__ = [
    "PROVIDER_ID",
    "strip_model_prefix",
    "qualify_model_name",
    "map_finish_reason",
    "infer_capabilities",
    "to_model_info",
    "build_contents",
    "build_generation_config",
    "system_instruction",
    "extract_text",
    "extract_finish_reason",
    "extract_usage",
]
