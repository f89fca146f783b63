"""Structured logging helpers: JSON payloads, normalized keys and file output."""
from __future__ import annotations

import json
import logging

from tinkeral.base.logging import (
    REQUIRED_NORMALIZED_KEYS,
    LogContext,
    _parse_level,  # type: ignore[attr-defined]
    configure_logger,
    get_logger,
    log_event,
    normalized_log_event,
)
from tinkeral.base.models import TokenUsage


def _events(captured: str, name: str) -> list:
    out = []
    for line in captured.splitlines():
        try:
            data = json.loads(line)
        except ValueError:
            continue
        if data.get("event") == name:
            out.append(data)
    return out


def test_parse_level_variants():
    assert _parse_level(None) == logging.INFO  # nosec B101
    assert _parse_level("debug") == logging.DEBUG  # nosec B101
    assert _parse_level("WARN") == logging.WARNING  # nosec B101
    assert _parse_level("unknown", default=logging.ERROR) == logging.ERROR  # nosec B101


def test_log_event_merges_context_and_drops_none(capsys):
    logger = get_logger("tinkeral.test.logging")
    ctx = LogContext(provider="google", model="gemini-1.5-pro", conversation_id="c1")

    log_event(logger, "unit.event", ctx, answer=42, missing=None)

    (event,) = _events(capsys.readouterr().err, "unit.event")
    assert event["provider"] == "google" and event["model"] == "gemini-1.5-pro"  # nosec B101
    assert event["conversation_id"] == "c1" and event["answer"] == 42  # nosec B101
    assert "missing" not in event and "message_id" not in event  # nosec B101
    assert event["logger"] == "tinkeral.test.logging" and event["level"] == "INFO"  # nosec B101


def test_normalized_log_event_emits_required_keys(capsys):
    logger = get_logger("tinkeral.test.normalized")
    usage = TokenUsage(prompt_tokens=10, completion_tokens=5, total_tokens=15)

    normalized_log_event(logger, "stream.end", LogContext(provider="p"), phase="finalize", emitted=True, tokens=usage, phase_extra="x")
    normalized_log_event(logger, "stream.error", LogContext(provider="p"), phase="finalize", error_code="network")

    captured = capsys.readouterr().err
    (end,) = _events(captured, "stream.end")
    (err,) = _events(captured, "stream.error")
    for key in REQUIRED_NORMALIZED_KEYS:
        if key != "error_code":
            assert key in end  # nosec B101
    assert "error_code" not in end  # nosec B101
    assert end["tokens"] == {"promptTokens": 10, "completionTokens": 5, "totalTokens": 15}  # nosec B101
    assert end["phase_extra"] == "x"  # nosec B101
    assert err["error_code"] == "network" and err["attempt"] is None  # nosec B101


def test_extra_fields_do_not_override_canonical_values(capsys):
    logger = get_logger("tinkeral.test.override")
    normalized_log_event(logger, "retry", phase="start", attempt=1, **{"structured": False})
    (event,) = _events(capsys.readouterr().err, "retry")
    assert event["structured"] is True and event["attempt"] == 1  # nosec B101


def test_configure_logger_writes_json_file(tmp_path):
    target = tmp_path / "logs" / "tinkeral.log"
    try:
        configure_logger(file_path=str(target))
        log_event(get_logger("tinkeral.test.file"), "file.event", value="v")
        for handler in logging.getLogger("tinkeral").handlers:
            handler.flush()
        lines = [json.loads(line) for line in target.read_text(encoding="utf-8").splitlines()]
    finally:
        configure_logger(file_path=None)
    assert any(line.get("event") == "file.event" and line.get("value") == "v" for line in lines)  # nosec B101
    assert not any(getattr(h, "_tinkeral_file_handler", False) for h in logging.getLogger("tinkeral").handlers)  # nosec B101
    assert str(target) not in {getattr(h, "baseFilename", None) for h in logging.getLogger("tinkeral").handlers}  # nosec B101
