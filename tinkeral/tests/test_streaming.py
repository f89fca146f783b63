"""Tests for commit throttling and stream helpers."""
from __future__ import annotations

import pytest

from tinkeral.base.cancellation import CancellationToken
from tinkeral.base.errors import ProviderError
from tinkeral.base.models import StreamChunk, TokenUsage
from tinkeral.base.streaming import CommitThrottle, accumulate_chunks, iterate_cancellable
from tinkeral.tests.conftest import FakeClock


def test_throttle_admits_one_commit_per_interval():
    clock = FakeClock(start=0.0, step=0.0)
    throttle = CommitThrottle(16, clock)

    clock.now = 0.010
    assert throttle.should_commit() is False  # nosec B101
    clock.now = 0.017
    assert throttle.should_commit() is True  # nosec B101
    clock.now = 0.020
    assert throttle.should_commit() is False  # nosec B101
    clock.now = 0.040
    assert throttle.should_commit() is True  # nosec B101
    assert throttle.commits == 2 and throttle.last_commit == 0.040  # nosec B101


def test_force_records_commit_and_resets_window():
    clock = FakeClock(start=0.0, step=0.0)
    throttle = CommitThrottle(16, clock)
    clock.now = 0.005
    throttle.force()
    clock.now = 0.015
    assert throttle.should_commit() is False  # nosec B101
    assert throttle.commits == 1 and throttle.last_commit == 0.005  # nosec B101


def test_zero_interval_commits_every_time():
    throttle = CommitThrottle(0, FakeClock(step=0.0))
    assert all(throttle.should_commit() for _ in range(5))  # nosec B101


def test_iterate_cancellable_stops_when_token_cancelled():
    token = CancellationToken()
    closed: list = []

    def _source():
        try:
            yield StreamChunk(delta="a")
            yield StreamChunk(delta="b")
            yield StreamChunk(delta="c")
        finally:
            closed.append(True)

    seen = []
    with pytest.raises(ProviderError) as ei:
        for chunk in iterate_cancellable(_source(), token, provider="mock"):
            seen.append(chunk.delta)
            token.cancel("stop")

    assert seen == ["a"]  # nosec B101
    assert ei.value.is_cancellation and ei.value.provider == "mock"  # nosec B101
    assert closed == [True]  # nosec B101


def test_iterate_cancellable_without_token_passes_through():
    items = [StreamChunk(delta="x"), StreamChunk(delta="", finish_reason="stop")]
    assert list(iterate_cancellable(items, None)) == items  # nosec B101


def test_accumulate_chunks_concatenates_and_keeps_terminal_metadata():
    usage = TokenUsage(prompt_tokens=5, completion_tokens=10, total_tokens=15)
    response = accumulate_chunks(
        [StreamChunk(delta="Hello"), StreamChunk(delta=" World"), StreamChunk(delta="", finish_reason="length", usage=usage)],
        model="m",
    )
    assert response.text == "Hello World"  # nosec B101
    assert response.finish_reason == "length" and response.usage == usage  # nosec B101
    assert response.model == "m" and response.message.role == "model"  # nosec B101


def test_terminal_chunk_detection():
    assert StreamChunk(delta="x").is_terminal is False  # nosec B101
    assert StreamChunk(finish_reason="stop").is_terminal is True  # nosec B101
