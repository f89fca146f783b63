"""MockProvider fixture-driven behavior."""
from __future__ import annotations

import pytest

from tinkeral.base.cancellation import CancellationToken
from tinkeral.base.errors import ErrorType, ProviderError
from tinkeral.base.interfaces import LLMProvider
from tinkeral.base.models import ChatRequest, Message
from tinkeral.mock import MockProvider
from tinkeral.mock.client import EMPTY_RESPONSE, load_fixture_catalog


def _req(prompt: str) -> ChatRequest:
    return ChatRequest(messages=[Message(role="user", content=prompt)], model="mock-chat")


@pytest.fixture()
def mock_provider() -> MockProvider:
    return MockProvider()


def test_mock_satisfies_provider_protocol(mock_provider):
    assert isinstance(mock_provider, LLMProvider)  # nosec B101
    assert mock_provider.provider_id == "mock"  # nosec B101


def test_catalog_loads_from_package_resources():
    catalog = load_fixture_catalog()
    assert catalog["default_model"] == "mock-chat"  # nosec B101
    assert "*" in catalog["responses"]  # nosec B101


def test_stream_replays_fixture_deltas_and_terminal_chunk(mock_provider):
    out = list(mock_provider.stream_chat(_req("hi")))
    assert [c.delta for c in out[:-1]] == ["Hello!", " How can I", " help you", " today?"]  # nosec B101
    terminal = out[-1]
    assert terminal.delta == "" and terminal.finish_reason == "stop"  # nosec B101
    assert terminal.usage.completion_tokens == 8  # nosec B101


def test_chat_falls_back_to_wildcard(mock_provider):
    resp = mock_provider.chat(_req("something unscripted"), CancellationToken())
    assert resp.text == "This is a mock response."  # nosec B101
    assert resp.finish_reason == "stop"  # nosec B101


def test_length_finish_reason_and_generated_chunks():
    provider = MockProvider(chunk_size=10)
    out = list(provider.stream_chat(_req("Tell me a long story")))
    assert out[-1].finish_reason == "length"  # nosec B101
    assert all(len(c.delta) <= 10 for c in out)  # nosec B101
    assert "".join(c.delta for c in out).startswith("Once upon a time")  # nosec B101


def test_fixture_error_is_normalized_with_nested_code(mock_provider):
    with pytest.raises(ProviderError) as ei:
        list(mock_provider.stream_chat(_req("trigger rate limit")))
    assert ei.value.type is ErrorType.RATE_LIMIT  # nosec B101
    assert ei.value.status_code == 429 and ei.value.message == "Too many requests"  # nosec B101
    assert ei.value.provider == "mock"  # nosec B101

    with pytest.raises(ProviderError) as ei:
        mock_provider.chat(_req("trigger server error"))
    assert ei.value.type is ErrorType.SERVER and ei.value.retriable  # nosec B101


def test_cancelled_token_aborts_stream(mock_provider):
    token = CancellationToken()
    received = []
    with pytest.raises(ProviderError) as ei:
        for chunk in mock_provider.stream_chat(_req("hi"), token):
            received.append(chunk.delta)
            token.cancel("aborted by user")
    assert received == ["Hello!"]  # nosec B101
    assert ei.value.is_cancellation  # nosec B101


def test_models_and_tokens(mock_provider):
    ids = [m.id for m in mock_provider.get_models()]
    assert ids == ["mock-chat", "mock-lite"]  # nosec B101
    assert mock_provider.get_model("mock-lite").capabilities.function_calling is False  # nosec B101
    with pytest.raises(ProviderError) as ei:
        mock_provider.get_model("missing")
    assert ei.value.type is ErrorType.MODEL_UNAVAILABLE  # nosec B101
    assert mock_provider.count_tokens("abcdefgh", "mock-chat") == 2  # nosec B101


def test_custom_catalog_is_used():
    provider = MockProvider(catalog={"responses": {"*": {"text": "custom", "stream": ["cus", "tom"]}}})
    assert [c.delta for c in provider.stream_chat(_req("x"))][:-1] == ["cus", "tom"]  # nosec B101


def test_reply_without_text_raises_empty_response(mock_provider):
    with pytest.raises(ProviderError) as ei:
        list(mock_provider.stream_chat(_req("trigger empty response")))
    assert ei.value.message == EMPTY_RESPONSE  # nosec B101
    assert ei.value.type is ErrorType.CONTENT_FILTER  # nosec B101

    plain = MockProvider(catalog={"responses": {"*": {"text": ""}}})
    with pytest.raises(ProviderError) as ei:
        plain.chat(_req("anything"))
    assert ei.value.message == EMPTY_RESPONSE and ei.value.type is ErrorType.UNKNOWN  # nosec B101


def test_chat_matches_streamed_reply(mock_provider):
    streamed = "".join(c.delta for c in mock_provider.stream_chat(_req("hi")))
    resp = mock_provider.chat(_req("hi"))
    assert resp.text == streamed == "Hello! How can I help you today?"  # nosec B101
    assert resp.usage.completion_tokens == 8  # nosec B101
