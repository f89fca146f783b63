"""Behavioral tests for ``ConversationOrchestrator``.

Covers message ordering, placeholder streaming, commit throttling, partial
content on failure, silent cancellation, missing credentials, the busy guard
and best-effort persistence.
"""
from __future__ import annotations

from typing import List, Tuple

import pytest

from tinkeral.base.errors import ErrorType, normalize_error, user_message_for
from tinkeral.base.models import StreamChunk
from tinkeral.config.defaults import FALLBACK_MODEL
from tinkeral.config.settings import AppSettings
from tinkeral.mock import MockProvider
from tinkeral.orchestrator import (
    ConversationOrchestrator,
    GenerationInProgressError,
    SendPhase,
    SessionState,
)
from tinkeral.persistence.interfaces import ConversationNotFoundError
from tinkeral.persistence.memory import InMemoryConversationRepo
from tinkeral.tests.conftest import FakeClock, ScriptedClient, chunks, factory_for


class _FlakyRepo(InMemoryConversationRepo):
    """In-memory repo whose writes fail while ``failing`` is set."""

    def __init__(self) -> None:
        super().__init__()
        self.failing = False

    def create(self, conversation):
        if self.failing:
            raise OSError("disk full")
        return super().create(conversation)

    def update(self, conversation_id, changes):
        if self.failing:
            raise OSError("disk full")
        return super().update(conversation_id, changes)

    def delete(self, conversation_id):
        if self.failing:
            raise OSError("disk full")
        return super().delete(conversation_id)


def _make(repo, settings, client, clock=None, calls=None) -> ConversationOrchestrator:
    return ConversationOrchestrator(
        repo,
        settings,
        client_factory=factory_for(client, calls),
        clock=clock or FakeClock(),
    )


def _record(orch: ConversationOrchestrator) -> List[Tuple[str, SessionState]]:
    events: List[Tuple[str, SessionState]] = []
    orch.subscribe(lambda event, state: events.append((event, state)))
    return events


def test_stream_finalizes_content_and_metadata(memory_repo, settings):
    client = ScriptedClient(chunks("Hello", " World", finish="stop", total=15))
    orch = _make(memory_repo, settings, client)

    reply = orch.send_message("hi")

    assert reply is not None  # nosec B101
    assert reply.content == "Hello World"  # nosec B101
    assert reply.metadata.finish_reason == "stop"  # nosec B101
    assert reply.metadata.tokens == 15  # nosec B101
    assert reply.metadata.model == settings.default_model  # nosec B101
    state = orch.state
    assert state.is_streaming is False and state.is_loading is False  # nosec B101
    assert state.error is None and state.phase is SendPhase.FINALIZED  # nosec B101
    assert state.active_conversation.metadata.total_tokens == 15  # nosec B101


def test_send_on_empty_conversation_yields_user_then_model(memory_repo, settings):
    client = ScriptedClient(chunks("Hello", " World"))
    orch = _make(memory_repo, settings, client)

    orch.send_message("hi")

    conv = orch.state.active_conversation
    assert [(m.role, m.content) for m in conv.messages] == [("user", "hi"), ("model", "Hello World")]  # nosec B101
    stored = memory_repo.get(conv.id)
    assert [(m.role, m.content) for m in stored.messages] == [("user", "hi"), ("model", "Hello World")]  # nosec B101


def test_request_excludes_placeholder_and_carries_history(memory_repo, settings):
    client = ScriptedClient(chunks("one"))
    orch = _make(memory_repo, settings, client)
    orch.create_conversation(system_prompt="be brief")

    orch.send_message("first")
    orch.send_message("second")

    first, second = client.requests
    assert [m.role for m in first.messages] == ["user"]  # nosec B101
    assert [(m.role, m.content) for m in second.messages] == [  # nosec B101
        ("user", "first"),
        ("model", "one"),
        ("user", "second"),
    ]
    assert second.system_prompt == "be brief"  # nosec B101
    assert second.model == settings.default_model  # nosec B101


def test_placeholder_is_visible_before_first_delta(memory_repo, settings):
    client = ScriptedClient(chunks("Hello"))
    orch = _make(memory_repo, settings, client)
    events = _record(orch)

    orch.send_message("hi")

    names = [e for e, _ in events]
    assert names[0] == "conversation.created"  # nosec B101
    assert names.index("message.user") < names.index("message.placeholder") < names.index("stream.final")  # nosec B101
    placeholder_state = dict(events)["message.placeholder"]
    last = placeholder_state.active_conversation.messages[-1]
    assert last.role == "model" and last.content == ""  # nosec B101
    assert placeholder_state.is_streaming is True  # nosec B101
    assert placeholder_state.phase is SendPhase.ASSISTANT_PLACEHOLDER_CREATED  # nosec B101


def test_client_factory_receives_provider_and_key(memory_repo, settings):
    calls: list = []
    orch = _make(memory_repo, settings, ScriptedClient(chunks("ok")), calls=calls)

    orch.send_message("hi")

    assert calls == [("google", "k-123")]  # nosec B101


def test_fast_chunks_are_throttled_but_final_content_is_complete(memory_repo, settings):
    deltas = [f"d{i}," for i in range(20)]
    client = ScriptedClient(chunks(*deltas))
    orch = _make(memory_repo, settings, client, clock=FakeClock(step=0.001))
    events = _record(orch)

    reply = orch.send_message("hi")

    commits = [s for e, s in events if e == "stream.commit"]
    assert len(commits) < len(deltas)  # nosec B101
    assert reply.content == "".join(deltas)  # nosec B101
    final = [s for e, s in events if e == "stream.final"][-1]
    assert final.active_conversation.messages[-1].content == "".join(deltas)  # nosec B101


def test_slow_chunks_commit_each_delta_as_a_growing_prefix(memory_repo, settings):
    deltas = ["a", "b", "c", "d"]
    client = ScriptedClient(chunks(*deltas))
    orch = _make(memory_repo, settings, client, clock=FakeClock(step=0.02))
    events = _record(orch)

    orch.send_message("hi")

    seen = [s.active_conversation.messages[-1].content for e, s in events if e == "stream.commit"]
    assert seen[:4] == ["a", "ab", "abc", "abcd"]  # nosec B101


def test_stream_failure_keeps_partial_content_and_surfaces_error(memory_repo, settings):
    client = ScriptedClient([StreamChunk(delta="Start"), RuntimeError("Stream failed")])
    orch = _make(memory_repo, settings, client)

    reply = orch.send_message("hi")

    assert reply.content == "Start"  # nosec B101
    state = orch.state
    assert state.error == "Stream failed"  # nosec B101
    assert state.is_streaming is False  # nosec B101
    assert state.phase is SendPhase.FAILED  # nosec B101
    assert memory_repo.get(state.active_conversation_id).messages[-1].content == "Start"  # nosec B101


def test_normalized_failure_after_several_chunks_uses_user_message(memory_repo, settings):
    err = normalize_error(ConnectionError("network down"), "google")
    client = ScriptedClient([StreamChunk(delta="a"), StreamChunk(delta="b"), StreamChunk(delta="c"), err])
    orch = _make(memory_repo, settings, client)

    reply = orch.send_message("hi")

    assert reply.content == "abc"  # nosec B101
    assert orch.state.error == user_message_for(ErrorType.NETWORK)  # nosec B101
    assert orch.state.error_type is ErrorType.NETWORK  # nosec B101


def test_reply_without_text_surfaces_error_and_keeps_placeholder(memory_repo, settings):
    client = MockProvider(catalog={"responses": {"*": {"text": "", "finishReason": "content_filter"}}})
    orch = _make(memory_repo, settings, client)

    reply = orch.send_message("hi")

    assert reply is not None and reply.content == ""  # nosec B101
    state = orch.state
    assert state.error == user_message_for(ErrorType.CONTENT_FILTER)  # nosec B101
    assert state.error_type is ErrorType.CONTENT_FILTER  # nosec B101
    assert state.phase is SendPhase.FAILED  # nosec B101
    roles = [m.role for m in state.active_conversation.messages]
    assert roles == ["user", "model"]  # nosec B101
    assert [m.role for m in memory_repo.get(state.active_conversation_id).messages] == ["user", "model"]  # nosec B101


def test_abort_mid_stream_keeps_partial_content_without_error(memory_repo, settings):
    holder: list = []
    client = ScriptedClient(
        [StreamChunk(delta="Start"), lambda: holder[0].abort_generation(), StreamChunk(delta=" more"), *chunks()]
    )
    orch = _make(memory_repo, settings, client)
    holder.append(orch)

    reply = orch.send_message("hi")

    assert "Start" in reply.content and " more" not in reply.content  # nosec B101
    state = orch.state
    assert state.error is None  # nosec B101
    assert state.is_streaming is False  # nosec B101
    assert state.phase is SendPhase.CANCELLED  # nosec B101
    assert client.closed is True  # nosec B101
    assert client.tokens[0].cancelled is True  # nosec B101


def test_abort_from_listener_on_commit(memory_repo, settings):
    client = ScriptedClient(chunks("Start", " more", " and more"))
    orch = _make(memory_repo, settings, client, clock=FakeClock(step=0.02))

    def _on_event(event: str, _state: SessionState) -> None:
        if event == "stream.commit":
            orch.abort_generation()

    orch.subscribe(_on_event)
    reply = orch.send_message("hi")

    assert reply.content == "Start"  # nosec B101
    assert orch.state.error is None and orch.state.is_streaming is False  # nosec B101


def test_abort_when_idle_is_a_noop(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    assert orch.abort_generation() is False  # nosec B101
    orch.send_message("hi")
    assert orch.abort_generation() is False  # nosec B101
    assert orch.state.phase is SendPhase.FINALIZED  # nosec B101


def test_missing_key_sets_error_without_calling_provider(memory_repo):
    calls: list = []
    orch = _make(memory_repo, AppSettings(read_env=False), ScriptedClient(chunks("x")), calls=calls)

    reply = orch.send_message("hi")

    assert reply is None  # nosec B101
    state = orch.state
    assert state.error == "API key not found for google provider"  # nosec B101
    assert state.error_type is ErrorType.AUTH  # nosec B101
    assert state.is_loading is False and state.is_streaming is False  # nosec B101
    assert calls == []  # nosec B101
    assert [m.role for m in state.active_conversation.messages] == ["user"]  # nosec B101


def test_client_construction_failure_is_surfaced(memory_repo, settings):
    def _factory(_pid, _key):
        raise ValueError("Invalid API key")

    orch = ConversationOrchestrator(memory_repo, settings, client_factory=_factory)
    assert orch.send_message("hi") is None  # nosec B101
    assert orch.state.error == "Invalid API key"  # nosec B101
    assert orch.state.error_type is ErrorType.AUTH  # nosec B101


def test_send_while_streaming_is_rejected(memory_repo, settings):
    holder: list = []
    rejected: list = []

    def _send_again() -> None:
        try:
            holder[0].send_message("again")
        except GenerationInProgressError as exc:
            rejected.append(exc)

    client = ScriptedClient([StreamChunk(delta="a"), _send_again, *chunks("b")])
    orch = _make(memory_repo, settings, client)
    holder.append(orch)

    reply = orch.send_message("hi")

    assert len(rejected) == 1  # nosec B101
    assert reply.content == "ab"  # nosec B101
    assert [m.content for m in orch.state.active_conversation.messages] == ["hi", "ab"]  # nosec B101


def test_blank_message_is_rejected(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    with pytest.raises(ValueError):
        orch.send_message("   ")


def test_listener_failure_does_not_break_stream(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("ok")))

    def _broken(_event, _state):
        raise RuntimeError("observer bug")

    orch.subscribe(_broken)
    assert orch.send_message("hi").content == "ok"  # nosec B101


def test_unsubscribe_stops_notifications(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("ok")))
    seen: list = []
    unsubscribe = orch.subscribe(lambda e, _s: seen.append(e))
    unsubscribe()
    orch.send_message("hi")
    assert seen == []  # nosec B101


def test_persist_failure_is_not_surfaced_and_flushes_later(settings):
    repo = _FlakyRepo()
    repo.failing = True
    orch = _make(repo, settings, ScriptedClient(chunks("Hello")))

    reply = orch.send_message("hi")

    conv_id = orch.state.active_conversation_id
    assert reply.content == "Hello"  # nosec B101
    assert orch.state.error is None  # nosec B101
    assert conv_id in orch.pending_writes  # nosec B101
    assert repo.get(conv_id) is None  # nosec B101

    repo.failing = False
    assert orch.flush_pending() == 0  # nosec B101
    stored = repo.get(conv_id)
    assert [m.content for m in stored.messages] == ["hi", "Hello"]  # nosec B101


def test_update_message_replaces_content_and_bumps_updated_at(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("draft")))
    reply = orch.send_message("hi")
    conv = orch.state.active_conversation
    before = conv.updated_at

    orch.update_message(conv.id, reply.id, "edited")

    after = orch.state.active_conversation
    assert after.messages[-1].content == "edited"  # nosec B101
    assert after.messages[-1].id == reply.id  # nosec B101
    assert after.updated_at >= before  # nosec B101
    assert memory_repo.get(conv.id).messages[-1].content == "edited"  # nosec B101


def test_update_message_unknown_ids_raise(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    conv = orch.create_conversation()
    with pytest.raises(ConversationNotFoundError):
        orch.update_message("missing", "m", "x")
    with pytest.raises(ConversationNotFoundError):
        orch.update_message(conv.id, "missing", "x")


def test_update_message_persist_failure_sets_error(settings):
    repo = _FlakyRepo()
    orch = _make(repo, settings, ScriptedClient(chunks("x")))
    reply = orch.send_message("hi")
    repo.failing = True

    orch.update_message(orch.state.active_conversation_id, reply.id, "edited")

    assert orch.state.error == "Failed to update message"  # nosec B101
    assert orch.state.active_conversation.messages[-1].content == "edited"  # nosec B101


def test_lazy_conversation_uses_settings_defaults(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    orch.send_message("hi")
    conv = orch.state.active_conversation
    assert conv.title == "New Conversation"  # nosec B101
    assert conv.model_id == "gemini-1.5-pro"  # nosec B101
    assert conv.parameters == settings.default_parameters  # nosec B101
    assert conv.parameters is not settings.default_parameters  # nosec B101


def test_lazy_conversation_falls_back_when_no_default_model(memory_repo):
    settings = AppSettings(api_keys={"google": "k"}, default_model="", read_env=False)
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    orch.send_message("hi")
    assert orch.state.active_conversation.model_id == FALLBACK_MODEL  # nosec B101


def test_create_and_delete_conversation(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    first = orch.create_conversation(title="first")
    second = orch.create_conversation(model_id="gemini-1.5-flash")

    state = orch.state
    assert state.active_conversation_id == second.id  # nosec B101
    assert {c.id for c in state.conversations} == {first.id, second.id}  # nosec B101
    assert memory_repo.get(second.id).model_id == "gemini-1.5-flash"  # nosec B101

    orch.delete_conversation(second.id)

    assert orch.state.active_conversation_id is None  # nosec B101
    assert [c.id for c in orch.state.conversations] == [first.id]  # nosec B101
    assert memory_repo.get(second.id) is None  # nosec B101


def test_delete_failure_sets_error(settings):
    repo = _FlakyRepo()
    orch = _make(repo, settings, ScriptedClient(chunks("x")))
    conv = orch.create_conversation()
    repo.failing = True

    orch.delete_conversation(conv.id)

    assert orch.state.error == "Failed to delete conversation"  # nosec B101
    assert orch.get_conversation(conv.id) is None  # nosec B101


def test_set_active_conversation_validates_id(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    conv = orch.create_conversation()
    orch.set_active_conversation(None)
    assert orch.state.active_conversation_id is None  # nosec B101
    orch.set_active_conversation(conv.id)
    assert orch.state.active_conversation_id == conv.id  # nosec B101
    with pytest.raises(ConversationNotFoundError):
        orch.set_active_conversation("missing")


def test_load_conversations_orders_by_updated_at(memory_repo, settings):
    seeding = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    older = seeding.create_conversation(title="older")
    newer = seeding.create_conversation(title="newer")
    memory_repo.update(older.id, {"updated_at": newer.updated_at + 10})

    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    loaded = orch.load_conversations()

    assert [c.title for c in loaded] == ["older", "newer"]  # nosec B101
    assert [c.title for c in orch.state.conversations] == ["older", "newer"]  # nosec B101
    assert orch.state.is_loading is False  # nosec B101


def test_load_failure_sets_error_and_keeps_list(settings):
    class _BrokenRepo(InMemoryConversationRepo):
        def get_all(self):
            raise OSError("unreadable")

    orch = _make(_BrokenRepo(), settings, ScriptedClient(chunks("x")))
    orch.create_conversation()

    assert orch.load_conversations() == []  # nosec B101
    assert orch.state.error == "Failed to load conversations"  # nosec B101
    assert len(orch.state.conversations) == 1  # nosec B101
    assert orch.state.is_loading is False  # nosec B101


def test_state_snapshots_are_isolated(memory_repo, settings):
    orch = _make(memory_repo, settings, ScriptedClient(chunks("x")))
    orch.send_message("hi")
    snapshot = orch.state
    snapshot.active_conversation.messages[0].content = "tampered"
    assert orch.state.active_conversation.messages[0].content == "hi"  # nosec B101


def test_sqlite_backed_session_round_trips(sqlite_repo, settings):
    orch = _make(sqlite_repo, settings, ScriptedClient(chunks("Hello", " World", total=7)))
    orch.send_message("hi")

    fresh = _make(sqlite_repo, settings, ScriptedClient([]))
    (conv,) = fresh.load_conversations()
    assert [m.content for m in conv.messages] == ["hi", "Hello World"]  # nosec B101
    assert conv.messages[-1].metadata.tokens == 7  # nosec B101
    assert conv.metadata.total_tokens == 7  # nosec B101
