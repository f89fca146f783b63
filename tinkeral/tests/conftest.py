"""Shared fixtures for the tinkeral test suite.

Provides a deterministic clock, scripted provider clients that replay a list
of chunks (optionally raising or running a hook mid-stream), in-memory and
SQLite repositories, and settings that never read the real environment.
"""

from __future__ import annotations

from typing import Any, Callable, Iterator, List, Optional, Sequence, Union

import pytest

from tinkeral.base.cancellation import CancellationToken
from tinkeral.base.models import ChatRequest, StreamChunk, TokenUsage
from tinkeral.config.settings import AppSettings
from tinkeral.persistence.memory import InMemoryConversationRepo
from tinkeral.persistence.sqlite import ConversationRepoSqlite, create_connection, init_schema

Step = Union[StreamChunk, BaseException, Callable[[], None]]


class FakeClock:
    """Monotonic clock advancing by ``step`` seconds on every read."""

    def __init__(self, start: float = 100.0, step: float = 0.001) -> None:
        self.now = start
        self.step = step

    def __call__(self) -> float:
        value = self.now
        self.now += self.step
        return value


class ScriptedClient:
    """Provider stand-in whose ``stream_chat`` replays ``steps``.

    Each step is a chunk to yield, an exception to raise or a zero-argument
    callable to run (used to abort from inside the stream).
    """

    provider_id = "scripted"

    def __init__(self, steps: Sequence[Step]) -> None:
        self.steps = list(steps)
        self.requests: List[ChatRequest] = []
        self.tokens: List[Optional[CancellationToken]] = []
        self.closed = False

    def stream_chat(self, request: ChatRequest, cancellation_token: Optional[CancellationToken] = None) -> Iterator[StreamChunk]:
        self.requests.append(request)
        self.tokens.append(cancellation_token)
        try:
            for step in self.steps:
                if isinstance(step, BaseException):
                    raise step
                if callable(step) and not isinstance(step, StreamChunk):
                    step()
                    continue
                yield step
        finally:
            self.closed = True


def chunks(*deltas: str, finish: str = "stop", total: Optional[int] = None) -> List[StreamChunk]:
    """Build delta chunks followed by a terminal chunk."""
    usage = TokenUsage(prompt_tokens=0, completion_tokens=total, total_tokens=total) if total is not None else None
    return [StreamChunk(delta=d) for d in deltas] + [StreamChunk(delta="", finish_reason=finish, usage=usage)]  # type: ignore[arg-type]


@pytest.fixture()
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> AppSettings:
    """Settings with a Google key and no environment lookups."""
    return AppSettings(api_keys={"google": "k-123"}, default_model="gemini-1.5-pro", read_env=False)


@pytest.fixture()
def memory_repo() -> InMemoryConversationRepo:
    return InMemoryConversationRepo()


@pytest.fixture()
def conn(tmp_path):
    """SQLite connection on a temporary file with the schema applied."""
    c = create_connection(str(tmp_path / "tinkeral.db"))
    init_schema(c)
    try:
        yield c
    finally:
        c.close()


@pytest.fixture()
def sqlite_repo(conn) -> ConversationRepoSqlite:
    return ConversationRepoSqlite(conn)


@pytest.fixture()
def no_provider_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("GEMINI_API_KEY", "GOOGLE_API_KEY", "TINKERAL_CONFIG_FILE", "TINKERAL_DEFAULT_MODEL", "TINKERAL_DB_PATH"):
        monkeypatch.delenv(name, raising=False)


def factory_for(client: Any, calls: Optional[list] = None) -> Callable[[str, str], Any]:
    """Return a client factory that records ``(provider_id, api_key)`` and returns ``client``."""

    def _factory(provider_id: str, api_key: str) -> Any:
        if calls is not None:
            calls.append((provider_id, api_key))
        return client

    return _factory
