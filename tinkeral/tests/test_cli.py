"""CLI smoke tests using the offline mock provider."""
from __future__ import annotations

import json
import sqlite3

import pytest

from tinkeral.persistence.memory import InMemoryConversationRepo
from tinkeral.persistence.sqlite import ConversationRepoSqlite
from tinkeral.service import cli
from tinkeral.service.cli.cli_actions import open_repository
from tinkeral.service.cli.cli_parser import build_parser


def _error_lines(stderr: str) -> list:
    """Return JSON objects on stderr that are CLI errors rather than log events."""
    out = []
    for line in stderr.splitlines():
        try:
            data = json.loads(line)
        except ValueError:
            continue
        if isinstance(data, dict) and "event" not in data:
            out.append(data)
    return out


@pytest.fixture(autouse=True)
def _isolated_env(no_provider_env):
    yield


def test_parser_defaults():
    args = build_parser().parse_args(["chat", "--prompt", "hi"])
    assert args.provider == "google" and args.model is None and args.db is None  # nosec B101


def test_parser_rejects_unknown_provider():
    with pytest.raises(SystemExit):
        build_parser().parse_args(["models", "--provider", "nope"])


def test_no_subcommand_prints_help(capsys):
    assert cli.main([]) == 2  # nosec B101
    assert "usage:" in capsys.readouterr().out  # nosec B101


def test_chat_streams_mock_reply(capsys):
    code = cli.main(["chat", "--provider", "mock", "--prompt", "hi"])
    assert code == 0  # nosec B101
    assert capsys.readouterr().out == "Hello! How can I help you today?\n"  # nosec B101


def test_chat_reports_provider_error(capsys):
    code = cli.main(["chat", "--provider", "mock", "--prompt", "trigger server error"])
    captured = capsys.readouterr()
    assert code == 1  # nosec B101
    (error,) = _error_lines(captured.err)
    assert error["type"] == "server"  # nosec B101


def test_chat_without_key_fails_before_network(capsys):
    code = cli.main(["chat", "--prompt", "hi"])
    (error,) = _error_lines(capsys.readouterr().err)
    assert code == 1  # nosec B101
    assert error == {"error": "API key not found for google provider", "type": "auth"}  # nosec B101


def test_chat_persists_to_sqlite_and_lists_conversations(tmp_path, capsys):
    db = str(tmp_path / "chat.db")
    assert cli.main(["chat", "--provider", "mock", "--prompt", "hello", "--db", db, "--system", "be brief"]) == 0  # nosec B101
    capsys.readouterr()

    assert cli.main(["conversations", "--db", db]) == 0  # nosec B101
    rows = json.loads(capsys.readouterr().out)
    assert len(rows) == 1 and rows[0]["messages"] == 2  # nosec B101
    assert rows[0]["title"] == "New Conversation"  # nosec B101


def test_chat_empty_reply_reports_error(capsys):
    code = cli.main(["chat", "--provider", "mock", "--prompt", "trigger empty response"])
    captured = capsys.readouterr()
    assert code == 1  # nosec B101
    (error,) = _error_lines(captured.err)
    assert error["type"] == "content_filter"  # nosec B101


def test_open_repository_closes_sqlite_connection(tmp_path):
    with open_repository(str(tmp_path / "repo.db")) as repo:
        assert isinstance(repo, ConversationRepoSqlite)  # nosec B101
        assert repo.get_all() == []  # nosec B101
    with pytest.raises(sqlite3.ProgrammingError):
        repo.conn.execute("SELECT 1")

    with open_repository(None) as memory_repo:
        assert isinstance(memory_repo, InMemoryConversationRepo)  # nosec B101


def test_models_lists_mock_catalog(capsys):
    assert cli.main(["models", "--provider", "mock"]) == 0  # nosec B101
    ids = [m["id"] for m in json.loads(capsys.readouterr().out)]
    assert ids == ["mock-chat", "mock-lite"]  # nosec B101


def test_models_without_key_fails(capsys):
    assert cli.main(["models"]) == 1  # nosec B101
    (error,) = _error_lines(capsys.readouterr().err)
    assert error["type"] == "auth"  # nosec B101


def test_tokens_uses_provider_or_estimate(capsys):
    assert cli.main(["tokens", "--provider", "mock", "--text", "abcdefgh"]) == 0  # nosec B101
    assert capsys.readouterr().out.strip() == "2"  # nosec B101
    assert cli.main(["tokens", "--text", "abcdefghi"]) == 0  # nosec B101
    assert capsys.readouterr().out.strip() == "3"  # nosec B101
