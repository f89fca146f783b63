"""CLI action handlers.

Purpose
-------
Subcommand handlers for the ``tinkeral`` CLI. Each handler takes the parsed
``argparse.Namespace``, writes human output to stdout and returns a process
exit code. This module has no top-level side effects and is safe to import in
tests.

Fallback & Error Semantics
--------------------------
- Failures are reported as a JSON object on stderr with a non-zero return
  code; structured logs go through ``tinkeral.base.logging``.
- The ``mock`` provider needs no credential; a placeholder key is supplied so
  the orchestrator's credential check passes offline.
"""

from __future__ import annotations

import argparse
import json
import sys
from contextlib import contextmanager
from dataclasses import asdict
from typing import Any, Dict, Iterator, Optional

from ...base.errors import ProviderError, normalize_error
from ...base.factory import ProviderFactory, UnknownProviderError
from ...base.logging import LogContext, get_logger, log_event
from ...base.tokens import estimate_tokens
from ...config.settings import AppSettings, load_app_settings
from ...orchestrator import ConversationOrchestrator, SessionState
from ...persistence.interfaces import ConversationRepository
from ...persistence.memory import InMemoryConversationRepo
from ...persistence.sqlite import ConversationRepoSqlite, create_connection, init_schema

MOCK_PROVIDER = "mock"
OFFLINE_KEY = "offline"

_logger = get_logger("tinkeral.cli")


def _print_error(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, ensure_ascii=False), file=sys.stderr)


def load_settings(provider: str) -> AppSettings:
    """Return application settings, with a placeholder key for the mock provider."""
    settings = load_app_settings()
    if provider == MOCK_PROVIDER:
        settings.api_keys.setdefault(MOCK_PROVIDER, OFFLINE_KEY)
    return settings


@contextmanager
def open_repository(db: Optional[str]) -> Iterator[ConversationRepository]:
    """Yield the SQLite repository at ``db``; without a path, use process memory.

    The SQLite connection is closed when the block exits.
    """
    if not db:
        yield InMemoryConversationRepo()
        return
    conn = create_connection(db)
    try:
        init_schema(conn)
        yield ConversationRepoSqlite(conn)
    finally:
        conn.close()


def create_client(provider: str, settings: AppSettings) -> Any:
    """Build a provider client with the configured credential.

    Raises
    ------
    ProviderError
        ``auth`` error when no credential is configured for ``provider``.
    UnknownProviderError
        When the provider id is not registered.
    """
    key = settings.get_api_key(provider)
    if not key:
        raise normalize_error(PermissionError(f"API key not found for {provider} provider"), provider)
    return ProviderFactory.create(provider, api_key=key)


class _StreamPrinter:
    """Orchestrator listener printing only the newly committed suffix of the reply."""

    def __init__(self, out: Any = None) -> None:
        self._out = out or sys.stdout
        self._printed = 0
        self.message_id: Optional[str] = None

    def __call__(self, event: str, state: SessionState) -> None:
        if event == "message.placeholder":
            conv = state.active_conversation
            if conv is not None and conv.messages:
                self.message_id = conv.messages[-1].id
                self._printed = 0
            return
        if event not in ("stream.commit", "stream.final", "stream.error", "stream.abort") or not self.message_id:
            return
        conv = state.active_conversation
        message = conv.find_message(self.message_id) if conv is not None else None
        if message is None:
            return
        self._out.write(message.content[self._printed :])
        self._out.flush()
        self._printed = len(message.content)


def handle_chat(args: argparse.Namespace) -> int:
    """Send ``--prompt`` and stream the reply to stdout.

    Returns
    -------
    int
        ``0`` when the reply finalized, ``1`` when the send ended with an error.
    """
    settings = load_settings(args.provider)
    printer = _StreamPrinter()
    with open_repository(args.db) as repo:
        orchestrator = ConversationOrchestrator(repo, settings, provider_id=args.provider)
        if args.model or args.system:
            orchestrator.create_conversation(model_id=args.model, system_prompt=args.system)
        unsubscribe = orchestrator.subscribe(printer)
        try:
            orchestrator.send_message(args.prompt)
        finally:
            unsubscribe()
        state = orchestrator.state
    if state.error:
        print()
        _print_error({"error": state.error, "type": state.error_type.value if state.error_type else None})
        return 1
    print()
    return 0


def handle_models(args: argparse.Namespace) -> int:
    """Print the provider's model catalog as JSON."""
    settings = load_settings(args.provider)
    try:
        client = create_client(args.provider, settings)
        models = client.get_models()
    except (ProviderError, UnknownProviderError) as exc:
        err = normalize_error(exc, args.provider)
        log_event(_logger, "cli.models_failed", LogContext(provider=args.provider), error=err.message)
        _print_error({"error": err.user_message, "type": err.type.value})
        return 1
    print(json.dumps([asdict(m) for m in models], indent=2, ensure_ascii=False))
    return 0


def handle_tokens(args: argparse.Namespace) -> int:
    """Print the token count for ``--text``.

    Uses the provider's counter when a credential is configured and the local
    estimate otherwise.
    """
    settings = load_settings(args.provider)
    model = args.model or settings.default_model
    try:
        client = create_client(args.provider, settings)
    except (ProviderError, UnknownProviderError) as exc:
        log_event(_logger, "cli.tokens_estimate", LogContext(provider=args.provider, model=model), error=str(exc))
        count = estimate_tokens(args.text)
    else:
        count = client.count_tokens(args.text, model)
    print(count)
    return 0


def handle_conversations(args: argparse.Namespace) -> int:
    """Print stored conversations (most recent first) as JSON."""
    with open_repository(args.db) as repo:
        rows = [
            {
                "id": c.id,
                "title": c.title,
                "modelId": c.model_id,
                "messages": len(c.messages),
                "updatedAt": c.updated_at,
            }
            for c in repo.get_all()
        ]
    print(json.dumps(rows, indent=2, ensure_ascii=False))
    return 0


__all__ = [
    "handle_chat",
    "handle_models",
    "handle_tokens",
    "handle_conversations",
    "load_settings",
    "open_repository",
    "create_client",
]
