"""tinkeral.config.defaults
=========================

Central place for small, stable default values used across the package.
Values can be overridden through environment variables or the optional
settings file (see ``tinkeral.config.settings``).

This module imports nothing from the rest of the package so it can be used
anywhere without circular imports.
"""

from __future__ import annotations

# ---- Conversation defaults ----
# Model used when no setting is configured.
DEFAULT_MODEL = "gemini-1.5-pro"
# Model used for lazily created conversations when settings carry no default.
FALLBACK_MODEL = "gemma-3-1b-it"
DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_TOKENS = 1024
DEFAULT_TOP_P = 0.9
DEFAULT_CONVERSATION_TITLE = "New Conversation"

# ---- Provider defaults ----
DEFAULT_PROVIDER = "google"
GEMINI_DEFAULT_MODEL = DEFAULT_MODEL

# ---- Streaming ----
# Minimum spacing between in-memory commits of streamed content (~60 Hz).
COMMIT_INTERVAL_MS = 16

# ---- Retry ----
RETRY_MAX_ATTEMPTS = 3
RETRY_DELAY_BASE = 2.0

# ---- CLI ----
CLI_PROG = "tinkeral"

# ---- SQLite config (infrastructure) ----
SQLITE_JOURNAL_MODE = "WAL"
SQLITE_SYNCHRONOUS = "NORMAL"
SQLITE_BUSY_TIMEOUT_MS = 3000
SQLITE_DEFAULT_FILENAME = "tinkeral.db"


__all__ = [
    "DEFAULT_MODEL",
    "FALLBACK_MODEL",
    "DEFAULT_TEMPERATURE",
    "DEFAULT_MAX_TOKENS",
    "DEFAULT_TOP_P",
    "DEFAULT_CONVERSATION_TITLE",
    "DEFAULT_PROVIDER",
    "GEMINI_DEFAULT_MODEL",
    "COMMIT_INTERVAL_MS",
    "RETRY_MAX_ATTEMPTS",
    "RETRY_DELAY_BASE",
    "CLI_PROG",
    "SQLITE_JOURNAL_MODE",
    "SQLITE_SYNCHRONOUS",
    "SQLITE_BUSY_TIMEOUT_MS",
    "SQLITE_DEFAULT_FILENAME",
]
