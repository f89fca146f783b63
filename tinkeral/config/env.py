"""tinkeral.config.env
====================

Environment variable mapping for provider credentials.

- ``ENV_MAP`` holds the canonical variable per provider id.
- ``ENV_ALIASES`` lists every accepted name in priority order (canonical
  first). The Google provider is reachable as both ``google`` and ``gemini``
  and accepts ``GEMINI_API_KEY`` or ``GOOGLE_API_KEY``.

Helpers never raise for unknown providers or unset variables; they return
``None`` and let callers decide.
"""

from __future__ import annotations

import os
from typing import Dict, Iterable, Mapping, Optional, Tuple

ENV_MAP: Dict[str, str] = {
    "google": "GEMINI_API_KEY",
    "gemini": "GEMINI_API_KEY",
}

ENV_ALIASES: Dict[str, Tuple[str, ...]] = {
    "google": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
    "gemini": ("GEMINI_API_KEY", "GOOGLE_API_KEY"),
}

CONFIG_FILE_ENV = "TINKERAL_CONFIG_FILE"
DEFAULT_MODEL_ENV = "TINKERAL_DEFAULT_MODEL"
DB_PATH_ENV = "TINKERAL_DB_PATH"


def is_placeholder(val: Optional[str]) -> bool:
    """Return True for values that look like placeholders rather than real keys.

    Heuristics (case-insensitive): contains ``placeholder``, ``changeme`` or
    ``example``, or starts with ``test_``.
    """
    if val is None:
        return False
    v = str(val).strip().lower()
    return "placeholder" in v or "changeme" in v or "example" in v or v.startswith("test_")


def get_env_var_name(provider: str) -> Optional[str]:
    """Return the canonical environment variable for ``provider`` (case-insensitive)."""
    return ENV_MAP.get(provider.lower()) if provider else None


def get_env_var_candidates(provider: str) -> Iterable[str]:
    """Yield acceptable variable names for ``provider``, canonical first."""
    p = (provider or "").lower()
    canonical = ENV_MAP.get(p)
    if canonical:
        yield canonical
    for alias in ENV_ALIASES.get(p, ()):
        if alias != canonical:
            yield alias


def resolve_provider_key(
    provider: str, environ: Optional[Mapping[str, str]] = None
) -> Tuple[Optional[str], Optional[str]]:
    """Return ``(value, variable_name)`` for the first non-empty candidate.

    ``environ`` defaults to ``os.environ``. Placeholder values are skipped.
    ``(None, None)`` when nothing usable is set.
    """
    env = os.environ if environ is None else environ
    for name in get_env_var_candidates(provider):
        val = env.get(name)
        if val and not is_placeholder(val):
            return val, name
    return None, None


__all__ = [
    "ENV_MAP",
    "ENV_ALIASES",
    "CONFIG_FILE_ENV",
    "DEFAULT_MODEL_ENV",
    "DB_PATH_ENV",
    "is_placeholder",
    "get_env_var_name",
    "get_env_var_candidates",
    "resolve_provider_key",
]
