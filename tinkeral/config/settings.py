"""Application settings: credentials and conversation defaults.

Merge order (later wins)
------------------------
1. Built-in defaults (``tinkeral.config.defaults``)
2. Optional settings file pointed to by ``TINKERAL_CONFIG_FILE`` (JSON first,
   then YAML), validated with :class:`SettingsFileDTO`
3. Environment variables (``TINKERAL_DEFAULT_MODEL``; credentials through
   ``tinkeral.config.env``)
4. Explicit keyword overrides passed to :func:`load_app_settings`

Credentials found in the settings file are used only when no environment
variable provides one.
"""
from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from ..base.dto import ModelParametersDTO, SettingsFileDTO
from ..base.logging import get_logger, log_event
from ..base.models import ModelParameters
from .defaults import DEFAULT_MAX_TOKENS, DEFAULT_MODEL, DEFAULT_TEMPERATURE, DEFAULT_TOP_P
from .env import CONFIG_FILE_ENV, DEFAULT_MODEL_ENV, ENV_ALIASES, resolve_provider_key

_logger = get_logger("tinkeral.config")


def default_parameters() -> ModelParameters:
    return ModelParameters(
        temperature=DEFAULT_TEMPERATURE,
        max_tokens=DEFAULT_MAX_TOKENS,
        top_p=DEFAULT_TOP_P,
    )


def _provider_aliases(provider_id: str) -> tuple:
    """Return ids sharing a credential with ``provider_id`` (itself first)."""
    p = (provider_id or "").lower()
    peers = [k for k, v in ENV_ALIASES.items() if k != p and v == ENV_ALIASES.get(p)]
    return (p, *peers)


@dataclass
class AppSettings:
    """Concrete ``SettingsProvider`` backed by an in-memory key map.

    Attributes:
        api_keys: Provider id to credential mapping.
        default_model: Model used for new conversations.
        default_parameters: Sampling parameters used for new conversations.
        read_env: When True, ``get_api_key`` falls back to environment variables.
        environ: Mapping consulted for credentials; ``None`` means ``os.environ``.
    """

    api_keys: Dict[str, str] = field(default_factory=dict)
    default_model: str = DEFAULT_MODEL
    default_parameters: ModelParameters = field(default_factory=default_parameters)
    read_env: bool = True
    environ: Optional[Mapping[str, str]] = field(default=None, repr=False)

    def get_api_key(self, provider_id: str) -> Optional[str]:
        """Return the credential for ``provider_id`` or ``None`` when unset.

        Environment variables win over stored keys.
        """
        if self.read_env:
            value, _name = resolve_provider_key(provider_id, self.environ)
            if value:
                return value
        for alias in _provider_aliases(provider_id):
            if key := self.api_keys.get(alias):
                return key
        return None


def _read_settings_file(path: Path) -> Dict[str, Any]:
    """Parse ``path`` as JSON, falling back to YAML; non-mappings yield ``{}``."""
    text = path.read_text(encoding="utf-8")
    try:
        data = json.loads(text)
    except ValueError:
        try:
            data = yaml.safe_load(text) or {}
        except yaml.YAMLError as exc:
            log_event(_logger, "config.file_invalid", path=str(path), error=str(exc))
            return {}
    if not isinstance(data, dict):
        log_event(_logger, "config.file_invalid", path=str(path), error="top-level value is not a mapping")
        return {}
    return data


def load_app_settings(
    config_file: Optional[str] = None,
    *,
    environ: Optional[Mapping[str, str]] = None,
    **overrides: Any,
) -> AppSettings:
    """Build :class:`AppSettings` from defaults, file, environment and overrides.

    Parameters
    ----------
    config_file: Optional[str]
        Settings file path. Defaults to ``$TINKERAL_CONFIG_FILE`` when set.
    environ: Optional[Mapping[str, str]]
        Environment mapping (defaults to ``os.environ``). It is kept on the
        returned settings and also used for credential lookup.
    **overrides: Any
        ``default_model``, ``default_parameters`` (mapping or
        ``ModelParameters``) or ``api_keys`` applied last.

    Raises
    ------
    pydantic.ValidationError
        When the file or overrides carry out-of-range parameters.
    """
    env = os.environ if environ is None else environ
    settings = AppSettings(environ=environ)

    path_str = config_file or env.get(CONFIG_FILE_ENV)
    if path_str:
        path = Path(path_str).expanduser()
        if path.is_file():
            dto = SettingsFileDTO.model_validate(_read_settings_file(path))
            if dto.default_model:
                settings.default_model = dto.default_model
            if dto.default_parameters is not None:
                settings.default_parameters = dto.default_parameters.to_parameters()
            settings.api_keys.update(dto.api_keys)
        else:
            log_event(_logger, "config.file_missing", path=str(path))

    if model := env.get(DEFAULT_MODEL_ENV):
        settings.default_model = model

    if overrides.get("default_model"):
        settings.default_model = overrides["default_model"]
    params = overrides.get("default_parameters")
    if isinstance(params, ModelParameters):
        settings.default_parameters = params
    elif isinstance(params, Mapping):
        settings.default_parameters = ModelParametersDTO.model_validate(params).to_parameters()
    if overrides.get("api_keys"):
        settings.api_keys.update(overrides["api_keys"])
    return settings


__all__ = ["AppSettings", "default_parameters", "load_app_settings"]
