"""Configuration layer: defaults, credential environment mapping and settings.

Public API
----------
* ``load_app_settings(config_file=None, **overrides) -> AppSettings``
* ``AppSettings.get_api_key(provider_id)``
* ``resolve_provider_key(provider_id)``
"""
from __future__ import annotations

from .env import resolve_provider_key
from .settings import AppSettings, default_parameters, load_app_settings

__all__ = ["AppSettings", "default_parameters", "load_app_settings", "resolve_provider_key"]
