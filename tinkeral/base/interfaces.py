"""Public interfaces facade.

Re-exports the Protocols implemented by provider adapters and settings
sources. Repository contracts live in ``tinkeral.persistence.interfaces``.
"""

from .interfaces_parts.llm_provider import LLMProvider
from .interfaces_parts.settings_provider import SettingsProvider

__all__ = ["LLMProvider", "SettingsProvider"]
