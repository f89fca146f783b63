"""SettingsProvider Protocol (single-class module)."""

from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from ..models import ModelParameters


@runtime_checkable
class SettingsProvider(Protocol):
    """Read-only access to credentials and defaults used by the orchestrator."""

    @property
    def default_model(self) -> str:
        ...

    @property
    def default_parameters(self) -> ModelParameters:
        ...

    def get_api_key(self, provider_id: str) -> Optional[str]:
        """Return the credential for ``provider_id`` or ``None`` when unset."""
        ...
