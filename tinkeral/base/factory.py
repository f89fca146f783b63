"""Provider Factory utilities.

Purpose
-------
Create adapter instances implementing ``LLMProvider`` from a provider id.
Adapters are imported lazily with ``importlib`` so the Google SDK is only
loaded when a Google client is actually requested.

Failure semantics
-----------------
The factory performs no retries or fallbacks; it either returns an instance
or raises :class:`UnknownProviderError`.
"""

from __future__ import annotations

from importlib import import_module
from typing import Any, Dict, Tuple, Type


class UnknownProviderError(Exception):
    """Raised when a provider id cannot be resolved or its adapter fails to build.

    Failure modes include:
    - The provider id is not registered.
    - The adapter module cannot be imported or the class is missing.
    - The adapter constructor rejected its arguments.
    """


class ProviderFactory:
    """Create provider adapters based on a canonical id (e.g. ``"google"``)."""

    _PROVIDERS: Dict[str, Dict[str, str]] = {
        "google": {"module": "tinkeral.gemini.client", "class": "GeminiProvider"},
        "gemini": {"module": "tinkeral.gemini.client", "class": "GeminiProvider"},
        "mock": {"module": "tinkeral.mock.client", "class": "MockProvider"},
    }

    @classmethod
    def create(cls, provider: str, **kwargs: Any) -> Any:
        """Create a provider adapter instance.

        Parameters
        ----------
        provider:
            Provider id (case-insensitive).
        **kwargs:
            Adapter constructor arguments (e.g. ``api_key``).

        Returns
        -------
        Any
            Instance implementing ``LLMProvider``.

        Raises
        ------
        UnknownProviderError
            Unknown id, import failure, missing class or bad constructor args.
        """
        name = (provider or "").lower().strip()
        spec = cls._PROVIDERS.get(name)
        if not spec:
            raise UnknownProviderError(f"Unknown provider '{provider}'")

        module_path, class_name = spec["module"], spec["class"]
        try:
            mod = import_module(module_path)
        except ImportError as exc:
            raise UnknownProviderError(
                f"Failed to import module '{module_path}' for provider '{provider}': {exc}"
            ) from exc

        try:
            klass: Type = getattr(mod, class_name)
        except AttributeError as exc:
            raise UnknownProviderError(
                f"Adapter class '{class_name}' not found in '{module_path}' for provider '{provider}'"
            ) from exc

        try:
            return klass(**kwargs)
        except TypeError as exc:
            raise UnknownProviderError(
                f"Invalid arguments for '{provider}' adapter constructor: {exc}"
            ) from exc

    @classmethod
    def supported(cls) -> Tuple[str, ...]:
        """Return registered provider ids in deterministic order."""
        return tuple(cls._PROVIDERS.keys())


__all__ = ["ProviderFactory", "UnknownProviderError"]
