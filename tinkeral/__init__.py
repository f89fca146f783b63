"""tinkeral package

Chat client core for hosted LLMs: a streaming conversation orchestrator, a
normalized error taxonomy and a Google Gemini provider adapter.

Public entry points live in their subpackages:
    - ``tinkeral.orchestrator``: :class:`ConversationOrchestrator`
    - ``tinkeral.base.errors``: :class:`ProviderError`, :func:`normalize_error`
    - ``tinkeral.base.factory``: :class:`ProviderFactory`
    - ``tinkeral.persistence``: conversation repositories
"""

__version__ = "0.1.0"

__all__ = ["__version__"]
