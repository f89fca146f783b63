"""Google Gemini provider adapter (google-generativeai)."""

from .client import GeminiProvider

__all__ = ["GeminiProvider"]
