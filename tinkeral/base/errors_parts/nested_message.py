"""
Nested JSON error-body extraction.

Some backends wrap an upstream failure inside their own error envelope, and
serialize the inner envelope as a *string* inside the outer ``message``::

    {"error": {"message": "{\\"error\\": {\\"message\\": \\"quota exceeded\\", \\"code\\": 429}}", "code": 500}}

``extract_nested_error`` unwraps such chains down to the innermost human
message and reports the innermost numeric ``code`` it saw along the way.

Notes
-----
- Never raises. Non-JSON, truncated JSON, or JSON without a ``message`` stops
  the descent and returns what has been found so far (the original string
  when nothing parsed).
- Each step descends into a strictly shorter string, so the loop terminates
  for any finite nesting depth without a depth cap.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NestedErrorDetail:
    """Result of unwrapping a possibly nested error message.

    Attributes:
        message: Innermost human-readable message.
        code: Innermost numeric code seen (inner codes override outer ones).
        status: Innermost textual status (e.g. ``"RESOURCE_EXHAUSTED"``).
    """

    message: str
    code: Optional[int] = None
    status: Optional[str] = None


def _json_object_slice(text: str) -> Optional[str]:
    start = text.find("{")
    end = text.rfind("}")
    if start == -1 or end <= start:
        return None
    return text[start : end + 1]


def _coerce_code(value: Any) -> Optional[int]:
    """Return ``value`` as an int when it looks like a numeric code."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    return None


def _error_body(payload: Dict[str, Any]) -> Dict[str, Any]:
    inner = payload.get("error")
    return inner if isinstance(inner, dict) else payload


def extract_nested_error(message: str) -> NestedErrorDetail:
    """Unwrap JSON-encoded error envelopes to the innermost message.

    Parameters
    ----------
    message: str
        Raw diagnostic string, typically ``str(exc)`` from a backend SDK.

    Returns
    -------
    NestedErrorDetail
        Innermost message and code. For input that is not a JSON error
        envelope, ``message`` is returned unchanged with ``code=None``.
    """
    if not isinstance(message, str):
        return NestedErrorDetail(message=str(message))
    current = message
    code: Optional[int] = None
    status: Optional[str] = None
    while True:
        candidate = _json_object_slice(current)
        if candidate is None:
            break
        try:
            payload = json.loads(candidate)
        except ValueError:
            break
        if not isinstance(payload, dict):
            break
        body = _error_body(payload)
        found = _coerce_code(body.get("code"))
        if found is not None:
            code = found
        if isinstance(body.get("status"), str):
            status = body["status"]
        inner = body.get("message")
        if not isinstance(inner, str) or len(inner) >= len(current):
            break
        current = inner
    return NestedErrorDetail(message=current, code=code, status=status)


__all__ = ["NestedErrorDetail", "extract_nested_error"]
