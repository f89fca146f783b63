"""Cooperative cancellation token implementation.

Exposes ``CancellationToken``: a thread-safe cancel flag with optional
parent/child cascading and cancel listeners. Listeners let a blocked wait
(for example a worker-thread call raced against cancellation) wake up
immediately instead of polling.
"""

from __future__ import annotations

from threading import Lock
from typing import Callable, List, Optional

from ..logging import get_logger
from .cancelled_error import CancelledError
from .state import State

Listener = Callable[[Optional[str]], None]

_logger = get_logger("tinkeral.cancellation")


class CancellationToken:
    """A cooperative cancellation token with cascading semantics.

    Thread-safe for ``cancel``, listener registration and polling. Child tokens
    inherit cancellation when the parent is cancelled. Listeners run exactly
    once, on the thread that calls ``cancel``, outside the internal lock.
    """

    def __init__(self, *, parent: "CancellationToken | None" = None) -> None:
        self._state = State()
        self._lock = Lock()
        self._children: List[CancellationToken] = []
        if parent is not None:
            parent.link_child(self)

    @property
    def cancelled(self) -> bool:  # noqa: D401 - short form
        """Whether cancellation has been requested."""
        return self._state.cancelled

    @property
    def reason(self) -> str | None:  # noqa: D401 - short form
        """Reason string supplied at cancel time (if any)."""
        return self._state.reason

    def cancel(self, reason: str | None = None) -> None:
        """Request cancellation, notify listeners and cascade to children."""
        with self._lock:
            if self._state.cancelled:
                return
            self._state.cancelled = True
            self._state.reason = reason
            listeners = list(self._state.listeners.values())
            self._state.listeners.clear()
            children = list(self._children)
        for listener in listeners:
            try:
                listener(reason)
            except Exception as exc:  # listener failures must not block cancellation
                _logger.warning("cancellation listener failed: %s", exc)
        for child in children:
            child.cancel(reason)

    def add_listener(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener`` to run on cancellation; return its remover.

        When the token is already cancelled the listener runs immediately and
        the returned remover is a no-op.
        """
        with self._lock:
            if not self._state.cancelled:
                handle = self._state.next_handle
                self._state.next_handle += 1
                self._state.listeners[handle] = listener
                return lambda: self._remove(handle)
            reason = self._state.reason
        listener(reason)
        return lambda: None

    def _remove(self, handle: int) -> None:
        with self._lock:
            self._state.listeners.pop(handle, None)

    @property
    def listener_count(self) -> int:
        """Number of currently registered listeners."""
        with self._lock:
            return len(self._state.listeners)

    def link_child(self, token: "CancellationToken") -> "CancellationToken":
        """Link a child token so parent cancellation cascades (returns child)."""
        with self._lock:
            self._children.append(token)
            should_cancel = self._state.cancelled
            reason = self._state.reason
        if should_cancel:
            token.cancel(reason)
        return token

    def raise_if_cancelled(self) -> None:
        """Raise ``CancelledError`` if token is cancelled."""
        if self._state.cancelled:
            raise CancelledError(self._state.reason or "operation cancelled")

    def child(self) -> "CancellationToken":
        """Create and link a child token (shortcut)."""
        return CancellationToken(parent=self)

    def __repr__(self) -> str:  # pragma: no cover - introspection aid
        return (
            f"CancellationToken(cancelled={self._state.cancelled}, "
            f"reason={self._state.reason!r}, listeners={len(self._state.listeners)})"
        )


__all__ = ["CancellationToken", "Listener"]
