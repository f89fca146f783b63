"""Race a blocking call against a cancellation token.

``run_cancellable`` submits ``fn`` to a worker thread and waits for whichever
happens first: the call finishing or the token being cancelled. The token
listener registered for the wait is removed on every exit path (success,
failure and cancellation), so repeated calls on a long-lived token do not
accumulate listeners.

When cancellation wins, the worker keeps running in the background and its
eventual result is discarded; SDK calls offer no portable way to interrupt.
"""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional, TypeVar

from ..errors import cancelled_error
from .cancellation_token import CancellationToken

T = TypeVar("T")

_DEFAULT_EXECUTOR: Optional[ThreadPoolExecutor] = None
_EXECUTOR_LOCK = threading.Lock()


def _default_executor() -> ThreadPoolExecutor:
    global _DEFAULT_EXECUTOR
    with _EXECUTOR_LOCK:
        if _DEFAULT_EXECUTOR is None:
            _DEFAULT_EXECUTOR = ThreadPoolExecutor(max_workers=4, thread_name_prefix="tinkeral-call")
        return _DEFAULT_EXECUTOR


def run_cancellable(
    fn: Callable[[], T],
    token: Optional[CancellationToken],
    *,
    provider: Optional[str] = None,
    executor: Optional[Executor] = None,
) -> T:
    """Run ``fn`` and return its result unless ``token`` is cancelled first.

    Parameters
    ----------
    fn: Callable[[], T]
        Zero-argument blocking call (typically an SDK request).
    token: Optional[CancellationToken]
        Token to race against. ``None`` runs ``fn`` inline.
    provider: Optional[str]
        Provider key recorded on the cancellation error.
    executor: Optional[Executor]
        Executor used for the worker; a shared pool is used when omitted.

    Raises
    ------
    ProviderError
        With ``type=cancelled`` when the token wins the race (or was already
        cancelled before the call started). Exceptions raised by ``fn``
        propagate unchanged.
    """
    if token is None:
        return fn()
    if token.cancelled:
        raise cancelled_error(provider, token.reason)

    done = threading.Event()
    future: Future = (executor or _default_executor()).submit(fn)
    future.add_done_callback(lambda _f: done.set())
    remove = token.add_listener(lambda _reason: done.set())
    try:
        done.wait()
        if future.done() and not token.cancelled:
            return future.result()
        future.cancel()
        raise cancelled_error(provider, token.reason)
    finally:
        remove()


__all__ = ["run_cancellable"]
