"""Retry policy for the start phase of provider calls.

Only failures normalized as ``retriable`` are retried. Between attempts the
policy sleeps for ``delay_base ** attempt`` seconds (or the backend's
``retry_after`` hint when that is longer) and re-checks the cancellation
token so an abort during backoff ends the loop with a cancellation error.
"""

from __future__ import annotations

import functools
import time
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional, Protocol, TypeVar

from ..cancellation import CancellationToken
from ..errors import ProviderError, cancelled_error

T = TypeVar("T")


class AttemptLogger(Protocol):  # pragma: no cover - structural protocol
    def __call__(
        self,
        *,
        attempt: int,
        max_attempts: int,
        delay: float | None,
        error: ProviderError | None,
    ) -> None: ...


@dataclass(frozen=True)
class RetryConfig:
    max_attempts: int = 3
    delay_base: float = 2.0  # delay before retry n is delay_base ** n
    max_delay: float = 30.0
    attempt_logger: AttemptLogger | None = None
    cancellation_token: Optional[CancellationToken] = None
    sleep: Callable[[float], None] = field(default=time.sleep)

    def delays(self) -> Iterable[float]:
        for attempt in range(self.max_attempts - 1):
            yield min(self.delay_base**attempt, self.max_delay)


DEFAULT_RETRY_CONFIG = RetryConfig()


def _log(config: RetryConfig, attempt: int, delay: float | None, error: ProviderError | None) -> None:
    if config.attempt_logger:
        config.attempt_logger(
            attempt=attempt,
            max_attempts=config.max_attempts,
            delay=delay,
            error=error,
        )


def retry(config: RetryConfig = DEFAULT_RETRY_CONFIG):
    """Return a decorator applying the retry policy.

    - Retries only ``ProviderError`` instances with ``retriable=True``
    - Honours ``retry_after`` when it exceeds the computed backoff
    - Raises a cancellation ``ProviderError`` if the token is cancelled
      before an attempt
    """

    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> T:
            token = config.cancellation_token
            schedule = list(config.delays()) + [None]  # final attempt has no delay
            for attempt, delay in enumerate(schedule):
                if token is not None and token.cancelled:
                    raise cancelled_error(None, token.reason)
                try:
                    result = func(*args, **kwargs)
                except ProviderError as e:
                    if not e.retriable or delay is None:
                        _log(config, attempt, None, e)
                        raise
                    wait = max(delay, min(e.retry_after or 0.0, config.max_delay))
                    _log(config, attempt, wait, e)
                    config.sleep(wait)
                    continue
                _log(config, attempt, None, None)
                return result
            raise RuntimeError("retry: schedule exhausted without a result")  # pragma: no cover

        return wrapper

    return decorator


__all__ = [
    "AttemptLogger",
    "RetryConfig",
    "DEFAULT_RETRY_CONFIG",
    "retry",
]
