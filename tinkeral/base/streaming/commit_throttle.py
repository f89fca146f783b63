"""Bounded-rate commit gate for streamed content.

A stream can deliver chunks far faster than observers need to see them.
``CommitThrottle`` lets at most one commit through per ``interval_ms``; the
caller is expected to force a final commit when the stream ends so the last
committed content always equals the full accumulation.
"""

from __future__ import annotations

import time
from typing import Callable

from ...config.defaults import COMMIT_INTERVAL_MS


class CommitThrottle:
    """Decide whether enough time has passed to publish accumulated content.

    The reference timestamp starts at construction (stream start), so the
    first chunk is only committed immediately if it arrives after a full
    interval.

    Parameters
    ----------
    interval_ms: float
        Minimum spacing between commits in milliseconds.
    clock: Callable[[], float]
        Monotonic clock returning seconds; injectable for tests.
    """

    def __init__(self, interval_ms: float = COMMIT_INTERVAL_MS, clock: Callable[[], float] = time.monotonic) -> None:
        self._interval_s = max(interval_ms, 0) / 1000.0
        self._clock = clock
        self._last_commit = clock()
        self.commits = 0

    @property
    def last_commit(self) -> float:
        return self._last_commit

    def should_commit(self) -> bool:
        """Return True (and record the commit) when the interval has elapsed."""
        now = self._clock()
        if now - self._last_commit >= self._interval_s:
            self._mark(now)
            return True
        return False

    def force(self) -> None:
        """Record an unconditional commit (stream end, failure or abort)."""
        self._mark(self._clock())

    def _mark(self, now: float) -> None:
        self._last_commit = now
        self.commits += 1


__all__ = ["CommitThrottle"]
