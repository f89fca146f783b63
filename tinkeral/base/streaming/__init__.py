"""Streaming primitives: commit throttling, cancellable iteration, accumulation."""

from .commit_throttle import CommitThrottle
from .streaming import accumulate_chunks, iterate_cancellable

__all__ = ["CommitThrottle", "accumulate_chunks", "iterate_cancellable"]
