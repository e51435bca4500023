"""
Per-model failure tracking (circuit breaker).

A model whose consecutive rate-limit failures reach the threshold is skipped
by the fallback chain until a success resets its counter. There is no
cooldown: the counter only goes away through `reset_failures`.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass

from completion_gateway.logging_config import logger
from completion_gateway.routing.error_classifier import is_rate_limit_error

DEFAULT_FAILURE_THRESHOLD = 3


@dataclass(frozen=True)
class FailureStatus:
    model_id: str
    count: int
    threshold: int
    should_skip: bool


class FailureTracker:
    """
    Owns the model id -> consecutive failure count map.

    Every read-modify-write happens under one lock so concurrent request
    paths never lose an increment or resurrect a reset counter.
    """

    def __init__(self, *, threshold: int = DEFAULT_FAILURE_THRESHOLD) -> None:
        if threshold <= 0:
            raise ValueError("failure threshold must be positive")
        self.threshold = threshold
        self._failures: dict[str, int] = {}
        self._lock = threading.Lock()

    is_rate_limit_error = staticmethod(is_rate_limit_error)

    def record_failure(self, model_id: str) -> int:
        with self._lock:
            count = self._failures.get(model_id, 0) + 1
            self._failures[model_id] = count
        logger.warning(
            "failure_tracker: rate limit failure recorded for %s (total=%d/%d)",
            model_id,
            count,
            self.threshold,
        )
        return count

    def should_skip(self, model_id: str) -> bool:
        with self._lock:
            return self._failures.get(model_id, 0) >= self.threshold

    def reset_failures(self, model_id: str) -> None:
        with self._lock:
            previous = self._failures.pop(model_id, None)
        if previous:
            logger.info(
                "failure_tracker: cleared %d recorded failure(s) for %s",
                previous,
                model_id,
            )

    def failure_count(self, model_id: str) -> int:
        with self._lock:
            return self._failures.get(model_id, 0)

    def status(self, model_id: str) -> FailureStatus:
        count = self.failure_count(model_id)
        return FailureStatus(
            model_id=model_id,
            count=count,
            threshold=self.threshold,
            should_skip=count >= self.threshold,
        )


__all__ = ["DEFAULT_FAILURE_THRESHOLD", "FailureStatus", "FailureTracker"]
