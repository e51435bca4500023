"""
Candidate fallback chain.

- Candidates are tried strictly in order, one at a time.
- A rate-limit failure marks the model in the FailureTracker and moves on to
  the next candidate.
- Any other failure stops the chain and is re-raised unchanged.
- The transport is not bound here: callers pass a coroutine factory that
  performs one upstream call for a given candidate.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from typing import Callable, TypeVar

from completion_gateway.logging_config import logger
from completion_gateway.models import ModelCandidate
from completion_gateway.routing.error_classifier import ErrorClass, classify_upstream_error
from completion_gateway.routing.exceptions import AllModelsFailed, NoModelAvailable
from completion_gateway.routing.failure_tracker import FailureTracker

T = TypeVar("T")


def select_available(
    candidates: Sequence[ModelCandidate],
    tracker: FailureTracker,
    *,
    task_type: str,
) -> list[ModelCandidate]:
    """
    Drop skip-listed models; raise NoModelAvailable when nothing is left.
    """
    available: list[ModelCandidate] = []
    skipped: list[str] = []
    for candidate in candidates:
        if tracker.should_skip(candidate.id):
            skipped.append(candidate.id)
            continue
        available.append(candidate)

    if skipped:
        logger.warning(
            "candidate_retry: skipping %d rate limited model(s) for %s: %s",
            len(skipped),
            task_type,
            ", ".join(skipped),
        )
    if not available:
        raise NoModelAvailable(task_type, skipped_model_ids=skipped)
    return available


async def try_candidates(
    *,
    candidates: Sequence[ModelCandidate],
    call: Callable[[ModelCandidate], Awaitable[T]],
    tracker: FailureTracker,
    task_type: str,
    context: str = "",
) -> tuple[ModelCandidate, T]:
    """
    Run `call` against each candidate until one succeeds.

    Returns the winning candidate together with its result. The caller is
    expected to have filtered `candidates` through `select_available`.
    """
    last_error: BaseException | None = None
    attempted: list[str] = []

    for candidate in candidates:
        attempted.append(candidate.id)
        logger.info("candidate_retry: trying model %s%s", candidate.id, context)
        try:
            result = await call(candidate)
        except Exception as exc:
            last_error = exc
            if classify_upstream_error(exc) is ErrorClass.RATE_LIMITED:
                tracker.record_failure(candidate.id)
                logger.warning(
                    "candidate_retry: rate limit hit for %s%s, trying next model",
                    candidate.id,
                    context,
                )
                continue

            logger.error(
                "candidate_retry: model %s failed%s: %s",
                candidate.id,
                context,
                exc,
            )
            raise

        tracker.reset_failures(candidate.id)
        return candidate, result

    raise AllModelsFailed(task_type, attempted_model_ids=attempted, last_error=last_error)


__all__ = ["select_available", "try_candidates"]
