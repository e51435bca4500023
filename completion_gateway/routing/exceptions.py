from __future__ import annotations

from collections.abc import Sequence


class NoModelAvailable(RuntimeError):
    """Raised when no candidate model can serve a request."""

    def __init__(
        self,
        task_type: str,
        *,
        message: str | None = None,
        skipped_model_ids: Sequence[str] = (),
        last_error: BaseException | None = None,
    ):
        self.task_type = task_type
        self.skipped_model_ids = list(skipped_model_ids)
        self.last_error = last_error
        super().__init__(message or "All models are currently rate limited")


class AllModelsFailed(NoModelAvailable):
    """Raised when every attempted candidate failed with a rate-limit error."""

    def __init__(
        self,
        task_type: str,
        *,
        attempted_model_ids: Sequence[str],
        last_error: BaseException | None,
    ):
        self.attempted_model_ids = list(attempted_model_ids)
        detail = str(last_error) if last_error is not None else "unknown error"
        super().__init__(
            task_type,
            message=f"All available models failed. Last error: {detail}",
            last_error=last_error,
        )


__all__ = ["AllModelsFailed", "NoModelAvailable"]
