"""
Model selection: candidate tables, failure tracking and the fallback chain.
"""

from .candidate_retry import select_available, try_candidates
from .candidates import MODEL_CONFIGS, ranked_candidates
from .error_classifier import ErrorClass, classify_upstream_error, is_rate_limit_error
from .exceptions import AllModelsFailed, NoModelAvailable
from .failure_tracker import FailureStatus, FailureTracker

__all__ = [
    "AllModelsFailed",
    "ErrorClass",
    "FailureStatus",
    "FailureTracker",
    "MODEL_CONFIGS",
    "NoModelAvailable",
    "classify_upstream_error",
    "is_rate_limit_error",
    "ranked_candidates",
    "select_available",
    "try_candidates",
]
