"""
Upstream error classification.

Goal:
- Tell "the provider is throttling this model" apart from every other
  upstream failure.
- Throttling is recoverable by switching to the next candidate model; any
  other error is fatal for the request and must reach the caller unchanged.
"""

from __future__ import annotations

import json
from enum import Enum
from typing import Any


RATE_LIMIT_STATUS = 429
RATE_LIMIT_CODES = ("rate_limit_exceeded",)

_RATE_LIMIT_MARKERS = (
    "rate limit",
    "too many requests",
)


class ErrorClass(str, Enum):
    RATE_LIMITED = "rate_limited"
    FATAL = "fatal"


def _extract_message_from_json(obj: Any) -> str | None:
    if isinstance(obj, dict):
        # OpenAI: {"error": {"message": "...", ...}}
        if isinstance(obj.get("error"), dict):
            msg = obj["error"].get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        # Cloudflare v4 envelope: {"errors": [{"code": 3036, "message": "..."}]}
        errors = obj.get("errors")
        if isinstance(errors, list) and errors and isinstance(errors[0], dict):
            msg = errors[0].get("message")
            if isinstance(msg, str) and msg.strip():
                return msg.strip()
        msg = obj.get("message")
        if isinstance(msg, str) and msg.strip():
            return msg.strip()
        # some providers: {"detail": "..."}
        detail = obj.get("detail")
        if isinstance(detail, str) and detail.strip():
            return detail.strip()
    return None


def extract_error_message(error_text: str | None) -> str:
    if not error_text:
        return ""
    text = str(error_text)
    try:
        parsed = json.loads(text)
    except ValueError:
        return text
    msg = _extract_message_from_json(parsed)
    return msg or text


def extract_error_code(error_text: str | None) -> str | None:
    """
    Provider error code from a JSON error body, if there is one.
    """
    if not error_text:
        return None
    try:
        parsed = json.loads(str(error_text))
    except ValueError:
        return None
    if not isinstance(parsed, dict):
        return None
    error = parsed.get("error")
    if isinstance(error, dict):
        code = error.get("code") or error.get("type")
        if code is not None:
            return str(code)
    errors = parsed.get("errors")
    if isinstance(errors, list) and errors and isinstance(errors[0], dict):
        code = errors[0].get("code")
        if code is not None:
            return str(code)
    return None


def _status_of(error: BaseException) -> int | None:
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    return None


def _message_of(error: BaseException) -> str:
    message = getattr(error, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(error)


def classify_upstream_error(error: BaseException) -> ErrorClass:
    """
    Checked in order: HTTP status 429, provider error code, then the
    message text.
    """
    if _status_of(error) == RATE_LIMIT_STATUS:
        return ErrorClass.RATE_LIMITED

    code = getattr(error, "code", None)
    if code is not None and str(code) in RATE_LIMIT_CODES:
        return ErrorClass.RATE_LIMITED

    msg = _message_of(error).lower()
    if any(marker in msg for marker in _RATE_LIMIT_MARKERS):
        return ErrorClass.RATE_LIMITED

    return ErrorClass.FATAL


def is_rate_limit_error(error: BaseException) -> bool:
    return classify_upstream_error(error) is ErrorClass.RATE_LIMITED


__all__ = [
    "ErrorClass",
    "classify_upstream_error",
    "extract_error_code",
    "extract_error_message",
    "is_rate_limit_error",
]
