from typing import Any, Dict, Optional

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field


class ErrorResponse(BaseModel):
    """
    `detail` body of every 404 / 502 / 503 answered by the completion routes.
    """

    error: str = Field(..., description="not_found, bad_gateway or service_unavailable")
    message: str = Field(..., description="Human-readable error message")
    code: int = Field(..., description="HTTP status code for this error")
    details: Optional[Dict[str, Any]] = Field(
        default=None,
        description="session_id, skipped_models, last_error or upstream status_code/code",
    )


def http_error(
    status_code: int,
    *,
    error: str,
    message: str,
    details: Optional[Dict[str, Any]] = None,
) -> HTTPException:
    payload = ErrorResponse(error=error, message=message, code=status_code, details=details)
    return HTTPException(status_code=status_code, detail=payload.model_dump())


def error_response(exc: HTTPException) -> JSONResponse:
    """
    Render an `http_error` from an exception handler, where raising is not an option.
    """
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


def not_found(message: str, *, details: Optional[Dict[str, Any]] = None) -> HTTPException:
    return http_error(status.HTTP_404_NOT_FOUND, error="not_found", message=message, details=details)


def bad_gateway(message: str, *, details: Optional[Dict[str, Any]] = None) -> HTTPException:
    return http_error(
        status.HTTP_502_BAD_GATEWAY, error="bad_gateway", message=message, details=details
    )


def service_unavailable(
    message: str, *, details: Optional[Dict[str, Any]] = None
) -> HTTPException:
    return http_error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        error="service_unavailable",
        message=message,
        details=details,
    )


__all__ = [
    "ErrorResponse",
    "bad_gateway",
    "error_response",
    "http_error",
    "not_found",
    "service_unavailable",
]
