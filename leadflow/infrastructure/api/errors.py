"""Translate routing errors into HTTP responses."""

from __future__ import annotations

from fastapi import HTTPException

from leadflow.domain.errors import (
    ConfigurationError,
    InvalidRequest,
    RoutingError,
    TenantNotFound,
)

RETRY_AFTER_SECONDS = "1"


def to_http_exception(exc: RoutingError) -> HTTPException:
    """Map a RoutingError to an HTTPException carrying its code and retry hint."""
    if isinstance(exc, InvalidRequest):
        status_code = 400
    elif isinstance(exc, TenantNotFound):
        status_code = 404
    elif isinstance(exc, ConfigurationError):
        status_code = 422
    elif exc.retryable:
        status_code = 503
    else:
        status_code = 500

    headers = {"Retry-After": RETRY_AFTER_SECONDS} if exc.retryable else None
    return HTTPException(
        status_code=status_code,
        detail={"code": exc.code, "message": exc.message, "retryable": exc.retryable},
        headers=headers,
    )
