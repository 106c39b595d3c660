"""
Error handling for the ShelfScan API.

The core never raises for bad identifiers (absence is ``None``), so the
errors surfaced here are about the service itself: unknown scan sessions,
a full session registry, invalid resolution requests and bugs. Every error
body has the same shape and carries the request's correlation id.
"""

from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from shelfscan.api.middleware.logging import get_request_id
from shelfscan.scanning.registry import SessionLimitError


class ShelfScanException(Exception):
    """Base exception for errors reported to API clients."""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        status_code: int = 500,
        detail: Optional[str] = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.detail = detail
        super().__init__(message)


class NotFoundError(ShelfScanException):
    def __init__(self, resource: str, identifier: str):
        super().__init__(
            message=f"{resource} not found",
            code="NOT_FOUND",
            status_code=404,
            detail=f"No {resource.lower()} with id '{identifier}'",
        )


class ValidationError(ShelfScanException):
    """Well-formed request that makes no sense for the data supplied."""

    def __init__(self, message: str, detail: Optional[str] = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            detail=detail,
        )


def create_error_response(
    error: str,
    code: str,
    status_code: int,
    detail: Optional[str] = None,
) -> JSONResponse:
    """Uniform error body: error, code, detail, request_id, timestamp."""
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "code": code,
            "detail": detail,
            "request_id": get_request_id() or None,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        },
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers with the FastAPI app."""

    @app.exception_handler(ShelfScanException)
    async def shelfscan_exception_handler(request: Request, exc: ShelfScanException):
        logger.warning(f"{request.method} {request.url.path}: {exc.code} {exc.message}")
        return create_error_response(
            error=exc.message,
            code=exc.code,
            status_code=exc.status_code,
            detail=exc.detail,
        )

    @app.exception_handler(SessionLimitError)
    async def session_limit_handler(request: Request, exc: SessionLimitError):
        logger.warning(f"Refusing new scan session: {exc}")
        return create_error_response(
            error="Too many open scan sessions",
            code="SESSION_LIMIT",
            status_code=429,
            detail=str(exc),
        )

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # Full traceback goes to the log only
        logger.opt(exception=exc).error(f"Unhandled error on {request.method} {request.url.path}")
        return create_error_response(
            error="Internal Server Error",
            code="INTERNAL_ERROR",
            status_code=500,
            detail="An unexpected error occurred",
        )
