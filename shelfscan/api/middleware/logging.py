"""
Request logging middleware.

Every request gets a correlation id (``X-Request-ID``, echoed back). Scan
session routes additionally tag the record with the session id, so one
scanning screen can be followed across its frames. Frame pushes arrive
several times a second per session and are logged at DEBUG.
"""

import json
import logging
import re
import time
import uuid
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Callable, Optional, Set

from fastapi import FastAPI, Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

request_id_var: ContextVar[str] = ContextVar("request_id", default="")

logger = logging.getLogger("shelfscan.api")

_SESSION_PATH = re.compile(r"/scan/sessions/(?P<session_id>[^/]+)(?P<frames>/frames)?")


@dataclass
class LoggingConfig:
    """Request logging options."""

    enabled: bool = True
    excluded_paths: Set[str] = field(default_factory=lambda: {"/", "/health", "/favicon.ico"})

    success_log_level: int = logging.INFO
    frame_log_level: int = logging.DEBUG
    client_error_log_level: int = logging.WARNING

    # Seconds
    slow_request_threshold: float = 0.5

    request_id_header: str = "X-Request-ID"


class StructuredLogFormatter(logging.Formatter):
    """One JSON object per record, carrying request and session ids."""

    EXTRA_FIELDS = ("method", "path", "status", "duration_ms", "session_id")

    def format(self, record: logging.LogRecord) -> str:
        payload = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        request_id = request_id_var.get()
        if request_id:
            payload["request_id"] = request_id

        for name in self.EXTRA_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                payload[name] = value

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload)


def get_request_id() -> str:
    """Correlation id of the request being handled ("" outside a request)."""
    return request_id_var.get()


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Times each request and logs one line for it."""

    def __init__(self, app: FastAPI, config: Optional[LoggingConfig] = None):
        super().__init__(app)
        self.config = config or LoggingConfig()

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        header = self.config.request_id_header
        request_id = request.headers.get(header) or uuid.uuid4().hex[:8]
        request_id_var.set(request_id)

        path = request.url.path
        started = time.perf_counter()
        response = await call_next(request)
        duration = time.perf_counter() - started

        response.headers[header] = request_id

        if self.config.enabled and path not in self.config.excluded_paths:
            self._log(request, response.status_code, duration)

        return response

    def _log(self, request: Request, status: int, duration: float) -> None:
        path = request.url.path
        session = _SESSION_PATH.search(path)

        if status >= 500:
            level = logging.ERROR
        elif status >= 400:
            level = self.config.client_error_log_level
        elif duration > self.config.slow_request_threshold:
            level = logging.WARNING
        elif session and session.group("frames"):
            level = self.config.frame_log_level
        else:
            level = self.config.success_log_level

        duration_ms = round(duration * 1000, 2)
        message = f"{request.method} {path} -> {status} ({duration_ms}ms)"
        if duration > self.config.slow_request_threshold:
            message = f"[SLOW] {message}"

        logger.log(
            level,
            message,
            extra={
                "method": request.method,
                "path": path,
                "status": status,
                "duration_ms": duration_ms,
                "session_id": session.group("session_id") if session else None,
            },
        )


def setup_logging(
    app: FastAPI,
    config: Optional[LoggingConfig] = None,
    structured: bool = True,
) -> None:
    """
    Install the request logging middleware.

    Args:
        app: FastAPI application instance.
        config: Logging configuration.
        structured: Emit JSON lines on the ``shelfscan`` logger.
    """
    if structured:
        package_logger = logging.getLogger("shelfscan")
        if not any(isinstance(h.formatter, StructuredLogFormatter) for h in package_logger.handlers):
            handler = logging.StreamHandler()
            handler.setFormatter(StructuredLogFormatter())
            package_logger.addHandler(handler)
        package_logger.setLevel(logging.INFO)

    app.add_middleware(RequestLoggingMiddleware, config=config or LoggingConfig())
