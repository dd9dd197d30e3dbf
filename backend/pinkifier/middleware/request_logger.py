# backend/pinkifier/middleware/request_logger.py
"""
Request logging middleware for FastAPI application.

Provides structured request/response logging with timing, correlation IDs,
and security-conscious data handling. Query strings are never logged in full
because they may carry inline image payloads.
"""

import time

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import get_settings
from ..enums import LogEmoji, LoggerName, LogSource
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.REQUEST_LOGGER, LogSource.MIDDLEWARE)

# Requests slower than this are logged as warnings
SLOW_REQUEST_SECONDS = 5.0


class RequestLoggerMiddleware(BaseHTTPMiddleware):
    """
    Request logging middleware with timing.

    Logs all requests with duration and status codes. Uses the correlation
    ID set by ErrorHandlerMiddleware.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.debug_mode = get_settings().environment == "development"

        # Paths to exclude from logging (health checks, docs)
        self.exclude_paths = {
            "/health",
            "/api/health",
            "/docs",
            "/redoc",
            "/openapi.json",
            "/favicon.ico",
        }

        # Headers to exclude from logs for security
        self.excluded_headers = {"authorization", "cookie", "x-api-key", "x-auth-token"}

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and log details with timing."""

        if request.url.path in self.exclude_paths:
            return await call_next(request)

        start_time = time.monotonic()
        correlation_id = getattr(request.state, "correlation_id", "unknown")

        self._log_request_start(request, correlation_id)

        try:
            response = await call_next(request)
        except Exception as exc:
            self._log_request_failed(
                request, exc, time.monotonic() - start_time, correlation_id
            )
            # Re-raise exception for error handler
            raise

        self._log_request_complete(
            request, response, time.monotonic() - start_time, correlation_id
        )
        return response

    def _log_request_start(self, request: Request, correlation_id: str) -> None:
        request_info = {
            "method": request.method,
            "path": request.url.path,
            "query_keys": sorted(request.query_params.keys()),
            "client_ip": getattr(request.client, "host", "unknown"),
            "user_agent": request.headers.get("user-agent", "unknown"),
            "content_length": request.headers.get("content-length"),
        }

        if self.debug_mode:
            request_info["headers"] = {
                k: v
                for k, v in request.headers.items()
                if k.lower() not in self.excluded_headers
            }

        logger.info(
            f"{request.method} {request.url.path}",
            extra_context={"event_type": "request_start", "request_info": request_info},
            emoji=LogEmoji.REQUEST,
            correlation_id=correlation_id,
        )

    def _log_request_complete(
        self, request: Request, response: Response, duration: float, correlation_id: str
    ) -> None:
        """Log request completion; level follows status code and duration."""
        status_code = response.status_code
        duration_ms = round(duration * 1000, 2)

        if status_code >= 500:
            log_method, emoji = logger.error, LogEmoji.ERROR
        elif status_code >= 400:
            log_method, emoji = logger.warning, LogEmoji.WARNING
        elif duration > SLOW_REQUEST_SECONDS:
            log_method, emoji = logger.warning, LogEmoji.SLOW
        else:
            log_method, emoji = logger.info, LogEmoji.RESPONSE

        log_method(
            f"{request.method} {request.url.path} -> {status_code} ({duration_ms}ms)",
            extra_context={
                "event_type": "request_complete",
                "status_code": status_code,
                "duration_ms": duration_ms,
                "content_length": response.headers.get("content-length"),
                "content_type": response.headers.get("content-type"),
            },
            emoji=emoji,
            correlation_id=correlation_id,
        )

    def _log_request_failed(
        self,
        request: Request,
        exception: Exception,
        duration: float,
        correlation_id: str,
    ) -> None:
        duration_ms = round(duration * 1000, 2)
        logger.warning(
            f"{request.method} {request.url.path} -> FAILED ({duration_ms}ms)",
            extra_context={
                "event_type": "request_failed",
                "exception_type": type(exception).__name__,
                "duration_ms": duration_ms,
            },
            emoji=LogEmoji.FAILED,
            correlation_id=correlation_id,
        )
