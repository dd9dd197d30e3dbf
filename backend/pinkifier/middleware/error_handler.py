# backend/pinkifier/middleware/error_handler.py
"""
Error handling middleware for FastAPI application.

Provides centralized error handling, logging, and structured error responses
while maintaining security by not exposing internal details. Every failing
request gets the same payload shape:

    {"error": <summary>, "details": <string>, "correlation_id": <uuid>}
"""

import uuid
from typing import Optional

from fastapi import HTTPException, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from ..config import get_settings
from ..constants import ERROR_INTERNAL, ERROR_INVALID_REQUEST
from ..enums import LogEmoji, LoggerName, LogSource
from ..exceptions import PinkifierError
from ..models.overlay_model import ErrorResponse
from ..services.logger import get_service_logger

logger = get_service_logger(LoggerName.ERROR_HANDLER, LogSource.MIDDLEWARE)

# Never logged
_SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "x-auth-token"}


def error_response(
    status_code: int,
    error: str,
    details: str,
    correlation_id: Optional[str] = None,
    exception_type: Optional[str] = None,
) -> JSONResponse:
    """Build the JSON error payload returned by every failing request."""
    content = ErrorResponse(
        error=error, details=details, correlation_id=correlation_id
    ).model_dump()
    if exception_type:
        content["exception_type"] = exception_type
    return JSONResponse(status_code=status_code, content=content)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Map FastAPI request validation errors onto the 400 error shape."""
    messages = []
    for error in exc.errors():
        field = " -> ".join(str(loc) for loc in error.get("loc", ()))
        messages.append(f"{field}: {error.get('msg', 'invalid value')}")

    return error_response(
        400,
        ERROR_INVALID_REQUEST,
        "; ".join(messages) or "Request validation failed",
        getattr(request.state, "correlation_id", None),
    )


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Centralized error handling middleware.

    Catches all unhandled exceptions, logs them with correlation IDs,
    and returns structured error responses. Must be the outermost
    application middleware so the correlation id is set for every request.
    """

    def __init__(self, app: ASGIApp):
        super().__init__(app)
        self.debug_mode = get_settings().environment == "development"

    async def dispatch(self, request: Request, call_next) -> Response:
        """Process request and handle any errors that occur."""

        # Generate correlation ID for request tracking
        correlation_id = str(uuid.uuid4())
        request.state.correlation_id = correlation_id

        try:
            return await call_next(request)

        except Exception as exc:
            self._log_error(exc, request, correlation_id)
            return self._create_error_response(exc, correlation_id)

    def _log_error(
        self, exc: Exception, request: Request, correlation_id: str
    ) -> None:
        """Log error with request context and correlation ID."""

        request_info = {
            "method": request.method,
            "path": request.url.path,
            "client_ip": getattr(request.client, "host", "unknown"),
            "user_agent": request.headers.get("user-agent", "unknown"),
            "headers": {
                k: v
                for k, v in request.headers.items()
                if k.lower() not in _SENSITIVE_HEADERS
            },
        }

        if isinstance(exc, PinkifierError) and exc.status_code < 500:
            # Expected client-side failure; no traceback
            logger.warning(
                f"{request.method} {request.url.path} rejected: {exc.message}",
                extra_context={
                    "exception_type": type(exc).__name__,
                    "stage": exc.stage.value if exc.stage else None,
                    "status_code": exc.status_code,
                },
                emoji=LogEmoji.FAILED,
                correlation_id=correlation_id,
            )
            return

        logger.error(
            f"Unhandled exception in {request.method} {request.url.path}",
            exception=exc,
            extra_context={
                "exception_type": type(exc).__name__,
                "exception_message": str(exc),
                "request_info": request_info,
            },
            correlation_id=correlation_id,
        )

    def _create_error_response(
        self, exc: Exception, correlation_id: str
    ) -> JSONResponse:
        """Create appropriate error response based on exception type."""

        if isinstance(exc, PinkifierError):
            return self._handle_pinkifier_error(exc, correlation_id)
        elif isinstance(exc, HTTPException):
            return error_response(
                exc.status_code,
                ERROR_INVALID_REQUEST if exc.status_code < 500 else ERROR_INTERNAL,
                str(exc.detail),
                correlation_id,
            )
        else:
            return self._handle_generic_error(exc, correlation_id)

    def _handle_pinkifier_error(
        self, exc: PinkifierError, correlation_id: str
    ) -> JSONResponse:
        exception_type = (
            type(exc).__name__ if self.debug_mode and exc.status_code >= 500 else None
        )
        return error_response(
            exc.status_code,
            exc.error,
            exc.client_details,
            correlation_id,
            exception_type,
        )

    def _handle_generic_error(
        self, exc: Exception, correlation_id: str
    ) -> JSONResponse:
        """Handle all other unhandled exceptions."""
        return error_response(
            500,
            ERROR_INTERNAL,
            "An internal server error occurred",
            correlation_id,
            type(exc).__name__ if self.debug_mode else None,
        )
