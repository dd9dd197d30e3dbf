# backend/pinkifier/exceptions.py
"""
Custom exceptions for Pinkifier.

Centralized location for all custom exception classes. Each exception type
represents one failure kind of the image processing pipeline and carries the
HTTP status and summary the API layer reports for it.
"""

from typing import Optional

from .constants import (
    ERROR_DECODE_FAILED,
    ERROR_DOMAIN_NOT_ALLOWED,
    ERROR_FETCH_FAILED,
    ERROR_INTERNAL,
    ERROR_INVALID_REQUEST,
    ERROR_PROCESSING_FAILED,
    GENERIC_PROCESSING_DETAILS,
)
from .enums import PipelineStage


class PinkifierError(Exception):
    """Base exception for all Pinkifier-specific errors."""

    status_code: int = 500
    error: str = ERROR_INTERNAL
    stage: Optional[PipelineStage] = None
    # Whether the message may be shown to API clients
    expose_details: bool = True

    def __init__(self, message: str, stage: Optional[PipelineStage] = None):
        super().__init__(message)
        self.message = message
        if stage is not None:
            self.stage = stage

    @property
    def client_details(self) -> str:
        """Message safe to return to API clients."""
        return self.message if self.expose_details else GENERIC_PROCESSING_DETAILS


class InvalidRequestError(PinkifierError):
    """Missing or malformed input. Raised before any network I/O."""

    status_code = 400
    error = ERROR_INVALID_REQUEST
    stage = PipelineStage.VALIDATING


class InvalidColorError(InvalidRequestError):
    """Color name is not in the color table."""

    pass


class InvalidIntensityError(InvalidRequestError):
    """Intensity is missing, not an integer, or outside 0-100."""

    pass


class DomainNotAllowedError(PinkifierError):
    """Image URL host is not on the allow-list."""

    status_code = 403
    error = ERROR_DOMAIN_NOT_ALLOWED
    stage = PipelineStage.VALIDATING


class FetchFailedError(PinkifierError):
    """Network error, timeout, cancellation or non-2xx upstream status."""

    status_code = 400
    error = ERROR_FETCH_FAILED
    stage = PipelineStage.FETCHING

    def __init__(
        self,
        message: str,
        upstream_status: Optional[int] = None,
        stage: Optional[PipelineStage] = None,
    ):
        super().__init__(message, stage=stage)
        self.upstream_status = upstream_status


class RequestCancelledError(FetchFailedError):
    """The client went away; remaining work is abandoned."""

    pass


class DecodeFailedError(PinkifierError):
    """Bytes are not a recognizable raster image."""

    status_code = 400
    error = ERROR_DECODE_FAILED
    stage = PipelineStage.DECODING


class CompositingFailedError(PinkifierError):
    """Internal failure while applying the overlay."""

    status_code = 500
    error = ERROR_PROCESSING_FAILED
    stage = PipelineStage.COMPOSITING
    expose_details = False


class EncodeFailedError(PinkifierError):
    """Internal failure while serializing the PNG."""

    status_code = 500
    error = ERROR_PROCESSING_FAILED
    stage = PipelineStage.ENCODING
    expose_details = False
