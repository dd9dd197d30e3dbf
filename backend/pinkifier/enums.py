# backend/pinkifier/enums.py
"""
Application Enums - Centralized enum definitions.

This module contains all enum definitions so constants.py, models and
services can share them without creating circular imports.
"""

from enum import Enum


# =============================================================================
# COLOR SYSTEM
# =============================================================================


class ColorName(str, Enum):
    """Canonical, case-sensitive overlay color names."""

    PINK = "Pink"
    BLUE = "Blue"
    SILVER = "Silver"
    GREEN = "Green"
    GOLD = "Gold"
    AQUA = "Aqua"
    RED = "Red"
    YELLOW = "Yellow"
    PURPLE = "Purple"


class ColorFallbackPolicy(str, Enum):
    """What to do when a request names a color outside the table."""

    STRICT = "strict"  # reject with InvalidColorError
    DEFAULT = "default"  # legacy behavior: silently use the default color


# =============================================================================
# OVERLAY PIPELINE
# =============================================================================


class BlendMode(str, Enum):
    """Pixel-combination rule used when compositing the overlay."""

    NORMAL = "normal"
    MULTIPLY = "multiply"


class OutputMode(str, Enum):
    """Response disposition for a processed image."""

    INLINE_PREVIEW = "inline-preview"
    ATTACHMENT_DOWNLOAD = "attachment-download"


class SourceKind(str, Enum):
    """How the source image was referenced by the caller."""

    URL = "url"
    INLINE = "inline"


class PipelineStage(str, Enum):
    """Processing stages; each one is a terminal failure point."""

    VALIDATING = "validating"
    FETCHING = "fetching"
    DECODING = "decoding"
    COMPOSITING = "compositing"
    ENCODING = "encoding"
    EMITTING = "emitting"


# =============================================================================
# LOGGING SYSTEM
# =============================================================================


class LogLevel(str, Enum):
    """Log level constants for centralized logging system."""

    TRACE = "TRACE"
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogSource(str, Enum):
    """Log source constants for identifying log origins."""

    API = "api"
    SYSTEM = "system"
    PIPELINE = "pipeline"
    MIDDLEWARE = "middleware"
    HEALTH = "health"


class LogEmoji(str, Enum):
    """Type-safe emoji constants for log messages."""

    # Request/Response emojis
    REQUEST = "📥"
    RESPONSE = "📤"

    # Status emojis
    SUCCESS = "✅"
    FAILED = "❌"
    ERROR = "💥"
    WARNING = "⚠️"
    INFO = "ℹ️"
    DEBUG = "🐞"
    CANCELED = "🚫"
    SLOW = "🐌"

    # Work emojis
    PROCESSING = "🔄"
    FETCH = "🌐"
    IMAGE = "🖼️"
    COLOR = "🎨"
    FALLBACK = "🩹"
    SECURITY = "🔒"

    # Lifecycle emojis
    STARTUP = "🚀"
    SHUTDOWN = "🛑"


class LoggerName(str, Enum):
    """Logger name constants for categorizing log entries."""

    # API/Request loggers
    API = "api"
    REQUEST_LOGGER = "request_logger"
    ERROR_HANDLER = "error_handler"
    MIDDLEWARE = "middleware"

    # Pipeline loggers
    OVERLAY_ENGINE = "overlay_engine"
    OVERLAY_PIPELINE = "overlay_pipeline"
    IMAGE_ACQUISITION = "image_acquisition"

    SYSTEM = "system"
