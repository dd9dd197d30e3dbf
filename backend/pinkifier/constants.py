# backend/pinkifier/constants.py
"""
Global Constants for Pinkifier

Centralized location for all application constants to avoid hardcoded values
throughout the codebase.
"""

from typing import Dict, List, Tuple

from .enums import ColorName

# =============================================================================
# APPLICATION
# =============================================================================

APP_TITLE = "Pinkifier API"
APP_VERSION = "1.0.0"
DOWNLOAD_FILENAME_PREFIX = "pinkified"

# =============================================================================
# COLOR TABLE
# =============================================================================

COLOR_HEX_TABLE: Dict[ColorName, str] = {
    ColorName.PINK: "#FF69B4",
    ColorName.BLUE: "#0000FF",
    ColorName.SILVER: "#C0C0C0",
    ColorName.GREEN: "#008000",
    ColorName.GOLD: "#FFD700",
    ColorName.AQUA: "#00FFFF",
    ColorName.RED: "#FF0000",
    ColorName.YELLOW: "#FFFF00",
    ColorName.PURPLE: "#800080",
}

DEFAULT_COLOR = ColorName.PINK

# =============================================================================
# OVERLAY CURVE
# =============================================================================

INTENSITY_MIN = 0
INTENSITY_MAX = 100
ALPHA_CURVE_EXPONENT = 0.7
# Intensity where the ramp toward full opacity (and normal blending) begins
TRANSITION_START_INTENSITY = 50

# =============================================================================
# IMAGE ACQUISITION
# =============================================================================

DEFAULT_ALLOWED_IMAGE_DOMAINS: List[str] = [
    "imagedelivery.net",
    "pbs.twimg.com",
    "warpcast.com",
    "res.cloudinary.com",
    "i.seadn.io",
]

ALLOWED_URL_SCHEMES = ("http", "https")
DEFAULT_USER_AGENT = "Mozilla/5.0 (compatible; Frame-Pinkifier/1.0)"

FETCH_CONNECT_TIMEOUT_SECONDS = 5.0
FETCH_READ_TIMEOUT_SECONDS = 10.0
FETCH_TOTAL_DEADLINE_SECONDS = 10.0
FETCH_CHUNK_SIZE = 64 * 1024
FETCH_WATCHDOG_POLL_SECONDS = 0.05
MAX_IMAGE_BYTES = 15 * 1024 * 1024  # 15 MB
MAX_INLINE_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MB decoded
MAX_IMAGE_PIXELS = 40_000_000

DATA_URI_PREFIX = "data:"
INLINE_DATA_PATTERN = r"^data:(image/[a-zA-Z0-9.+-]+)?(;[a-zA-Z0-9=.+-]+)*;base64,(.*)$"

# 1x1 PNG served only when the placeholder fallback is enabled
PLACEHOLDER_IMAGE_BASE64 = (
    "iVBORw0KGgoAAAANSUhEUgAAAAEAAAABCAYAAAAfFcSJAAAADUlEQVR42mP8/5+hHgAHggJ/PchI7wAAAABJRU5ErkJggg=="
)

# =============================================================================
# DECODING / ENCODING
# =============================================================================

# Used only when decoded metadata is inconclusive
FALLBACK_IMAGE_DIMENSIONS: Tuple[int, int] = (1000, 1000)
PNG_COMPRESS_LEVEL = 6
PNG_MEDIA_TYPE = "image/png"

# =============================================================================
# RESPONSE CACHING
# =============================================================================

PREVIEW_CACHE_SECONDS = 60
CACHE_CONTROL_NO_STORE = "no-cache, no-store, must-revalidate"
CACHE_CONTROL_PREVIEW_TEMPLATE = "public, max-age={seconds}, s-maxage={seconds}"

# =============================================================================
# ERROR SUMMARIES
# =============================================================================

ERROR_INVALID_REQUEST = "Invalid request"
ERROR_DOMAIN_NOT_ALLOWED = "Image domain not allowed"
ERROR_FETCH_FAILED = "Failed to fetch image"
ERROR_DECODE_FAILED = "Failed to decode image"
ERROR_PROCESSING_FAILED = "Failed to process image"
ERROR_INTERNAL = "Internal server error"
GENERIC_PROCESSING_DETAILS = "The image could not be processed. Please try again."
