"""
Logger Service Constants

Local constants for the logger service to avoid hardcoded values
and provide centralized configuration for logger-specific settings.
"""

# ====================================================================
# CONSOLE HANDLER CONSTANTS
# ====================================================================

CONSOLE_TIMESTAMP_FORMAT = "YYYY-MM-DD HH:mm:ss"
CONSOLE_MAX_CONTEXT_ITEMS = 3
CONSOLE_CONTEXT_INDENTATION = "  ↳ "

# ====================================================================
# FILE HANDLER CONSTANTS
# ====================================================================

LOG_FILE_ROTATION = "10 MB"
LOG_FILE_RETENTION = "14 days"
LOG_FILE_COMPRESSION = "gz"
