"""
Centralized Logger Service Module.

A unified logging interface with a structured, type-safe logging system.

Usage:
    from pinkifier.services.logger import get_service_logger
    from pinkifier.enums import LogSource, LoggerName

    logger = get_service_logger(LoggerName.OVERLAY_PIPELINE, LogSource.PIPELINE)
    logger.info("Image processed", extra_context={"width": 512})
"""

# Re-export commonly used enums for convenience
from ...enums import LogEmoji, LoggerName, LogLevel, LogSource
from .handlers import ConsoleHandler, FileHandler
from .logger_service import (
    LoggerService,
    get_service_logger,
    initialize_global_logger,
    log,
    shutdown_global_logger,
)

__all__ = [
    "LoggerService",
    "log",
    "get_service_logger",
    "initialize_global_logger",
    "shutdown_global_logger",
    "ConsoleHandler",
    "FileHandler",
    # Enums
    "LogLevel",
    "LogSource",
    "LoggerName",
    "LogEmoji",
]
