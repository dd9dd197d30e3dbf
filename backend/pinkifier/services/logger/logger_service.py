"""
Centralized Logger Service for Pinkifier.

This service provides a unified logging interface on top of loguru:
- Console output with emoji support
- Optional file logging with rotation
- Structured context bound to every record (source, logger name, extras)

Architecture:
- Type-safe enum-based configuration
- One-time sink initialization at application startup
- Service loggers usable before initialization (loguru's default sink)
"""

import threading
from typing import Any, Dict, Optional

from loguru import logger

from ...enums import LogEmoji, LoggerName, LogLevel, LogSource
from .handlers.console_handler import ConsoleHandler
from .handlers.file_handler import FileHandler


class LoggerService:
    """
    Centralized logging service that routes structured records to loguru.

    Usage:
        log = LoggerService(min_level=LogLevel.INFO)
        log.install()
        log.info(
            message="Image processed",
            source=LogSource.PIPELINE,
            logger_name=LoggerName.OVERLAY_PIPELINE,
            extra_context={"width": 512},
        )
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.INFO,
        enable_console: bool = True,
        log_file: Optional[str] = None,
        use_colors: bool = True,
    ):
        """
        Initialize the logger service with handler configuration.

        Args:
            min_level: Minimum level written by every sink
            enable_console: Enable console output handler
            log_file: Optional path of a rotating log file
            use_colors: Colorize console output when attached to a TTY
        """
        self.min_level = min_level
        self.console_handler = (
            ConsoleHandler(min_level=min_level, use_colors=use_colors)
            if enable_console
            else None
        )
        self.file_handler = (
            FileHandler(log_file=log_file, min_level=min_level) if log_file else None
        )
        self._sink_ids: list[int] = []

    def install(self) -> None:
        """Replace loguru's default sink with the configured handlers."""
        logger.remove()
        self._sink_ids = []
        if self.console_handler:
            self._sink_ids.append(self.console_handler.install())
        if self.file_handler:
            self._sink_ids.append(self.file_handler.install())

    def shutdown(self) -> None:
        """Flush and detach every sink installed by this service."""
        for sink_id in self._sink_ids:
            try:
                logger.remove(sink_id)
            except ValueError:
                # Sink already removed elsewhere
                continue
        self._sink_ids = []

    def log(
        self,
        level: LogLevel,
        message: str,
        source: LogSource = LogSource.SYSTEM,
        logger_name: LoggerName = LoggerName.SYSTEM,
        emoji: Optional[LogEmoji] = None,
        extra_context: Optional[Dict[str, Any]] = None,
        exception: Optional[BaseException] = None,
        correlation_id: Optional[str] = None,
    ) -> None:
        """Write one structured record."""
        text = f"{emoji.value} {message}" if emoji else message
        bound = logger.bind(
            source=source.value,
            logger_name=logger_name.value,
            correlation_id=correlation_id,
            context=extra_context or {},
        )
        if exception is not None:
            bound = bound.opt(exception=exception)
        bound.log(level.value, text)

    def debug(self, message: str, **kwargs: Any) -> None:
        self.log(LogLevel.DEBUG, message, **kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self.log(LogLevel.INFO, message, **kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self.log(LogLevel.WARNING, message, **kwargs)

    def error(self, message: str, **kwargs: Any) -> None:
        self.log(LogLevel.ERROR, message, **kwargs)


# =============================================================================
# GLOBAL LOGGER INSTANCE AND FACTORY FUNCTIONS
# =============================================================================

_global_logger_instance: Optional[LoggerService] = None
_global_logger_lock = threading.Lock()


def initialize_global_logger(
    min_level: LogLevel = LogLevel.INFO,
    enable_console: bool = True,
    log_file: Optional[str] = None,
) -> LoggerService:
    """
    Initialize the global logger instance.

    This should be called once during application startup. Later calls
    return the already-installed instance.
    """
    global _global_logger_instance

    with _global_logger_lock:
        if _global_logger_instance is None:
            service = LoggerService(
                min_level=min_level,
                enable_console=enable_console,
                log_file=log_file,
            )
            service.install()
            _global_logger_instance = service
        return _global_logger_instance


def shutdown_global_logger() -> None:
    """Detach the global logger's sinks and forget the instance."""
    global _global_logger_instance

    with _global_logger_lock:
        if _global_logger_instance is not None:
            _global_logger_instance.shutdown()
            _global_logger_instance = None


def log() -> LoggerService:
    """
    Get the global logger instance.

    Falls back to an uninstalled service writing through loguru's default
    sink so modules can log during import and in tests.
    """
    if _global_logger_instance is None:
        return _fallback_logger
    return _global_logger_instance


_fallback_logger = LoggerService(enable_console=False)


def get_service_logger(
    logger_name: LoggerName,
    source: LogSource = LogSource.SYSTEM,
    default_emoji: Optional[LogEmoji] = None,
):
    """
    Factory function to create a pre-configured logger for a specific service.

    Returns a logger whose methods automatically include the correct source
    and logger_name.

    Emoji priority system (highest to lowest):
    1. Direct: Emoji passed directly to log method call
    2. Instance-set: Default emoji set when creating the service logger
    3. Fallback: Default emoji based on log level (ERROR, WARNING, INFO, DEBUG)

    Example:
        logger = get_service_logger(LoggerName.OVERLAY_PIPELINE, LogSource.PIPELINE)
        logger.error("Decode failed")  # Uses LogEmoji.ERROR (fallback)
        logger.info("Fetched", emoji=LogEmoji.FETCH)  # Uses LogEmoji.FETCH (direct)
    """

    def _resolve_emoji(
        method_emoji: Optional[LogEmoji], fallback_emoji: LogEmoji
    ) -> LogEmoji:
        if method_emoji is not None:
            return method_emoji
        if default_emoji is not None:
            return default_emoji
        return fallback_emoji

    class ServiceLogger:
        @staticmethod
        def error(
            message: str,
            exception: Optional[BaseException] = None,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            correlation_id: Optional[str] = None,
        ):
            """Log an error, with traceback when an exception is given."""
            log().error(
                message,
                source=source,
                logger_name=logger_name,
                emoji=_resolve_emoji(emoji, LogEmoji.ERROR),
                extra_context=extra_context,
                exception=exception,
                correlation_id=correlation_id,
            )

        @staticmethod
        def warning(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            correlation_id: Optional[str] = None,
        ):
            log().warning(
                message,
                source=source,
                logger_name=logger_name,
                emoji=_resolve_emoji(emoji, LogEmoji.WARNING),
                extra_context=extra_context,
                correlation_id=correlation_id,
            )

        @staticmethod
        def info(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            correlation_id: Optional[str] = None,
        ):
            log().info(
                message,
                source=source,
                logger_name=logger_name,
                emoji=_resolve_emoji(emoji, LogEmoji.INFO),
                extra_context=extra_context,
                correlation_id=correlation_id,
            )

        @staticmethod
        def debug(
            message: str,
            extra_context: Optional[Dict[str, Any]] = None,
            emoji: Optional[LogEmoji] = None,
            correlation_id: Optional[str] = None,
        ):
            log().debug(
                message,
                source=source,
                logger_name=logger_name,
                emoji=_resolve_emoji(emoji, LogEmoji.DEBUG),
                extra_context=extra_context,
                correlation_id=correlation_id,
            )

    return ServiceLogger()
