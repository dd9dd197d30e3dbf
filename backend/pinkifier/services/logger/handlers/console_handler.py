"""
Console Handler for the Logger Service.

Installs a loguru stdout sink with emoji support, color formatting and
level-based filtering. It provides immediate visual feedback for development
and production monitoring.
"""

import sys
from typing import Any, Dict

from loguru import logger

from ....enums import LogLevel
from ..constants import (
    CONSOLE_CONTEXT_INDENTATION,
    CONSOLE_MAX_CONTEXT_ITEMS,
    CONSOLE_TIMESTAMP_FORMAT,
)


class ConsoleHandler:
    """
    Console handler that outputs logs to stdout.

    Features:
    - Color-coded log levels (loguru markup)
    - Source and logger name column
    - Short context preview for records carrying extra context
    """

    def __init__(
        self,
        min_level: LogLevel = LogLevel.DEBUG,
        use_colors: bool = True,
        include_context: bool = True,
    ):
        self.min_level = min_level
        # Check if stdout supports colors (for production environments)
        self.use_colors = use_colors and sys.stdout.isatty()
        self.include_context = include_context

    def install(self) -> int:
        """Attach the sink to loguru and return its id."""
        return logger.add(
            sys.stdout,
            level=self.min_level.value,
            format=self.format_record,
            colorize=self.use_colors,
            enqueue=False,
            backtrace=False,
            diagnose=False,
        )

    def format_record(self, record: Dict[str, Any]) -> str:
        """Build the loguru format string for one record."""
        extra = record["extra"]
        source = extra.get("source", "system")
        logger_name = extra.get("logger_name") or record["name"]

        fmt = (
            f"<dim>[{{time:{CONSOLE_TIMESTAMP_FORMAT}}}]</dim> "
            "<level>[{level: ^8}]</level> "
            f"<dim>({source:^8} [{logger_name}])</dim> "
            "{message}"
        )

        if self.include_context:
            preview = self._format_context_preview(extra.get("context") or {})
            if preview:
                # Escape braces and tags so loguru does not parse context
                preview = (
                    preview.replace("{", "{{").replace("}", "}}").replace("<", r"\<")
                )
                fmt += f"\n{CONSOLE_CONTEXT_INDENTATION}<dim>{preview}</dim>"

        return fmt + "\n{exception}"

    def _format_context_preview(self, context: Dict[str, Any]) -> str:
        """Show the most interesting context items, limited to avoid noise."""
        priority_keys = ["error", "stage", "correlation_id", "host", "status_code"]
        preview_items = []

        for key in priority_keys:
            if key in context:
                preview_items.append(f"{key}={context[key]}")

        for key, value in context.items():
            if len(preview_items) >= CONSOLE_MAX_CONTEXT_ITEMS:
                break
            if key not in priority_keys:
                preview_items.append(f"{key}={value}")

        return ", ".join(preview_items[:CONSOLE_MAX_CONTEXT_ITEMS])
