"""
File Handler for the Logger Service.

Writes logs to rotating files with compression and retention, using
loguru's built-in rotation. Designed for production environments where log
persistence is required.
"""

from pathlib import Path

from loguru import logger

from ....enums import LogLevel
from ..constants import (
    LOG_FILE_COMPRESSION,
    LOG_FILE_RETENTION,
    LOG_FILE_ROTATION,
)


class FileHandler:
    """
    File handler that writes JSON-serialized records to a rotating file.

    Features:
    - Size-based rotation
    - Compression of rotated files
    - Retention policy
    - Thread-safe writes (loguru enqueue)
    """

    def __init__(
        self,
        log_file: str,
        min_level: LogLevel = LogLevel.INFO,
        rotation: str = LOG_FILE_ROTATION,
        retention: str = LOG_FILE_RETENTION,
        compression: str = LOG_FILE_COMPRESSION,
        use_json_format: bool = True,
    ):
        self.log_file = Path(log_file)
        self.min_level = min_level
        self.rotation = rotation
        self.retention = retention
        self.compression = compression
        self.use_json_format = use_json_format

    def install(self) -> int:
        """Create the log directory, attach the sink and return its id."""
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        return logger.add(
            str(self.log_file),
            level=self.min_level.value,
            rotation=self.rotation,
            retention=self.retention,
            compression=self.compression,
            serialize=self.use_json_format,
            enqueue=True,
            backtrace=False,
            diagnose=False,
        )
