from .console_handler import ConsoleHandler
from .file_handler import FileHandler

__all__ = ["ConsoleHandler", "FileHandler"]
