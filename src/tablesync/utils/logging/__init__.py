"""
Structured logging for tablesync.

Usage:
    from tablesync.utils.logging import setup_logging, get_logger

    setup_logging(level="INFO", json_format=False)
    logger = get_logger(__name__)
"""

from .config import env_logging_options, get_logger, setup_logging, shutdown_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "env_logging_options",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
