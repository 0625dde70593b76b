"""
Application-wide logging setup.

Log output always goes to stderr (and optionally a rotating file): stdout
carries the generated SQL and nothing else.
"""

import logging
import logging.handlers
import os
import sys

from .formatters import ConsoleFormatter, JSONFormatter


def setup_logging(
    level: str = "INFO",
    log_file: str | None = None,
    console_output: bool = True,
    json_format: bool = False,
    app_name: str = "tablesync",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
) -> None:
    """
    Configure the root logger.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_file: Path to log file (if None, file logging is disabled)
        console_output: Whether to log to stderr
        json_format: Use JSON format for both stderr and file logs
        app_name: Application name included in JSON logs
        max_bytes: Maximum log file size before rotation
        backup_count: Number of rotated log files to keep
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    def make_formatter(console: bool) -> logging.Formatter:
        if json_format:
            return JSONFormatter(app_name=app_name)
        if console:
            return ConsoleFormatter(use_colors=True)
        return logging.Formatter(
            fmt="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(numeric_level)
        console_handler.setFormatter(make_formatter(console=True))
        root_logger.addHandler(console_handler)

    if log_file:
        log_dir = os.path.dirname(log_file)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            filename=log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(make_formatter(console=False))
        root_logger.addHandler(file_handler)

    # Quiet chatty third-party libraries
    logging.getLogger("pymysql").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("requests").setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        f"Logging initialized: level={level}, file={log_file or 'none'}, "
        f"console={console_output}, json={json_format}"
    )


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


def shutdown_logging() -> None:
    """Flush and close every root handler, releasing file handles."""
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    logging.shutdown()


def env_logging_options() -> dict:
    """
    Read logging settings from environment variables.

    Environment variables:
        LOG_LEVEL: Log level (default: INFO)
        LOG_FILE: Log file path (default: none)
        LOG_JSON: Use JSON format (default: false)

    Returns:
        Keyword arguments accepted by :func:`setup_logging`
    """
    return {
        "level": os.getenv("LOG_LEVEL", "INFO").upper(),
        "log_file": os.getenv("LOG_FILE") or None,
        "json_format": os.getenv("LOG_JSON", "false").lower() in ("true", "1", "yes"),
    }
