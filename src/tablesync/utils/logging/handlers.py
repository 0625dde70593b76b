"""Logger wrapper that attaches fixed context to every message."""

import logging
from typing import Any


class ContextLogger:
    """
    Logger that merges a fixed context into each record's ``extra``.

    Usage:
        log = ContextLogger(__name__, table="shop.orders")
        log.info("Loaded snapshot", rows=1200)
    """

    def __init__(self, name: str, **context):
        self.logger = logging.getLogger(name)
        self.context = context

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)

    def update_context(self, **context) -> None:
        self.context.update(context)

    def get_context(self) -> dict[str, Any]:
        return self.context.copy()
