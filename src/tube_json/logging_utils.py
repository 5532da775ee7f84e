"""Logging configuration helpers."""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO


LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def configure_logging(level: str = "WARNING", stream: Optional[TextIO] = None) -> None:
    """Send package logs to stderr so stdout only carries JSON output."""

    logger = logging.getLogger("tube_json")
    logger.setLevel(level.upper())

    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    logger.addHandler(handler)
    logger.propagate = False


class YtDlpLogger:
    """Adapter passed to yt-dlp as its ``logger`` option."""

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger("tube_json.yt_dlp")

    def debug(self, msg: str) -> None:
        # yt-dlp sends screen output through debug(); real debug lines carry
        # a "[debug] " prefix.
        if msg.startswith("[debug] "):
            self._logger.debug(msg[len("[debug] "):])
        else:
            self._logger.info(msg)

    def info(self, msg: str) -> None:
        self._logger.info(msg)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(msg)

    def error(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.error(msg)
