"""Logging configuration utilities for llmdiff."""

import logging
import os
import sys
from typing import Optional, TextIO

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(
    level: Optional[str] = None, default: str = "INFO", stream: Optional[TextIO] = None
) -> None:
    """Configure application-wide logging once.

    The level comes from ``level``, then ``LOG_LEVEL``, then ``default``; an
    unknown name falls back to ``default``. Records go to stderr so that
    stdout stays reserved for results.
    """
    if logging.getLogger().handlers:
        return

    log_level = (level or os.getenv("LOG_LEVEL") or default).upper()
    if not isinstance(logging.getLevelName(log_level), int):
        log_level = default.upper()
    logging.basicConfig(level=log_level, format=_LOG_FORMAT, stream=stream or sys.stderr)
