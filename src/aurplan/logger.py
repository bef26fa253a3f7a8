"""Logging setup for aurplan and the applications embedding it."""

from __future__ import annotations

import logging
from typing import TextIO

from .config import Settings

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Loggers of the HTTP stack that are too chatty below WARNING.
_NOISY_LOGGERS = ("urllib3", "requests")


def setup_logger(level: str | None = None, stream: TextIO | None = None) -> logging.Handler:
    """Configure the root logger so every aurplan module logs to one stream.

    Args:
        level: Level name such as ``"debug"`` or ``"INFO"``; unknown names fall back to INFO.
            None reads ``log_level`` from :class:`~aurplan.config.Settings`.
        stream: Stream to write to, ``sys.stderr`` when None.

    Returns:
        The handler that was installed on the root logger.

    """
    if level is None:
        level = Settings().log_level
    level_value = getattr(logging, level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    root_logger.setLevel(level_value)
    # Remove all handlers associated with the root logger (avoid duplicate logs)
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler(stream)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root_logger.addHandler(handler)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level_value, logging.WARNING))
    return handler
