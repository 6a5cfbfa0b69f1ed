"""
Logging utilities shared by the CLI and the example programs.
"""

from __future__ import annotations

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def parse_log_level(value: str | int) -> int:
    """Turn a level name ("debug", "INFO") or number into a logging level."""
    if isinstance(value, int):
        return value
    if value.isdigit():
        return int(value)
    level = logging.getLevelName(value.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level: {value!r}"
        raise ValueError(msg)
    return level


def setup_logger(logger: logging.Logger, log_level: int) -> None:
    """
    Attach a StreamHandler with the standard formatter to ``logger``.

    Calling it again only updates the level; no second handler is added.

    Args:
        logger: The logger instance to configure
        log_level: The logging level to set
    """
    logger.setLevel(log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
    for handler in logger.handlers:
        handler.setLevel(log_level)
