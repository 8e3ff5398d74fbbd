"""Logging configuration for the command-line entry point."""

from __future__ import annotations

import logging
import sys

LOGGER_NAME = "anytrack"


def configure(log_level: int, prefix: str | None = LOGGER_NAME) -> None:
    """Configure the package logger.

    Args:
        log_level: The desired verbosity level.
        prefix: The logger to configure.
    """
    logger = logging.getLogger(prefix)

    # Reset to a known state so repeated calls do not stack handlers.
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    logger.setLevel(log_level)

    formatter = logging.Formatter("%(asctime)s | %(levelname)s | %(message)s")
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setFormatter(formatter)
    logger.addHandler(stderr_handler)
