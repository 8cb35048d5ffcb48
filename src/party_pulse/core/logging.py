"""Logging helpers for applications embedding the engagement core."""

from __future__ import annotations

import logging
import sys

from party_pulse.core.settings import settings

LOGGER_NAME = "party_pulse"
_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | None = None) -> logging.Logger:
    """Attach a stdout handler to the package logger.

    Calling it twice does not add a second handler.

    Args:
        level: Log level name. Defaults to ``settings.log_level``.

    Returns:
        The package logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level or settings.log_level)
    if not any(getattr(h, "_party_pulse", False) for h in logger.handlers):
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(_FORMAT))
        handler._party_pulse = True  # type: ignore[attr-defined]
        logger.addHandler(handler)
    return logger
