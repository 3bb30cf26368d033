"""Logging configuration helpers for the admission test service."""

from __future__ import annotations

import logging
from logging import Logger

from admission.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> Logger:
    """Configure basic logging for the service and return the package logger."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
    )
    return logging.getLogger("admission")
