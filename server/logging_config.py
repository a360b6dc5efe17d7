"""Structured logging configuration for the notifier."""

from __future__ import annotations

import logging
import os
from typing import Optional

logger = logging.getLogger("notifier.server")


def configure_logging(level: Optional[str] = None) -> None:
    """Configure logging with structured format and configurable log level."""
    if logger.handlers or logging.getLogger().handlers:
        return

    log_level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    numeric_level = getattr(logging, log_level, logging.INFO)

    logging.basicConfig(
        level=numeric_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    # Suppress noisy HTTP client and socket logs
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("websockets").setLevel(logging.WARNING)
