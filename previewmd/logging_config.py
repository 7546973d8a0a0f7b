"""Logging configuration for previewmd.

stderr shares the terminal with the full-screen UI, so nothing is logged
unless a file sink is requested.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

DEBUG_LOG_ENV = "PREVIEWMD_DEBUG_LOG"
LOG_FORMAT = "{time:HH:mm:ss.SSS} {level: <7} {name}:{function}:{line} {message}"


def configure_logging(debug_log: str | Path | None = None) -> Path | None:
    """Route loguru output to ``debug_log`` (or ``$PREVIEWMD_DEBUG_LOG``).

    Returns the sink path, or ``None`` when logging stays off.
    """
    logger.remove()
    target = debug_log or os.environ.get(DEBUG_LOG_ENV, "").strip() or None
    if target is None:
        return None
    path = Path(target).expanduser()
    logger.add(path, level="DEBUG", format=LOG_FORMAT, enqueue=False)
    logger.debug("debug logging to {}", path)
    return path
