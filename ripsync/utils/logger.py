"""Logging setup for RipSync.

One application logger named after the app carries every handler; modules
log through children of it obtained with ``get_logger``. Console output goes
to stderr because stdout carries command output.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

from ripsync.utils.constants import APP_NAME

_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _resolve_level(log_level: str | int) -> int:
    """Numeric level for a name such as 'debug'; unknown names give INFO."""
    if isinstance(log_level, int):
        return log_level
    level = logging.getLevelName(str(log_level).upper())
    return level if isinstance(level, int) else logging.INFO


def _build_handler(handler: logging.Handler, level: int) -> logging.Handler:
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt=_LOG_FORMAT, datefmt=_DATE_FORMAT))
    return handler


def reset_logger() -> None:
    """Detach and close every handler on the application logger."""
    app_logger = logging.getLogger(APP_NAME)
    for handler in list(app_logger.handlers):
        app_logger.removeHandler(handler)
        handler.close()


def setup_logger(
    log_level: str | int = "INFO",
    log_file: str | Path | None = None,
) -> logging.Logger:
    """Configure and return the application logger.

    Calling it again replaces the previous handlers, so a new level, a new
    log file or a swapped ``sys.stderr`` takes effect instead of stacking
    duplicate output.

    Args:
        log_level: Level name (DEBUG, INFO, WARNING, ERROR) or number.
        log_file: Optional log file, appended to in UTF-8. Missing parent
            directories are created.

    Returns:
        The application logger.
    """
    level = _resolve_level(log_level)
    app_logger = logging.getLogger(APP_NAME)
    reset_logger()
    app_logger.setLevel(level)

    app_logger.addHandler(_build_handler(logging.StreamHandler(sys.stderr), level))
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)
        app_logger.addHandler(
            _build_handler(logging.FileHandler(log_path, encoding="utf-8"), level)
        )
    return app_logger


def get_logger(module_name: str | None = None) -> logging.Logger:
    """Child of the application logger, e.g. ``get_logger("core.transcoder")``."""
    base = logging.getLogger(APP_NAME)
    return base.getChild(module_name) if module_name else base
