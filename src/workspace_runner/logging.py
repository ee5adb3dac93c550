"""Logging setup shared by every runner component.

Console output goes through ``logging.basicConfig``; a rotating file handler
can be attached to the package logger when a log file is configured.
"""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
import os


ROOT_LOGGER = "workspace_runner"
LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"

_configured = False


def _env_level() -> int:
    level = os.getenv("WSRUN_LOG_LEVEL", "INFO").upper()
    value = getattr(logging, level, logging.INFO)
    return value if isinstance(value, int) else logging.INFO


def _ensure_base_logger() -> None:
    global _configured
    if _configured:
        return
    logging.basicConfig(level=_env_level(), format=LOG_FORMAT)
    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Return a logger under the ``workspace_runner`` namespace."""
    _ensure_base_logger()
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + "."):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


def attach_log_file(log_file: Path) -> None:
    """Mirror all runner records into ``log_file`` (rotated at ~1 MB)."""
    logger = get_logger(ROOT_LOGGER)
    for h in logger.handlers:
        if isinstance(h, RotatingFileHandler) and h.baseFilename == os.path.abspath(log_file):
            return
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = RotatingFileHandler(log_file, maxBytes=1_000_000, backupCount=3)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)


def apply_env_level() -> None:
    """Re-read ``WSRUN_LOG_LEVEL`` (e.g. after a ``.env`` file was loaded)."""
    level = _env_level()
    get_logger(ROOT_LOGGER).setLevel(level)
