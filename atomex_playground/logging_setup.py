"""Rotating debug log for the ``atomex_playground`` logger tree."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from concurrent_log_handler import ConcurrentRotatingFileHandler

PACKAGE_LOGGER_NAME = "atomex_playground"
LOG_FILE = Path("logs") / "playground.log"
LOG_MAX_BYTES = 5 * 1024 * 1024
LOG_BACKUP_COUNT = 3
LOG_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s: %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"


def parse_log_level(level_name: str | None) -> int:
    """Map a config ``log_level`` to a logging level; unknown names mean INFO."""
    level = logging.getLevelName(str(level_name or "").strip().upper())
    return level if isinstance(level, int) else logging.INFO


def log_file_path(home_dir: str | Path) -> Path:
    return (Path(home_dir).expanduser() / LOG_FILE).resolve()


def attach_file_handler(home_dir: str | Path, *, level: int) -> ConcurrentRotatingFileHandler:
    """Route ``atomex_playground.*`` records to ``<home_dir>/logs/playground.log``.

    Calling again for the same home directory only updates the level.
    """
    package_logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    package_logger.setLevel(level)
    path = log_file_path(home_dir)
    for existing in package_logger.handlers:
        if isinstance(existing, ConcurrentRotatingFileHandler) and existing.baseFilename == os.fspath(path):
            existing.setLevel(level)
            return existing

    path.parent.mkdir(parents=True, exist_ok=True)
    handler = ConcurrentRotatingFileHandler(
        os.fspath(path),
        "a",
        maxBytes=LOG_MAX_BYTES,
        backupCount=LOG_BACKUP_COUNT,
        use_gzip=False,
    )
    handler.setFormatter(logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATE_FORMAT))
    handler.setLevel(level)
    package_logger.addHandler(handler)
    return handler
