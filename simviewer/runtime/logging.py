"""File logging for the TUI session.

The terminal belongs to the UI while it runs, so records only go to a daily
rotated file under the platform log directory.
"""

from __future__ import annotations

import logging
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path

from platformdirs import user_log_dir

LOGGER_NAME = "simviewer"
LOG_FILENAME = "simviewer.log"
LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
BACKUP_COUNT = 7


def default_log_dir() -> Path:
    return Path(user_log_dir(LOGGER_NAME, appauthor=False))


def setup_logging(level: str | int = "WARNING", log_dir: Path | None = None) -> Path | None:
    """Attach a rotating file handler to the ``simviewer`` logger.

    Safe to call repeatedly: previously attached handlers are replaced.
    Returns the log file path, or ``None`` when the directory could not be
    created and records are discarded instead.
    """
    if isinstance(level, str):
        level = getattr(logging, level.strip().upper(), logging.WARNING)
    logger = logging.getLogger(LOGGER_NAME)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(level)
    logger.propagate = False

    directory = log_dir if log_dir is not None else default_log_dir()
    log_file = directory / LOG_FILENAME
    try:
        directory.mkdir(parents=True, exist_ok=True)
        handler: logging.Handler = TimedRotatingFileHandler(
            filename=str(log_file),
            when="midnight",
            interval=1,
            backupCount=BACKUP_COUNT,
            encoding="utf-8",
        )
    except OSError:
        logger.addHandler(logging.NullHandler())
        return None
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)
    return log_file


__all__ = ["LOG_FORMAT", "default_log_dir", "setup_logging"]
