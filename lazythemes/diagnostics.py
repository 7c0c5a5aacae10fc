"""Logging setup.

The TUI owns the terminal, so nothing is logged to stderr. The package
logger has a ``NullHandler`` until ``configure_logging`` attaches a file.
"""

from __future__ import annotations

import logging
from pathlib import Path

LOGGER_NAME = "lazythemes"
LOG_FORMAT = "ts=%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"

_HANDLER: logging.Handler | None = None

logging.getLogger(LOGGER_NAME).addHandler(logging.NullHandler())


def configure_logging(log_path: Path | None, verbose: bool = False) -> dict[str, str]:
    """Attach a key=value file handler to the package logger.

    Calling again replaces the previous handler. With ``log_path`` of
    ``None`` only the level is adjusted.
    """
    global _HANDLER
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG if verbose else logging.INFO)
    logger.propagate = False

    if log_path is None:
        return {"log_path": "", "format": "kv", "handlers": "null"}

    log_path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_path, encoding="utf-8")
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    if _HANDLER is not None:
        logger.removeHandler(_HANDLER)
        _HANDLER.close()
    logger.addHandler(handler)
    _HANDLER = handler
    return {"log_path": str(log_path), "format": "kv", "handlers": "file"}


def get_logger() -> logging.Logger:
    return logging.getLogger(LOGGER_NAME)
