"""Logging setup, contextual logger, and optional rotating file handler."""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Any


# ---------------------------------------------------------------------------
# Format
# ---------------------------------------------------------------------------
_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_LOG_FILE_NAME = "encprops.log"


# ---------------------------------------------------------------------------
# setup_logging
# ---------------------------------------------------------------------------
def setup_logging(
    log_level: str = "INFO",
    log_dir: str | None = None,
    max_bytes: int = 5 * 1024 * 1024,  # 5 MB
    backup_count: int = 3,
) -> None:
    """Configure the root logger with a console handler.

    A rotating file handler is added as well when *log_dir* is given.
    Safe to call multiple times – existing handlers are cleared first.

    Args:
        log_level: One of DEBUG / INFO / WARNING / ERROR / CRITICAL.
        log_dir: Directory for log files (created if absent), or ``None``
            for console-only logging.
        max_bytes: Max size per log file before rotation.
        backup_count: Number of rotated backup files to keep.
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove any previously-installed handlers (idempotent re-init).
    for handler in root.handlers[:]:
        root.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT)

    # Console handler (stderr, so CLI output on stdout stays clean)
    console = logging.StreamHandler()
    console.setLevel(level)
    console.setFormatter(formatter)
    root.addHandler(console)

    if log_dir is None:
        return

    os.makedirs(log_dir, exist_ok=True)
    file_handler = RotatingFileHandler(
        os.path.join(log_dir, _LOG_FILE_NAME),
        maxBytes=max_bytes,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)


# ---------------------------------------------------------------------------
# get_logger
# ---------------------------------------------------------------------------
def get_logger(name: str) -> logging.Logger:
    """Return a stdlib Logger for *name* (typically ``__name__``)."""
    return logging.getLogger(name)


# ---------------------------------------------------------------------------
# ContextualLogger
# ---------------------------------------------------------------------------
class ContextualLogger:
    """Thin wrapper that prepends ``[key=value …]`` context to every message.

    Usage::

        log = ContextualLogger(get_logger(__name__), source="application")
        log.debug("Loaded %d keys", 12)  # => "[source=application] Loaded 12 keys"
    """

    def __init__(self, logger: logging.Logger, **context: Any) -> None:
        self._logger = logger
        self._prefix = " ".join(f"[{k}={v}]" for k, v in context.items())

    def _fmt(self, msg: str) -> str:
        return f"{self._prefix} {msg}" if self._prefix else msg

    def debug(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.debug(self._fmt(msg), *args, **kwargs)

    def warning(self, msg: str, *args: Any, **kwargs: Any) -> None:
        self._logger.warning(self._fmt(msg), *args, **kwargs)
