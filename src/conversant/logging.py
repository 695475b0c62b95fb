"""Logging for conversant.

Everything logs under the ``conversant`` logger; modules take a child with
``get_logger("session")``. Nothing is emitted until ``setup_logging`` runs,
which attaches one handler: a log file when configured (``logging.file`` or
``CONVERSANT_LOG``), otherwise stderr if it is a terminal.

Verbosity 0-4 maps to error, warning, info, verbose and trace.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from conversant.config.schema import LoggingConfig

TRACE = 5
VERBOSE = 15

logging.addLevelName(TRACE, "TRACE")
logging.addLevelName(VERBOSE, "VERBOSE")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
LOG_ENV_VAR = "CONVERSANT_LOG"

logger = logging.getLogger("conversant")

_VERBOSITY = (logging.ERROR, logging.WARNING, logging.INFO, VERBOSE, TRACE)

_initialized = False


class _Formatter(logging.Formatter):
    """Short timestamps and lowercase level names."""

    def __init__(self) -> None:
        super().__init__(LOG_FORMAT, datefmt="%H:%M:%S")

    def format(self, record: logging.LogRecord) -> str:
        # Copy so other handlers still see the standard level name
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = record.levelname.lower()
        return super().format(record)


def resolve_level(config: LoggingConfig | None) -> int:
    """Effective level for a logging config.

    ``verbose`` wins over ``level``. Unknown level names mean INFO.
    """
    if config is None:
        return logging.INFO
    if config.verbose is not None:
        index = min(max(config.verbose, 0), len(_VERBOSITY) - 1)
        return _VERBOSITY[index]
    if config.level:
        name = config.level.upper()
        level = logging.getLevelName("WARNING" if name == "WARN" else name)
        return level if isinstance(level, int) else logging.INFO
    return logging.INFO


def _open_handler(config: LoggingConfig | None) -> logging.Handler | None:
    path = (config.file if config else None) or os.environ.get(LOG_ENV_VAR)
    if path:
        try:
            return logging.FileHandler(os.path.expanduser(path), mode="a", encoding="utf-8")
        except OSError as e:
            if not sys.stderr.isatty():
                return None
            print(f"[conversant] Failed to open log file: {e}", file=sys.stderr)
    if sys.stderr.isatty():
        return logging.StreamHandler(sys.stderr)
    return None


def setup_logging(config: LoggingConfig | None = None) -> None:
    """Configure the conversant logger. Only the first call has an effect."""
    global _initialized
    if _initialized:
        return
    _initialized = True

    level = resolve_level(config)
    logger.setLevel(level)

    handler = _open_handler(config)
    if handler is not None:
        handler.setLevel(level)
        handler.setFormatter(_Formatter())
        logger.addHandler(handler)


def reset_logging() -> None:
    """Detach and close handlers so setup_logging() can run again."""
    global _initialized
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    _initialized = False


def get_logger(name: str | None = None) -> logging.Logger:
    """The conversant logger, or its child ``conversant.<name>``."""
    return logger.getChild(name) if name else logger
