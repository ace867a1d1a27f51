"""Logging for the ``pail`` logger hierarchy.

The package only installs a ``NullHandler`` on import. Retry activity is
logged with ``attempt``, ``tries`` and ``limit`` record fields so that
applications can render it; :func:`configure_logging` wires a handler whose
format shows them.
"""

from __future__ import annotations

import logging as py_logging
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import Any, TextIO

ROOT_LOGGER = "pail"
RETRY_FIELDS = ("attempt", "tries", "limit")

LOG_LEVELS = {
    "DEBUG": py_logging.DEBUG,
    "INFO": py_logging.INFO,
    "WARN": py_logging.WARNING,
    "WARNING": py_logging.WARNING,
    "ERROR": py_logging.ERROR,
}
_FORMAT = "%(asctime)s %(levelname)s %(name)s attempt=%(attempt)s tries=%(tries)s/%(limit)s %(message)s"

_installed: list[py_logging.Handler] = []


class RetryFieldsFilter(py_logging.Filter):
    """Give records logged outside the retry loop placeholder retry fields."""

    def filter(self, record: py_logging.LogRecord) -> bool:
        for name in RETRY_FIELDS:
            if not hasattr(record, name):
                setattr(record, name, "-")
        return True


def retry_fields(attempt: int, tries: int, limit: int) -> Mapping[str, Any]:
    return {"attempt": attempt, "tries": tries, "limit": limit}


def resolve_level(level: str | int) -> int:
    if isinstance(level, int):
        return level
    return LOG_LEVELS.get(level.strip().upper(), py_logging.INFO)


def install_null_handler() -> None:
    logger = py_logging.getLogger(ROOT_LOGGER)
    if not any(isinstance(handler, py_logging.NullHandler) for handler in logger.handlers):
        logger.addHandler(py_logging.NullHandler())


def _attach(logger: py_logging.Logger, handler: py_logging.Handler, level: int) -> None:
    handler.setLevel(level)
    handler.setFormatter(py_logging.Formatter(_FORMAT))
    handler.addFilter(RetryFieldsFilter())
    logger.addHandler(handler)
    _installed.append(handler)


def configure_logging(
    level: str | int = "INFO",
    stream: TextIO | None = None,
    *,
    log_file: str | Path | None = None,
) -> py_logging.Logger:
    """Route ``pail`` records to ``stream`` and, optionally, a DEBUG log file.

    Reconfiguring replaces handlers added by earlier calls and leaves any
    other handler on the ``pail`` logger alone.
    """
    logger = py_logging.getLogger(ROOT_LOGGER)
    while _installed:
        handler = _installed.pop()
        logger.removeHandler(handler)
        handler.close()

    resolved = resolve_level(level)
    _attach(logger, py_logging.StreamHandler(stream or sys.stderr), resolved)
    logger.setLevel(resolved)

    if log_file:
        log_path = Path(log_file).expanduser().resolve()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = py_logging.FileHandler(log_path, encoding="utf-8")
        except OSError:
            logger.warning("Could not open log file %s, logging to stream only", log_path)
        else:
            _attach(logger, file_handler, py_logging.DEBUG)
            # the file sees retry attempts even when the stream is quieter
            logger.setLevel(py_logging.DEBUG)

    return logger
