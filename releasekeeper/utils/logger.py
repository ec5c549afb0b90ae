"""
Logging utilities for releasekeeper.

Every module logs through a child of the ``releasekeeper`` logger obtained
from :func:`get_logger`. Nothing is emitted until :func:`setup_logging`
installs a handler, which the CLI does once per invocation according to
``-v``; calling it again replaces that handler.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from releasekeeper.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "releasekeeper"

_lock = threading.Lock()


class LevelColorFormatter(logging.Formatter):
    """Formatter that colours the level name when writing to a terminal.

    Whether to colour is decided once, from ``NO_COLOR``/``CI`` and the
    target stream, when the formatter is created.
    """

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        stream: Optional[IO[str]] = None,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.colored = _stream_wants_color(stream or sys.stderr)

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelname) if self.colored else None
        if color is None:
            return super().format(record)

        plain = record.levelname
        record.levelname = f"{color}{plain}{self.RESET}"
        try:
            return super().format(record)
        finally:
            # Records are shared between handlers
            record.levelname = plain


def _stream_wants_color(stream: IO[str]) -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return stream.isatty()
    except (AttributeError, OSError, ValueError):
        return False


def setup_logging(
    *,
    level: int = logging.WARNING,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Send ``releasekeeper`` log records at ``level`` and above to ``stream``.

    Args:
        level: Minimum level, e.g. ``logging.INFO``.
        verbose: Include timestamps and logger names.
        stream: Destination; ``sys.stderr`` by default.
    """
    target = stream or sys.stderr
    handler = logging.StreamHandler(target)
    handler.setLevel(level)
    handler.setFormatter(
        LevelColorFormatter(
            LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            stream=target,
        )
    )

    root = logging.getLogger(ROOT_LOGGER_NAME)
    with _lock:
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)
        root.propagate = False


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ``releasekeeper`` logger or one of its children.

    ``name`` may be short (``"resolver"``) or already qualified
    (``"releasekeeper.core.fetcher"``).
    """
    if not name or name == ROOT_LOGGER_NAME:
        qualified = ROOT_LOGGER_NAME
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        qualified = name
    else:
        qualified = f"{ROOT_LOGGER_NAME}.{name}"

    root = logging.getLogger(ROOT_LOGGER_NAME)
    if not root.handlers:
        # Silent until setup_logging() runs
        root.addHandler(logging.NullHandler())

    return logging.getLogger(qualified)
