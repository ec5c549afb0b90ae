"""
Filesystem helpers for releasekeeper.

State documents and offline release catalogs are read through
:func:`safe_read_bytes`, which bounds the size of what it loads and reports
every failure as :class:`~releasekeeper.exceptions.FileOperationError`.
"""

from __future__ import annotations

import stat
from pathlib import Path
from typing import Optional, Union

from releasekeeper.constants import MAX_FILE_SIZE
from releasekeeper.exceptions import FileOperationError
from releasekeeper.utils.logger import get_logger

logger = get_logger("filesystem")


def safe_read_bytes(
    file_path: Union[str, Path],
    *,
    max_size: Optional[int] = MAX_FILE_SIZE,
) -> bytes:
    """Return the contents of ``file_path``.

    Args:
        file_path: File to read.
        max_size: Refuse files larger than this many bytes; ``None`` for no
            limit.

    Raises:
        FileOperationError: The path is missing, not a regular file, too
            large or unreadable.
    """
    path = Path(file_path)

    def failure(reason: str, exc: Optional[OSError] = None) -> FileOperationError:
        return FileOperationError(
            reason, file_path=str(path), operation="read", original_error=exc
        )

    try:
        info = path.stat()
    except FileNotFoundError:
        raise failure(f"File not found: {path}") from None
    except OSError as exc:
        raise failure(f"Cannot access {path}: {exc}", exc) from exc

    if not stat.S_ISREG(info.st_mode):
        raise failure(f"Not a file: {path}")
    if max_size is not None and info.st_size > max_size:
        raise failure(f"File too large: {info.st_size} bytes (max {max_size})")

    try:
        data = path.read_bytes()
    except OSError as exc:
        raise failure(f"Failed to read file: {exc}", exc) from exc

    logger.debug("Read %d bytes from %s", len(data), path)
    return data
