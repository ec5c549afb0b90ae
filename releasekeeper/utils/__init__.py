"""
Shared helpers for releasekeeper: logging, Rich console output, the async
HTTP client, bounded file reads and update-type classification.
"""

from __future__ import annotations

from releasekeeper.utils.logger import (
    get_logger,
    setup_logging,
)
from releasekeeper.utils.filesystem import safe_read_bytes
from releasekeeper.utils.console import (
    ReportColumn,
    colorize_status,
    colorize_update_type,
    get_raw_console,
    print_error,
    print_success,
    print_warning,
    reconfigure_console,
    render_table,
)
from releasekeeper.utils.http import HTTPClient
from releasekeeper.utils.version_utils import get_update_type

__all__ = [
    "HTTPClient",
    "ReportColumn",
    "colorize_status",
    "colorize_update_type",
    "get_logger",
    "get_raw_console",
    "get_update_type",
    "print_error",
    "print_success",
    "print_warning",
    "reconfigure_console",
    "render_table",
    "safe_read_bytes",
    "setup_logging",
]
