"""
Console output utilities for releasekeeper using Rich.

User-facing output for CLI commands goes through this module; diagnostic
output goes through :mod:`releasekeeper.utils.logger`. The shared
:class:`~rich.console.Console` is built on first use and rebuilt after
:func:`reconfigure_console`, so a ``--no-color`` flag parsed after import
still takes effect.
"""

from __future__ import annotations

import os
import sys
from functools import lru_cache
from typing import Dict, NamedTuple, Optional, Sequence, Tuple

from rich.table import Table
from rich.markup import escape
from rich.theme import Theme
from rich.console import Console

from releasekeeper.models.result import UpdateStatus

RELEASEKEEPER_THEME = Theme(
    {
        "success": "bold green",
        "error": "bold red",
        "warning": "bold yellow",
        "info": "bold cyan",
        "dim": "dim",
    }
)

#: style and icon per update status
STATUS_STYLES: Dict[UpdateStatus, Tuple[str, str]] = {
    UpdateStatus.UP_TO_DATE: ("green", "✓"),
    UpdateStatus.UPDATE_AVAILABLE: ("yellow", "⬆"),
    UpdateStatus.SECURITY_UPDATE_REQUIRED: ("bold red", "✗"),
    UpdateStatus.UNSUPPORTED: ("red", "⚠"),
    UpdateStatus.REVOKED: ("red", "⚠"),
    UpdateStatus.NO_RELEASES_FOUND: ("dim", "?"),
    UpdateStatus.NOT_CHECKED: ("dim", "-"),
}

UPDATE_TYPE_COLORS: Dict[str, str] = {
    "major": "red",
    "minor": "yellow",
    "patch": "green",
    "update": "yellow",
    "downgrade": "red",
}


class ReportColumn(NamedTuple):
    """Layout of one table column."""

    header: str
    style: Optional[str] = None
    justify: str = "left"
    no_wrap: bool = False


def _should_use_color() -> bool:
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    try:
        return sys.stdout.isatty()
    except (AttributeError, OSError, ValueError):
        return False


@lru_cache(maxsize=1)
def get_raw_console() -> Console:
    """Return the shared Rich console."""
    use_color = _should_use_color()
    return Console(
        theme=RELEASEKEEPER_THEME,
        no_color=not use_color,
        highlight=use_color,
    )


def reconfigure_console() -> None:
    """Forget the shared console; the next output call builds a new one."""
    get_raw_console.cache_clear()


# ---------------------------------------------------------------------------
# Status messages
# ---------------------------------------------------------------------------


def _emit(style: str, prefix: str, message: str) -> None:
    # The prefix is literal text; ``message`` may carry Rich markup
    get_raw_console().print(f"{escape(prefix)} {message}", style=style)


def print_success(message: str, *, prefix: str = "[OK]") -> None:
    _emit("success", prefix, message)


def print_error(message: str, *, prefix: str = "[ERROR]") -> None:
    _emit("error", prefix, message)


def print_warning(message: str, *, prefix: str = "[WARNING]") -> None:
    _emit("warning", prefix, message)


# ---------------------------------------------------------------------------
# Tables and markup
# ---------------------------------------------------------------------------


def render_table(
    columns: Sequence[ReportColumn],
    rows: Sequence[Sequence[str]],
    *,
    title: Optional[str] = None,
    row_lines: bool = False,
) -> None:
    """Print ``rows`` as a Rich table laid out by ``columns``.

    Cells may contain Rich markup. Nothing is printed when ``rows`` is
    empty.
    """
    if not rows:
        return

    table = Table(title=title, header_style="bold", show_lines=row_lines)
    for column in columns:
        table.add_column(
            column.header,
            style=column.style,
            justify=column.justify,
            no_wrap=column.no_wrap,
            overflow="fold",
        )
    for row in rows:
        table.add_row(*row)

    get_raw_console().print(table)


def colorize_status(status: UpdateStatus) -> str:
    """Return Rich markup for an update status label.

    Example:
        >>> colorize_status(UpdateStatus.UP_TO_DATE)
        '[green]✓ Up to date[/green]'
    """
    style, icon = STATUS_STYLES[status]
    return f"[{style}]{icon} {status.label}[/{style}]"


def colorize_update_type(update_type: str) -> str:
    color = UPDATE_TYPE_COLORS.get(update_type.lower())
    return f"[{color}]{update_type}[/{color}]" if color else update_type
