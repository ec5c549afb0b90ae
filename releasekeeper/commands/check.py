"""Check command implementation for releasekeeper.

Reads an installed-state document, fetches the release history of every
installed project and reports, per project, whether it is up to date,
needs a (security) update, was revoked upstream or is no longer supported.

All projects share a single :class:`ReleaseFetcher`, so each release
history is downloaded at most once per invocation.

Typical usage::

    # Full report against the public update server
    $ releasekeeper check site.toml

    # Offline, from a directory of {project}.xml files
    $ releasekeeper check site.toml --catalog-dir ./release-history

    # Machine-readable output, only projects needing attention
    $ releasekeeper check site.toml --format json --outdated-only
"""

from __future__ import annotations

import sys
import json
import click
import asyncio
from pathlib import Path
from typing import List, Optional
from rich.markup import escape

from releasekeeper.constants import LABEL_RECOMMENDED, PROJECT_TYPE_TITLES
from releasekeeper.context import pass_context, ReleaseKeeperContext
from releasekeeper.exceptions import ReleaseKeeperError
from releasekeeper.core import (
    ProjectReport,
    ReleaseFetcher,
    UpdateChecker,
    load_site_state,
)
from releasekeeper.models import UpdateStatus
from releasekeeper.utils import (
    HTTPClient,
    get_logger,
    print_success,
    print_error,
    print_warning,
    render_table,
    ReportColumn,
    get_raw_console,
    colorize_status,
    colorize_update_type,
    get_update_type,
)

logger = get_logger("commands.check")

_DASH = "[dim]-[/dim]"


@click.command()
@click.argument(
    "state",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
)
@click.option(
    "--catalog-dir",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=None,
    help="Read release histories from {project}.xml files instead of the network.",
)
@click.option(
    "--format",
    "-f",
    type=click.Choice(["table", "simple", "json"], case_sensitive=False),
    default="table",
    help="Output format.",
)
@click.option(
    "--outdated-only",
    is_flag=True,
    help="Show only projects that need attention.",
)
@click.option(
    "--check-disabled/--no-check-disabled",
    default=None,
    help="Also check projects whose extensions are all uninstalled.",
)
@pass_context
def check(
    ctx: ReleaseKeeperContext,
    state: Path,
    catalog_dir: Optional[Path],
    format: str,
    outdated_only: bool,
    check_disabled: Optional[bool],
) -> None:
    """Check an installed-state file for available updates.

    STATE is a TOML file describing the installed core, modules and themes.

    Exits 0 when every checked project is up to date and 1 when any project
    needs an update, is insecure, revoked or unsupported, or could not be
    checked.
    """
    if check_disabled is None:
        check_disabled = ctx.config.check_disabled_extensions

    try:
        needs_action = asyncio.run(
            _check_async(
                ctx,
                state,
                catalog_dir=catalog_dir,
                format=format.lower(),
                outdated_only=outdated_only,
                check_disabled=check_disabled,
            )
        )
    except ReleaseKeeperError as exc:
        print_error(escape(str(exc)))
        logger.debug("Check failed", exc_info=True)
        sys.exit(1)

    sys.exit(1 if needs_action else 0)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _check_async(
    ctx: ReleaseKeeperContext,
    state_path: Path,
    *,
    catalog_dir: Optional[Path],
    format: str,
    outdated_only: bool,
    check_disabled: bool,
) -> bool:
    """Run the check and render the report.

    Returns:
        ``True`` if any project needs attention.
    """
    show_progress = format != "json"

    logger.info("Checking %s...", state_path)
    site = load_site_state(state_path)

    if site.core is None and not site.extensions:
        if show_progress:
            print_warning("No projects found in installed state")
        else:
            _display_json([])
        return False

    config = ctx.config
    if catalog_dir is not None:
        fetcher = ReleaseFetcher(catalog_dir=catalog_dir)
        reports = await UpdateChecker(fetcher, check_disabled=check_disabled).check(site)
    else:
        async with HTTPClient(
            timeout=config.timeout, max_attempts=config.max_fetch_attempts
        ) as http:
            fetcher = ReleaseFetcher(http, fetch_url=config.fetch_url)
            reports = await UpdateChecker(
                fetcher, check_disabled=check_disabled
            ).check(site)

    needs_action = any(r.needs_action for r in reports)
    failed = sum(1 for r in reports if r.fetch_failed)

    if outdated_only:
        reports = [r for r in reports if r.needs_action]

    if format == "json":
        _display_json(reports)
        return needs_action

    if not reports:
        print_success("All projects are up to date!")
        return needs_action

    if format == "table":
        _display_table(reports)
    else:
        _display_simple(reports)

    if failed:
        print_warning(
            f"\nFailed to get available update data for {failed} project(s)"
        )

    attention = sum(1 for r in reports if r.needs_action and not r.fetch_failed)
    security = sum(
        1 for r in reports if r.status is UpdateStatus.SECURITY_UPDATE_REQUIRED
    )
    if security:
        print_error(f"{security} project(s) require a security update")
    if attention:
        print_warning(f"{attention} project(s) need attention")
    elif not failed:
        print_success("\nAll projects are up to date!")

    return needs_action


# ---------------------------------------------------------------------------
# Display renderers
# ---------------------------------------------------------------------------


def _status_markup(report: ProjectReport) -> str:
    if report.fetch_failed:
        return "[red]✗ Failed to get data[/red]"
    if report.status is None:
        return "[red]✗ Unknown[/red]"
    return colorize_status(report.status)


#: Columns of the ``table`` format, in display order.
REPORT_COLUMNS = (
    ReportColumn("Status", no_wrap=True),
    ReportColumn("Project", style="bold cyan", no_wrap=True),
    ReportColumn("Group", style="dim"),
    ReportColumn("Installed", style="dim", justify="center"),
    ReportColumn("Recommended", style="bright_cyan", justify="center"),
    ReportColumn("Update Type", justify="center"),
    ReportColumn("Other Releases"),
)


def _display_table(reports: List[ProjectReport]) -> None:
    """Render reports as a Rich table, one row per project.

    Example::

        ┏━━━━━━━━━━━━━━━━━━━━━━━━━━━┳━━━━━━━━━┳━━━━━━━━━━━┳━━━━━━━━━━━━━┓
        ┃ Status                    ┃ Project ┃ Installed ┃ Recommended ┃
        ┡━━━━━━━━━━━━━━━━━━━━━━━━━━━╇━━━━━━━━━╇━━━━━━━━━━━╇━━━━━━━━━━━━━┩
        │ ✓ Up to date              │ drupal  │ 8.1.1     │ -           │
        │ ✗ Security update requir… │ views   │ 8.x-3.1   │ 8.x-3.4     │
        └───────────────────────────┴─────────┴───────────┴─────────────┘
    """
    render_table(
        REPORT_COLUMNS,
        [_table_row(report) for report in reports],
        title="Available Updates",
        row_lines=True,
    )


def _table_row(report: ProjectReport) -> List[str]:
    recommended = update_type = others = _DASH

    result = report.result
    if result is not None:
        if result.recommended is not None:
            target = str(result.recommended.version)
            recommended = target
            update_type = colorize_update_type(get_update_type(report.installed, target))

        lines = [
            f"{option.label}: {option.release.version}"
            + (f" ({option.core_compatibility})" if option.core_compatibility else "")
            for option in result.update_options()
            if option.label != LABEL_RECOMMENDED
        ]
        if lines:
            others = "\n".join(lines)
    elif report.error is not None:
        others = f"[red]{escape(report.error.message)}[/red]"

    return [
        _status_markup(report),
        escape(report.title),
        PROJECT_TYPE_TITLES.get(report.project_type, report.project_type),
        report.installed or _DASH,
        recommended,
        update_type,
        others,
    ]


def _display_simple(reports: List[ProjectReport]) -> None:
    """Render reports as plain lines, grouped by project type.

    Example::

        Modules
        [Update available] views          8.x-3.1    → 8.x-3.4
               Also available: 8.x-4.0 (8.0.0 to 8.1.1)
    """
    console = get_raw_console()
    group: Optional[str] = None

    for report in reports:
        if report.project_type != group:
            group = report.project_type
            console.print(
                f"\n[bold]{PROJECT_TYPE_TITLES.get(group, group)}[/bold]",
                highlight=False,
            )

        if report.fetch_failed:
            label = "Failed to get available update data"
        elif report.status is None:
            label = "Unknown"
        else:
            label = report.status.label

        installed = report.installed or "-"
        line = f"[{label}] {report.name:20} {installed:10}"
        if report.result is not None and report.result.recommended is not None:
            line += f" → {report.result.recommended.version}"
        console.print(line, markup=False, highlight=False)

        if report.error is not None:
            console.print(f"       {report.error}", markup=False, highlight=False)
            continue

        if report.result is None:
            continue

        for option in report.result.update_options():
            detail = f"       {option.label}: {option.release.version}"
            if option.core_compatibility is not None:
                detail += f" ({option.core_compatibility})"
            console.print(detail, markup=False, highlight=False)


def _display_json(reports: List[ProjectReport]) -> None:
    """Render reports as a JSON array, one object per project."""
    data = [report.to_json() for report in reports]
    print(json.dumps(data, indent=2))
