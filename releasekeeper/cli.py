"""
Command-line interface for releasekeeper.

The ``releasekeeper`` group handles the options shared by every command
(configuration file, verbosity, colour), loads the configuration and hands
a :class:`~releasekeeper.context.ReleaseKeeperContext` to the subcommand.
:func:`main` is the console-script entry point and turns every outcome into
a process exit code.
"""

from __future__ import annotations

import os
import sys
import logging
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from releasekeeper.config import load_config
from releasekeeper.__version__ import __version__
from releasekeeper.commands.check import check
from releasekeeper.context import ReleaseKeeperContext
from releasekeeper.exceptions import ConfigError, ReleaseKeeperError
from releasekeeper.utils.logger import get_logger, setup_logging
from releasekeeper.utils.console import print_error, print_warning, reconfigure_console

logger = get_logger("cli")

#: log level per number of ``-v`` flags
_VERBOSITY_LEVELS = (logging.WARNING, logging.INFO, logging.DEBUG)


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--config",
    "-c",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar="RELEASEKEEPER_CONFIG",
    help="Configuration file (default: releasekeeper.toml or pyproject.toml).",
)
@click.option(
    "--verbose",
    "-v",
    count=True,
    help="Show progress (-v) or debug output (-vv) on stderr.",
)
@click.option(
    "--color/--no-color",
    default=True,
    envvar="RELEASEKEEPER_COLOR",
    help="Enable or disable colored output.",
)
@click.version_option(__version__, prog_name="releasekeeper", message="%(prog)s %(version)s")
@click.pass_context
def cli(
    ctx: click.Context,
    config: Optional[Path],
    verbose: int,
    color: bool,
) -> None:
    """Report update status for a site's core, modules and themes.

    \b
    Commands:
      check STATE    List available, security and unsupported releases

    \b
    Examples:
      releasekeeper check site.toml
      releasekeeper check site.toml --catalog-dir ./release-history
      releasekeeper -v check site.toml --format json
    """
    level = _VERBOSITY_LEVELS[min(verbose, len(_VERBOSITY_LEVELS) - 1)]
    setup_logging(level=level, verbose=verbose > 1)
    _apply_color(color)

    try:
        settings = load_config(config)
    except ConfigError as exc:
        print_error(escape(str(exc)))
        ctx.exit(1)

    state = ctx.ensure_object(ReleaseKeeperContext)
    state.config_path = config or settings.source_path
    state.verbose = verbose
    state.color = color
    state.config = settings

    logger.debug(
        "releasekeeper %s (log level %s, color %s, config %s)",
        __version__,
        logging.getLevelName(level),
        color,
        state.config_path,
    )


def _apply_color(enabled: bool) -> None:
    """Propagate ``--color/--no-color`` through ``NO_COLOR``."""
    if enabled:
        os.environ.pop("NO_COLOR", None)
    else:
        os.environ["NO_COLOR"] = "1"
    reconfigure_console()


cli.add_command(check)


def main() -> int:
    """Run the CLI and return its exit code.

    Returns:
        0 when everything is up to date, 1 when a project needs action or
        an error occurred, 2 for usage errors and 130 when interrupted.
    """
    try:
        code = cli(standalone_mode=False)
    except (click.exceptions.Abort, KeyboardInterrupt):
        print_warning("Operation cancelled by user")
        return 130
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except ReleaseKeeperError as exc:
        print_error(escape(str(exc)))
        logger.debug("Error details: %s", exc.details or "<none>", exc_info=True)
        return 1
    except Exception as exc:
        print_error(escape(f"Unexpected error: {exc}"))
        logger.exception("Unhandled exception in CLI")
        return 1

    # ctx.exit() inside the group surfaces here as its exit code
    return code if isinstance(code, int) else 0


if __name__ == "__main__":
    sys.exit(main())
