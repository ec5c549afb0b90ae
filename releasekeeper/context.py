"""
Shared context object for releasekeeper CLI commands.

The context carries global options and the loaded configuration from the
``releasekeeper`` group down to its subcommands.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

import click

from releasekeeper.config import ReleaseKeeperConfig


class ReleaseKeeperContext:
    """Per-invocation state shared by releasekeeper commands.

    Attributes:
        config_path: Explicit configuration file, if one was given.
        verbose: Verbosity level (0=WARNING, 1=INFO, 2+=DEBUG).
        color: Whether colored terminal output is enabled.
        config: Configuration loaded by the CLI group; defaults until then.
    """

    __slots__ = ("config_path", "verbose", "color", "config")

    def __init__(self) -> None:
        self.config_path: Optional[Path] = None
        self.verbose: int = 0
        self.color: bool = True
        self.config: ReleaseKeeperConfig = ReleaseKeeperConfig()


#: Click decorator injecting :class:`ReleaseKeeperContext` into commands.
pass_context = click.make_pass_decorator(ReleaseKeeperContext, ensure=True)
