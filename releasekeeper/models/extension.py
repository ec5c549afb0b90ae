"""
Installed extension and project data model for releasekeeper.

Modules and themes are installed individually but released as part of a
project. Several extensions can ship in one project, in which case the
project, not any individual extension, is what gets checked and reported.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

EXTENSION_TYPES = ("core", "module", "theme")


@dataclass
class InstalledExtension:
    """A module, theme or core package installed on the site.

    Attributes:
        name: Machine name of the extension.
        title: Human-readable name; defaults to ``name``.
        type: One of ``core``, ``module`` or ``theme``.
        project: Project the extension is released in; defaults to ``name``.
        version: Installed version string, if known.
        enabled: Whether the extension is installed and active.
        hidden: Hidden extensions are not checked unless another checked
            extension depends on them.
        base_theme: Machine name of the base theme, for subthemes.
    """

    name: str
    title: Optional[str] = None
    type: str = "module"
    project: Optional[str] = None
    version: Optional[str] = None
    enabled: bool = True
    hidden: bool = False
    base_theme: Optional[str] = None

    def __post_init__(self) -> None:
        if self.type not in EXTENSION_TYPES:
            raise ValueError(
                f"Unknown extension type {self.type!r}; "
                f"expected one of {', '.join(EXTENSION_TYPES)}"
            )
        if not self.title:
            self.title = self.name
        if not self.project:
            self.project = self.name


@dataclass
class InstalledProject:
    """A project with at least one installed extension.

    Attributes:
        name: Project short name, the key used to fetch release history.
        title: Display title of the project.
        project_type: Report group: ``core``, ``module``, ``theme``,
            ``module-disabled`` or ``theme-disabled``.
        version: Installed version string of the project.
        includes: Titles of the extensions shipped in this project.
        checked: ``False`` when the project is excluded from checking.
    """

    name: str
    title: str
    project_type: str
    version: Optional[str] = None
    includes: List[str] = field(default_factory=list)
    checked: bool = True
