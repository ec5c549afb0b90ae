"""
Release and release catalog data model for releasekeeper.

A :class:`Release` is one (possibly revoked) version of a project together
with the metadata the resolver needs: publication state, security flags,
branch support and core compatibility. A :class:`ReleaseCatalog` is the
full release history of one project as fetched from the update server,
in catalog order.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import FrozenSet, Optional, Tuple

from releasekeeper.models.version import Branch, Version, parse_version


@dataclass(frozen=True)
class Release:
    """One release of a project.

    Attributes:
        project: Short name of the project the release belongs to.
        version: Parsed release version. Strings are parsed on construction.
        published: ``False`` for revoked (unpublished) releases.
        security: The release fixes a security issue.
        insecure: The release itself is known to be vulnerable.
        supported: The release lies in a supported branch and is not
            individually marked unsupported.
        core_compatibility: Core version constraint, e.g. ``"^8 || ^9"``.
        release_types: Raw "Release type" terms from the catalog.
        release_link: URL of the release notes.
        download_link: URL of the release archive.
        date: Publication date.
    """

    project: str
    version: Version
    published: bool = True
    security: bool = False
    insecure: bool = False
    supported: bool = True
    core_compatibility: Optional[str] = None
    release_types: Tuple[str, ...] = ()
    release_link: Optional[str] = field(default=None, compare=False)
    download_link: Optional[str] = field(default=None, compare=False)
    date: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if not isinstance(self.version, Version):
            object.__setattr__(
                self, "version", parse_version(self.version, project=self.project)
            )

    @property
    def name(self) -> str:
        return f"{self.project} {self.version}"

    @property
    def is_stable(self) -> bool:
        return self.version.is_stable

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class ReleaseCatalog:
    """Release history of a single project.

    Attributes:
        project: Short name of the project.
        title: Human-readable project title.
        link: Project home page.
        supported_branches: Declared supported branches, or ``None`` when
            the catalog does not declare any (every branch supported).
        releases: Releases in catalog order.
    """

    project: str
    title: Optional[str] = None
    link: Optional[str] = None
    supported_branches: Optional[FrozenSet[Branch]] = None
    releases: Tuple[Release, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.releases

    def __len__(self) -> int:
        return len(self.releases)
