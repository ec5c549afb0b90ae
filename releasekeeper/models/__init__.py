"""
Unified data model exports for releasekeeper.

This module re-exports all core data models to provide a stable and
convenient public API.

Example:
    >>> from releasekeeper.models import Release, Version, parse_version
"""

from __future__ import annotations

from releasekeeper.models.version import (
    Branch,
    Stability,
    Version,
    is_supported,
    parse_branch,
    parse_supported_branches,
    parse_version,
)
from releasekeeper.models.release import Release, ReleaseCatalog
from releasekeeper.models.compatibility import CoreCompatibility
from releasekeeper.models.result import ResolutionResult, UpdateOption, UpdateStatus
from releasekeeper.models.extension import InstalledExtension, InstalledProject

__all__ = [
    "Branch",
    "CoreCompatibility",
    "InstalledExtension",
    "InstalledProject",
    "Release",
    "ReleaseCatalog",
    "ResolutionResult",
    "Stability",
    "UpdateOption",
    "UpdateStatus",
    "Version",
    "is_supported",
    "parse_branch",
    "parse_supported_branches",
    "parse_version",
]
