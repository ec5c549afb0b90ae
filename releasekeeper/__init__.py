"""
releasekeeper: release status reports for installed projects.

releasekeeper compares the installed versions of a site's projects (core,
modules and themes) against the release history published by an update
server and classifies each project as up to date, outdated, insecure,
revoked or unsupported.

Features include:
    • Stability-aware version ordering (alpha < beta < rc < stable)
    • Recommended / latest / "also available" update suggestions
    • Security release detection within the installed major branch
    • Supported-branch and revoked-release handling
    • Core compatibility ranges for every suggested release
"""

from __future__ import annotations

from releasekeeper.__version__ import __version__
from releasekeeper.core.resolver import ReleaseResolver, resolve
from releasekeeper.models import (
    Release,
    ResolutionResult,
    UpdateStatus,
    Version,
    parse_version,
)

# ---------------------------------------------------------------------------
# Package Metadata
# ---------------------------------------------------------------------------

__author__ = "releasekeeper Contributors"
__license__ = "Apache-2.0"
__description__ = "Release status and update recommendations for installed projects."

__all__ = [
    "__version__",
    "Release",
    "ReleaseResolver",
    "ResolutionResult",
    "UpdateStatus",
    "Version",
    "parse_version",
    "resolve",
]
