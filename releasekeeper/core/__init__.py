"""
Core functionality exports for releasekeeper.

This module provides convenient access to the core subsystems of
releasekeeper:

    from releasekeeper.core import ReleaseResolver, UpdateChecker
"""

from __future__ import annotations

from releasekeeper.core.catalog import parse_release_history
from releasekeeper.core.checker import ProjectReport, UpdateChecker
from releasekeeper.core.compatibility import (
    CoreConstraint,
    core_compatibility_for,
    parse_core_constraint,
)
from releasekeeper.core.fetcher import FetchResult, FetchStatus, ReleaseFetcher
from releasekeeper.core.projects import SiteState, group_projects, load_site_state
from releasekeeper.core.resolver import ProjectResolution, ReleaseResolver, resolve

__all__ = [
    "CoreConstraint",
    "FetchResult",
    "FetchStatus",
    "ProjectReport",
    "ProjectResolution",
    "ReleaseFetcher",
    "ReleaseResolver",
    "SiteState",
    "UpdateChecker",
    "core_compatibility_for",
    "group_projects",
    "load_site_state",
    "parse_core_constraint",
    "parse_release_history",
    "resolve",
]
