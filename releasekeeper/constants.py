"""
Centralized constants for releasekeeper.

This module defines immutable configuration values used across
releasekeeper, including update-server settings, release-history vocabulary,
and logging formats. All values are intended to be treated as read-only.
"""

from typing import Final, Mapping

# ---------------------------------------------------------------------------
# Project metadata
# ---------------------------------------------------------------------------

#: HTTP User-Agent template used for outbound requests.
USER_AGENT_TEMPLATE: Final[str] = "releasekeeper/{version}"

# ---------------------------------------------------------------------------
# Update server
# ---------------------------------------------------------------------------

#: Base URL of the release-history service.
DEFAULT_FETCH_URL: Final[str] = "https://updates.drupal.org/release-history"

#: Per-project release-history document, relative to the fetch URL.
RELEASE_HISTORY_PATH: Final[str] = "{base}/{project}/current"

#: File name used for a project's release history in offline catalog dirs.
CATALOG_FILE_TEMPLATE: Final[str] = "{project}.xml"

# ---------------------------------------------------------------------------
# HTTP configuration
# ---------------------------------------------------------------------------

#: Default network timeout in seconds.
DEFAULT_TIMEOUT: Final[int] = 30

#: Default number of attempts per release-history fetch.
DEFAULT_MAX_FETCH_ATTEMPTS: Final[int] = 2

#: Maximum number of in-flight release-history fetches.
DEFAULT_CONCURRENCY: Final[int] = 10

# ---------------------------------------------------------------------------
# Configuration defaults
# ---------------------------------------------------------------------------

#: Whether disabled modules and themes are checked for updates.
DEFAULT_CHECK_DISABLED_EXTENSIONS: Final[bool] = False

# ---------------------------------------------------------------------------
# Release-history vocabulary
# ---------------------------------------------------------------------------

#: Release ``status`` value for releases that are available for download.
RELEASE_STATUS_PUBLISHED: Final[str] = "published"

#: Taxonomy name carrying release classification terms.
RELEASE_TYPE_TERM: Final[str] = "Release type"

#: Release type marking a release that fixes a security issue.
RELEASE_TYPE_SECURITY: Final[str] = "Security update"

#: Release type marking a release known to be vulnerable.
RELEASE_TYPE_INSECURE: Final[str] = "Insecure"

#: Release type marking a release that is no longer supported.
RELEASE_TYPE_UNSUPPORTED: Final[str] = "Unsupported"

# ---------------------------------------------------------------------------
# Report labels
# ---------------------------------------------------------------------------

LABEL_RECOMMENDED: Final[str] = "Recommended version"
LABEL_LATEST: Final[str] = "Latest version"
LABEL_SECURITY: Final[str] = "Security update"
LABEL_ALSO_AVAILABLE: Final[str] = "Also available"

#: Display order for project groups in reports.
PROJECT_TYPE_ORDER: Final[Mapping[str, int]] = {
    "core": 0,
    "module": 1,
    "theme": 2,
    "module-disabled": 3,
    "theme-disabled": 4,
}

#: Human-readable headings for project groups.
PROJECT_TYPE_TITLES: Final[Mapping[str, str]] = {
    "core": "Core",
    "module": "Modules",
    "theme": "Themes",
    "module-disabled": "Uninstalled modules",
    "theme-disabled": "Uninstalled themes",
}

# ---------------------------------------------------------------------------
# Security constraints
# ---------------------------------------------------------------------------

#: Maximum allowed file size (in bytes) when reading state or catalog files.
MAX_FILE_SIZE: Final[int] = 10 * 1024 * 1024  # 10 MB

# ---------------------------------------------------------------------------
# Logging configuration
# ---------------------------------------------------------------------------

#: Timestamp format for verbose logging.
LOG_DATE_FORMAT: Final[str] = "%Y-%m-%d %H:%M:%S"

#: Default log format (non-verbose).
LOG_DEFAULT_FORMAT: Final[str] = "%(levelname)s: %(message)s"

#: Verbose log format including timestamp and logger name.
LOG_VERBOSE_FORMAT: Final[str] = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
