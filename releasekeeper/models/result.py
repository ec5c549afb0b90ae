"""
Resolution result data model for releasekeeper.

:class:`ResolutionResult` is the value the release resolver produces for one
project: an overall :class:`UpdateStatus` plus the releases surfaced in each
suggestion bucket (recommended, latest, security, also available).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from releasekeeper.constants import (
    LABEL_ALSO_AVAILABLE,
    LABEL_LATEST,
    LABEL_RECOMMENDED,
    LABEL_SECURITY,
)
from releasekeeper.models.compatibility import CoreCompatibility
from releasekeeper.models.release import Release
from releasekeeper.models.version import Version


class UpdateStatus(Enum):
    """Overall update classification of an installed project."""

    UP_TO_DATE = "up-to-date"
    UPDATE_AVAILABLE = "update-available"
    SECURITY_UPDATE_REQUIRED = "security-update-required"
    UNSUPPORTED = "unsupported"
    REVOKED = "revoked"
    NO_RELEASES_FOUND = "no-releases-found"
    NOT_CHECKED = "not-checked"

    @property
    def label(self) -> str:
        return _STATUS_LABELS[self]

    @property
    def needs_action(self) -> bool:
        """``True`` when the site owner should act on this project."""
        return self in (
            UpdateStatus.UPDATE_AVAILABLE,
            UpdateStatus.SECURITY_UPDATE_REQUIRED,
            UpdateStatus.UNSUPPORTED,
            UpdateStatus.REVOKED,
        )


_STATUS_LABELS: Mapping[UpdateStatus, str] = {
    UpdateStatus.UP_TO_DATE: "Up to date",
    UpdateStatus.UPDATE_AVAILABLE: "Update available",
    UpdateStatus.SECURITY_UPDATE_REQUIRED: "Security update required!",
    UpdateStatus.UNSUPPORTED: "Not supported!",
    UpdateStatus.REVOKED: "Revoked!",
    UpdateStatus.NO_RELEASES_FOUND: "No available releases found",
    UpdateStatus.NOT_CHECKED: "Not checked",
}


@dataclass(frozen=True)
class UpdateOption:
    """A release surfaced to the user under a display label."""

    label: str
    release: Release
    core_compatibility: Optional[CoreCompatibility] = None

    def to_json(self) -> Dict[str, Any]:
        entry: Dict[str, Any] = {
            "label": self.label,
            "version": str(self.release.version),
        }
        if self.release.release_link:
            entry["release_link"] = self.release.release_link
        if self.release.download_link:
            entry["download_link"] = self.release.download_link
        if self.core_compatibility is not None:
            entry["core_compatibility"] = str(self.core_compatibility)
        return entry


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of resolving one project's installed version.

    Attributes:
        status: Overall classification.
        installed: The installed version that was resolved.
        recommended: Primary upgrade suggestion, if any.
        latest: Pre-release outranking the recommended release, if any.
        security_releases: Applicable security releases, newest first.
        also_available: Informational release from a higher major branch.
        revoked: The installed release has been unpublished upstream.
        core_compatibility: Core compatibility of the recommended release.
        compatibility: Core compatibility keyed by release version for every
            surfaced release.
    """

    status: UpdateStatus
    installed: Optional[Version] = None
    recommended: Optional[Release] = None
    latest: Optional[Release] = None
    security_releases: Tuple[Release, ...] = ()
    also_available: Optional[Release] = None
    revoked: bool = False
    core_compatibility: Optional[CoreCompatibility] = None
    compatibility: Mapping[Version, CoreCompatibility] = field(
        default_factory=dict, compare=False, hash=False
    )

    def update_options(self) -> List[UpdateOption]:
        """Return every surfaced release with its display label.

        The recommended release comes first unless it is itself a security
        release, in which case it only appears under the security label.
        """
        options: List[UpdateOption] = []
        security_versions = {r.version for r in self.security_releases}

        if self.recommended is not None and self.recommended.version not in security_versions:
            options.append(self._option(LABEL_RECOMMENDED, self.recommended))

        for release in self.security_releases:
            options.append(self._option(LABEL_SECURITY, release))

        if self.latest is not None:
            options.append(self._option(LABEL_LATEST, self.latest))

        if self.also_available is not None:
            options.append(self._option(LABEL_ALSO_AVAILABLE, self.also_available))

        return options

    def _option(self, label: str, release: Release) -> UpdateOption:
        return UpdateOption(
            label=label,
            release=release,
            core_compatibility=self.compatibility.get(release.version),
        )

    def to_json(self) -> Dict[str, Any]:
        """Serialize the result to a JSON-compatible dictionary."""
        entry: Dict[str, Any] = {
            "status": self.status.value,
            "revoked": self.revoked,
        }
        if self.installed is not None:
            entry["installed"] = str(self.installed)
        if self.recommended is not None:
            entry["recommended"] = str(self.recommended.version)
        if self.latest is not None:
            entry["latest"] = str(self.latest.version)
        if self.security_releases:
            entry["security_releases"] = [
                str(r.version) for r in self.security_releases
            ]
        if self.also_available is not None:
            entry["also_available"] = str(self.also_available.version)
        if self.core_compatibility is not None:
            entry["core_compatibility"] = self.core_compatibility.to_json()

        options = self.update_options()
        if options:
            entry["options"] = [option.to_json() for option in options]

        return entry
