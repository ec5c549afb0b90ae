"""Release resolution for releasekeeper.

Given the installed version of a project and the project's release history,
:class:`ReleaseResolver` decides what (if anything) the site owner should
upgrade to and how urgent that is.

The algorithm works on the installed version's major branch ("current
major") and the nearest higher major that has supported releases ("next
major"):

1. **Revoked**: unpublished releases are dropped; if the installed version
   was one of them the result is flagged ``revoked``.
2. **Recommended**: the highest stable, supported release of the current
   major that is newer than the installed version.
3. **Latest**: a supported pre-release that outranks the recommended
   release (and the installed version).
4. **Security**: every newer, non-insecure security release of the current
   major, newest first. When present the status is
   ``SECURITY_UPDATE_REQUIRED`` and the recommendation is at least the
   newest security release.
5. **Also available**: the next major's best release, shown for
   information when the current major is still fine. When the current
   major has nothing published, or the installed release is unsupported or
   revoked and nothing newer in its major qualifies, the next major's best
   becomes the recommendation instead.

The resolver is stateless; every call builds its result from its arguments
only, so calls for different projects can run in any order or in parallel.

Typical usage::

    resolver = ReleaseResolver()
    result = resolver.resolve("8.x-1.0", catalog.releases,
                              supported_branches=catalog.supported_branches)
    if result.status is UpdateStatus.SECURITY_UPDATE_REQUIRED:
        ...
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from typing import (
    Dict,
    FrozenSet,
    Iterable,
    List,
    Optional,
    Sequence,
    Tuple,
    Union,
)

from releasekeeper.core.compatibility import core_compatibility_for
from releasekeeper.exceptions import ReleaseKeeperError, ResolutionError
from releasekeeper.models.compatibility import CoreCompatibility
from releasekeeper.models.release import Release, ReleaseCatalog
from releasekeeper.models.result import ResolutionResult, UpdateStatus
from releasekeeper.models.version import (
    Branch,
    Version,
    is_supported,
    parse_version,
)
from releasekeeper.utils.logger import get_logger

logger = get_logger("resolver")

__all__ = ["ReleaseResolver", "ProjectResolution", "resolve"]

VersionLike = Union[str, Version]
ReleaseSource = Union[ReleaseCatalog, Sequence[Release]]


@dataclass(frozen=True)
class ProjectResolution:
    """Outcome of resolving one project in a batch.

    Exactly one of ``result`` and ``error`` is set.
    """

    name: str
    result: Optional[ResolutionResult] = None
    error: Optional[ReleaseKeeperError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


class ReleaseResolver:
    """Stateless release resolver.

    Example::

        >>> resolver = ReleaseResolver()
        >>> result = resolver.resolve("1.0", [
        ...     Release("demo", "1.1"),
        ...     Release("demo", "1.2-beta1"),
        ... ])
        >>> str(result.recommended.version), str(result.latest.version)
        ('1.1', '1.2-beta1')
    """

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def resolve(
        self,
        installed: VersionLike,
        releases: Iterable[Release],
        *,
        supported_branches: Optional[FrozenSet[Branch]] = None,
        core_versions: Optional[Iterable[VersionLike]] = None,
        project: Optional[str] = None,
    ) -> ResolutionResult:
        """Resolve the update status of one installed project.

        Args:
            installed: Installed version (string or parsed).
            releases: The project's releases in catalog order.
            supported_branches: Branches the project declares supported;
                ``None`` means the release flags alone decide support.
            core_versions: Host-core versions used to compute core
                compatibility ranges for the surfaced releases.
            project: Project name, used in errors and logs.

        Returns:
            A new :class:`ResolutionResult`.

        Raises:
            ParseError: ``installed`` or a core version is malformed, or a
                release declares a malformed core constraint.
            ResolutionError: The releases are inconsistent (mixed projects
                or unparsed versions).
        """
        installed_version = parse_version(installed, project=project)
        release_list = tuple(releases)

        if not release_list:
            logger.debug("%s: no releases in catalog", project or "<project>")
            return ResolutionResult(
                status=UpdateStatus.NO_RELEASES_FOUND,
                installed=installed_version,
            )

        self._validate(release_list, release_list[0].project)
        project = project or release_list[0].project

        installed_release, revoked = _match_installed(installed_version, release_list)

        branches = _partition_by_major(r for r in release_list if r.published)
        if not branches and not revoked:
            logger.debug("%s: no published releases in catalog", project)
            return ResolutionResult(
                status=UpdateStatus.NO_RELEASES_FOUND,
                installed=installed_version,
            )
        current = branches.get(installed_version.major, [])

        installed_supported = _installed_supported(
            installed_version, installed_release, current, supported_branches
        )

        recommended, latest = _branch_candidates(
            current, installed_version, supported_branches
        )
        security = tuple(
            r
            for r in current
            if r.security and not r.insecure and r.version > installed_version
        )

        if security:
            top = security[0]
            if recommended is None or recommended.version < top.version:
                recommended = top

        next_recommended, next_latest = self._next_major(
            branches, installed_version, supported_branches
        )
        next_best = next_recommended or next_latest

        also_available: Optional[Release] = None
        if not current or (
            recommended is None and (revoked or not installed_supported)
        ):
            # Nothing usable left in the installed major: move to the next one.
            if next_recommended is not None or next_latest is not None:
                recommended = next_recommended
                latest = next_latest
        elif next_best is not None:
            also_available = next_best

        if latest is not None and recommended is not None:
            if latest.version <= recommended.version:
                latest = None

        insecure_installed = installed_release is not None and installed_release.insecure

        if security or insecure_installed:
            status = UpdateStatus.SECURITY_UPDATE_REQUIRED
        elif revoked:
            status = UpdateStatus.REVOKED
        elif not installed_supported:
            status = UpdateStatus.UNSUPPORTED
        elif recommended is not None:
            status = UpdateStatus.UPDATE_AVAILABLE
        else:
            status = UpdateStatus.UP_TO_DATE

        compatibility = self._compatibility(
            (recommended, latest, also_available, *security), core_versions, project
        )

        logger.debug(
            "%s %s: status=%s recommended=%s latest=%s security=%s also=%s revoked=%s",
            project,
            installed_version,
            status.value,
            recommended.version if recommended else None,
            latest.version if latest else None,
            [str(r.version) for r in security],
            also_available.version if also_available else None,
            revoked,
        )

        return ResolutionResult(
            status=status,
            installed=installed_version,
            recommended=recommended,
            latest=latest,
            security_releases=security,
            also_available=also_available,
            revoked=revoked,
            core_compatibility=(
                compatibility.get(recommended.version) if recommended else None
            ),
            compatibility=compatibility,
        )

    def resolve_many(
        self,
        entries: Iterable[Tuple[str, VersionLike, ReleaseSource]],
        *,
        core_versions: Optional[Iterable[VersionLike]] = None,
    ) -> List[ProjectResolution]:
        """Resolve a batch of ``(project, installed, releases)`` entries.

        ``releases`` may be a :class:`ReleaseCatalog`, whose supported
        branches are then honoured, or a plain sequence of releases. A
        failure for one project is recorded on its entry and does not affect
        the others. Output order matches input order.
        """
        core = tuple(parse_version(v) for v in core_versions) if core_versions else None
        resolutions: List[ProjectResolution] = []

        for name, installed, source in entries:
            if isinstance(source, ReleaseCatalog):
                releases: Sequence[Release] = source.releases
                branches = source.supported_branches
            else:
                releases = tuple(source)
                branches = None

            try:
                result = self.resolve(
                    installed,
                    releases,
                    supported_branches=branches,
                    core_versions=core,
                    project=name,
                )
            except ReleaseKeeperError as exc:
                logger.warning("Cannot resolve %s: %s", name, exc)
                resolutions.append(ProjectResolution(name=name, error=exc))
                continue

            resolutions.append(ProjectResolution(name=name, result=result))

        return resolutions

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(releases: Sequence[Release], project: str) -> None:
        for release in releases:
            if not isinstance(release.version, Version):
                raise ResolutionError(
                    "Release has no parsed version; cannot determine its branch",
                    project=project,
                    release=repr(release.version),
                )
            if release.project != project:
                raise ResolutionError(
                    f"Release belongs to {release.project!r}, not {project!r}",
                    project=project,
                    release=str(release.version),
                )

    @staticmethod
    def _next_major(
        branches: Dict[int, List[Release]],
        installed: Version,
        supported_branches: Optional[FrozenSet[Branch]],
    ) -> Tuple[Optional[Release], Optional[Release]]:
        """Candidates from the nearest higher major with supported releases."""
        for major in sorted(m for m in branches if m > installed.major):
            recommended, latest = _branch_candidates(
                branches[major], installed, supported_branches
            )
            if recommended is not None or latest is not None:
                return recommended, latest
        return None, None

    @staticmethod
    def _compatibility(
        releases: Iterable[Optional[Release]],
        core_versions: Optional[Iterable[VersionLike]],
        project: str,
    ) -> Dict[Version, CoreCompatibility]:
        if core_versions is None:
            return {}

        core = [parse_version(v, project=project) for v in core_versions]
        compatibility: Dict[Version, CoreCompatibility] = {}
        for release in releases:
            if release is None or release.version in compatibility:
                continue
            compat = core_compatibility_for(release.core_compatibility, core)
            if compat is not None:
                compatibility[release.version] = compat
        return compatibility


# ---------------------------------------------------------------------------
# Module-level helpers
# ---------------------------------------------------------------------------


def _match_installed(
    installed: Version,
    releases: Sequence[Release],
) -> Tuple[Optional[Release], bool]:
    """Find the catalog entry for the installed version.

    Among equal-ranked entries a published one wins, then catalog order.
    The installed version counts as revoked only when every matching entry
    is unpublished.
    """
    matches = [r for r in releases if r.version == installed]
    if not matches:
        return None, False

    for release in matches:
        if release.published:
            return release, False

    return matches[0], True


def _partition_by_major(releases: Iterable[Release]) -> Dict[int, List[Release]]:
    """Group releases by major version, each group sorted newest first.

    ``sorted(reverse=True)`` is stable, so equal-ranked releases keep their
    catalog order.
    """
    branches: Dict[int, List[Release]] = defaultdict(list)
    for release in releases:
        branches[release.version.major].append(release)
    return {
        major: sorted(group, key=lambda r: r.version, reverse=True)
        for major, group in branches.items()
    }


def _branch_candidates(
    branch: Sequence[Release],
    installed: Version,
    supported_branches: Optional[FrozenSet[Branch]] = None,
) -> Tuple[Optional[Release], Optional[Release]]:
    """Return ``(recommended, latest)`` for one newest-first branch.

    Only supported releases newer than ``installed`` qualify; a release
    outside the declared supported branches is unsupported whatever its own
    flag says. ``latest`` is set only when a pre-release outranks the
    recommended stable release.
    """
    candidates = [
        r
        for r in branch
        if r.supported
        and is_supported(r.version, supported_branches)
        and r.version > installed
    ]
    if not candidates:
        return None, None

    recommended = next((r for r in candidates if r.is_stable), None)
    top = candidates[0]

    latest: Optional[Release] = None
    if not top.is_stable and (recommended is None or top.version > recommended.version):
        latest = top

    return recommended, latest


def _installed_supported(
    installed: Version,
    installed_release: Optional[Release],
    current: Sequence[Release],
    supported_branches: Optional[FrozenSet[Branch]],
) -> bool:
    """Decide whether the installed version is still supported upstream."""
    if not is_supported(installed, supported_branches):
        return False

    if installed_release is not None:
        return installed_release.supported

    if supported_branches is None and current:
        return any(r.supported for r in current)

    return True


_default_resolver = ReleaseResolver()


def resolve(
    installed: VersionLike,
    releases: Iterable[Release],
    *,
    supported_branches: Optional[FrozenSet[Branch]] = None,
    core_versions: Optional[Iterable[VersionLike]] = None,
    project: Optional[str] = None,
) -> ResolutionResult:
    """Resolve with a shared :class:`ReleaseResolver`.

    See :meth:`ReleaseResolver.resolve`.
    """
    return _default_resolver.resolve(
        installed,
        releases,
        supported_branches=supported_branches,
        core_versions=core_versions,
        project=project,
    )
