"""Batch update checking for releasekeeper.

:class:`UpdateChecker` ties the pieces together: it groups the installed
extensions into projects, fetches every project's release history through a
shared :class:`~releasekeeper.core.fetcher.ReleaseFetcher`, and resolves each
project independently with :class:`~releasekeeper.core.resolver.ReleaseResolver`.

Typical usage::

    async with HTTPClient() as http:
        checker = UpdateChecker(ReleaseFetcher(http))
        reports = await checker.check(load_site_state("site.toml"))

        for report in reports:
            print(report.name, report.status.label)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from releasekeeper.constants import PROJECT_TYPE_ORDER
from releasekeeper.core.fetcher import FetchResult, FetchStatus, ReleaseFetcher
from releasekeeper.core.projects import SiteState, group_projects
from releasekeeper.core.resolver import ReleaseResolver
from releasekeeper.exceptions import ParseError, ReleaseKeeperError
from releasekeeper.models.extension import InstalledProject
from releasekeeper.models.release import ReleaseCatalog
from releasekeeper.models.result import ResolutionResult, UpdateStatus
from releasekeeper.models.version import Version, parse_version
from releasekeeper.utils.logger import get_logger

logger = get_logger("checker")

__all__ = ["ProjectReport", "UpdateChecker", "core_versions_in_play"]


@dataclass
class ProjectReport:
    """Update report for one installed project.

    ``status`` is ``None`` when the project could not be checked at all,
    either because its release history could not be fetched or because its
    data could not be resolved; ``error`` then says why.
    """

    name: str
    title: str
    project_type: str
    installed: Optional[str] = None
    includes: List[str] = field(default_factory=list)
    fetch_status: Optional[FetchStatus] = None
    result: Optional[ResolutionResult] = None
    error: Optional[ReleaseKeeperError] = None
    link: Optional[str] = None

    @property
    def status(self) -> Optional[UpdateStatus]:
        if self.result is not None:
            return self.result.status
        if self.fetch_status is None and self.error is None:
            return UpdateStatus.NOT_CHECKED
        return None

    @property
    def fetch_failed(self) -> bool:
        return self.fetch_status is FetchStatus.FAILED

    @property
    def needs_action(self) -> bool:
        """``True`` when the project needs attention, including failures."""
        if self.error is not None:
            return True
        status = self.status
        return status is not None and status.needs_action

    @property
    def sort_key(self) -> Tuple[int, str]:
        return (
            PROJECT_TYPE_ORDER.get(self.project_type, len(PROJECT_TYPE_ORDER)),
            self.name,
        )

    def to_json(self) -> Dict[str, Any]:
        status = self.status
        entry: Dict[str, Any] = {
            "name": self.name,
            "title": self.title,
            "type": self.project_type,
            "installed": self.installed,
            "includes": list(self.includes),
            "status": status.value if status is not None else "unknown",
        }
        if self.fetch_status is not None:
            entry["fetch_status"] = self.fetch_status.value
        if self.link:
            entry["link"] = self.link
        if self.result is not None:
            entry["result"] = self.result.to_json()
        if self.error is not None:
            entry["error"] = str(self.error)
        return entry


class UpdateChecker:
    """Check every installed project against its release history.

    Args:
        fetcher: Shared release-history fetcher.
        resolver: Resolver to use; a new :class:`ReleaseResolver` by default.
        check_disabled: Whether disabled projects are checked too.
    """

    def __init__(
        self,
        fetcher: ReleaseFetcher,
        resolver: Optional[ReleaseResolver] = None,
        *,
        check_disabled: bool = False,
    ) -> None:
        self.fetcher = fetcher
        self.resolver = resolver or ReleaseResolver()
        self.check_disabled = check_disabled

    async def check(self, state: SiteState) -> List[ProjectReport]:
        """Check every project of the installed ``state``."""
        projects = group_projects(state, check_disabled=self.check_disabled)
        return await self.check_projects(projects)

    async def check_projects(
        self, projects: List[InstalledProject]
    ) -> List[ProjectReport]:
        """Fetch and resolve ``projects``.

        Projects with ``checked=False`` are reported as ``NOT_CHECKED``
        without being fetched. A failure for one project is recorded on its
        report and never affects the others.
        """
        checked = [p for p in projects if p.checked]
        fetched = await self.fetcher.fetch_many(p.name for p in checked)

        core_versions = self._core_versions(projects, fetched)

        reports = {p.name: self._report(p, fetched.get(p.name)) for p in projects}
        resolvable: List[Tuple[str, Optional[str], ReleaseCatalog]] = []

        for project in checked:
            fetch = fetched[project.name]
            report = reports[project.name]
            if not fetch.ok or fetch.catalog is None:
                report.error = fetch.error
                continue
            report.title = fetch.catalog.title or project.title
            report.link = fetch.catalog.link
            resolvable.append((project.name, project.version, fetch.catalog))

        for resolution in self.resolver.resolve_many(
            resolvable, core_versions=core_versions
        ):
            report = reports[resolution.name]
            report.result = resolution.result
            report.error = resolution.error

        ordered = sorted(reports.values(), key=lambda r: r.sort_key)

        failed = sum(1 for r in ordered if r.fetch_failed)
        logger.info(
            "Checked available update data for %d project(s); %d failed",
            len(checked) - failed,
            failed,
        )
        return ordered

    @staticmethod
    def _report(
        project: InstalledProject, fetch: Optional[FetchResult] = None
    ) -> ProjectReport:
        return ProjectReport(
            name=project.name,
            title=project.title,
            project_type=project.project_type,
            installed=project.version,
            includes=list(project.includes),
            fetch_status=fetch.status if fetch is not None else None,
        )

    @staticmethod
    def _core_versions(
        projects: List[InstalledProject],
        fetched: Dict[str, FetchResult],
    ) -> Optional[List[Version]]:
        core = next((p for p in projects if p.project_type == "core"), None)
        if core is None or core.version is None:
            return None

        result = fetched.get(core.name)
        if result is None or result.catalog is None:
            return None

        try:
            return core_versions_in_play(core.version, result.catalog)
        except ParseError as exc:
            logger.warning("Cannot determine core versions: %s", exc)
            return None


def core_versions_in_play(installed: str, catalog: ReleaseCatalog) -> List[Version]:
    """Stable published core versions at or above the installed one.

    The installed version is always included, even when the catalog does
    not list it.
    """
    installed_version = parse_version(installed, project=catalog.project)
    versions = {
        r.version
        for r in catalog.releases
        if r.published and r.is_stable and r.version >= installed_version
    }
    versions.add(installed_version)
    return sorted(versions)
