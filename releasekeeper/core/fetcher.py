"""Release-history fetching for releasekeeper.

:class:`ReleaseFetcher` provides an async-safe, per-process cache of parsed
release catalogs so each project triggers at most one download per run.
Catalogs come either from the update server over HTTP or, in offline mode,
from ``{catalog_dir}/{project}.xml`` files.

Typical usage::

    from releasekeeper.utils.http import HTTPClient
    from releasekeeper.core.fetcher import ReleaseFetcher

    async with HTTPClient() as client:
        fetcher = ReleaseFetcher(client)
        results = await fetcher.fetch_many(["drupal", "views"])
        print(results["views"].catalog.supported_branches)
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Dict, Iterable, Optional, Union

from releasekeeper.constants import (
    CATALOG_FILE_TEMPLATE,
    DEFAULT_CONCURRENCY,
    DEFAULT_FETCH_URL,
    RELEASE_HISTORY_PATH,
)
from releasekeeper.core.catalog import parse_release_history
from releasekeeper.exceptions import ReleaseKeeperError
from releasekeeper.models.release import ReleaseCatalog
from releasekeeper.utils.filesystem import safe_read_bytes
from releasekeeper.utils.http import HTTPClient
from releasekeeper.utils.logger import get_logger

logger = get_logger("fetcher")

__all__ = ["FetchStatus", "FetchResult", "ReleaseFetcher"]


class FetchStatus(Enum):
    OK = "ok"
    FAILED = "failed"


@dataclass(frozen=True)
class FetchResult:
    """Outcome of fetching one project's release history.

    Attributes:
        project: Project short name.
        status: ``OK`` when ``catalog`` is set, ``FAILED`` otherwise.
        catalog: The parsed catalog (possibly empty).
        error: Why the fetch failed.
        source: URL or path the catalog was read from.
    """

    project: str
    status: FetchStatus
    catalog: Optional[ReleaseCatalog] = None
    error: Optional[ReleaseKeeperError] = None
    source: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status is FetchStatus.OK


class ReleaseFetcher:
    """Fetch and cache release catalogs.

    Exactly one of ``http_client`` and ``catalog_dir`` must be given. A
    semaphore bounds the number of in-flight fetches; a per-project lock
    with a second cache check inside it keeps concurrent requests for the
    same project from downloading it twice.

    Args:
        http_client: Client used to download release histories.
        fetch_url: Base URL of the release-history service.
        catalog_dir: Directory of ``{project}.xml`` files for offline use.
        concurrent_limit: Maximum number of fetches in flight at once.
    """

    def __init__(
        self,
        http_client: Optional[HTTPClient] = None,
        *,
        fetch_url: str = DEFAULT_FETCH_URL,
        catalog_dir: Optional[Union[str, Path]] = None,
        concurrent_limit: int = DEFAULT_CONCURRENCY,
    ) -> None:
        if (http_client is None) == (catalog_dir is None):
            raise ValueError("Provide exactly one of http_client or catalog_dir")

        self.http_client = http_client
        self.fetch_url = fetch_url.rstrip("/")
        self.catalog_dir = Path(catalog_dir) if catalog_dir is not None else None
        self._semaphore = asyncio.Semaphore(concurrent_limit)
        self._results: Dict[str, FetchResult] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    @property
    def offline(self) -> bool:
        return self.catalog_dir is not None

    def source_for(self, project: str) -> str:
        """Return the URL or file path the project's catalog is read from."""
        if self.catalog_dir is not None:
            return str(self.catalog_dir / CATALOG_FILE_TEMPLATE.format(project=project))
        return RELEASE_HISTORY_PATH.format(base=self.fetch_url, project=project)

    async def fetch(self, project: str) -> FetchResult:
        """Fetch (or return the cached) release history of ``project``.

        Failures are returned as ``FAILED`` results and cached like
        successes, so a broken project is not retried within one run.
        """
        if project in self._results:
            return self._results[project]

        lock = self._locks.setdefault(project, asyncio.Lock())
        async with lock:
            # Second check: another coroutine may have fetched while we waited
            if project in self._results:
                return self._results[project]

            async with self._semaphore:
                result = await self._fetch_uncached(project)
            self._results[project] = result
            return result

    async def fetch_many(self, projects: Iterable[str]) -> Dict[str, FetchResult]:
        """Fetch several projects concurrently, keyed by project name."""
        names = list(dict.fromkeys(projects))
        results = await asyncio.gather(*(self.fetch(name) for name in names))
        return dict(zip(names, results))

    async def _fetch_uncached(self, project: str) -> FetchResult:
        source = self.source_for(project)
        try:
            document = await self._read_document(project, source)
            catalog = parse_release_history(document, project, source=source)
        except ReleaseKeeperError as exc:
            logger.warning("Failed to get release history for %s: %s", project, exc)
            return FetchResult(
                project=project,
                status=FetchStatus.FAILED,
                error=exc,
                source=source,
            )

        if catalog.is_empty:
            logger.info("No releases listed for %s", project)
        else:
            logger.info("Fetched %d release(s) for %s", len(catalog), project)
        return FetchResult(
            project=project,
            status=FetchStatus.OK,
            catalog=catalog,
            source=source,
        )

    async def _read_document(self, project: str, source: str) -> Union[str, bytes]:
        if self.catalog_dir is not None:
            logger.debug("Reading release history for %s from %s", project, source)
            return safe_read_bytes(source)

        assert self.http_client is not None
        logger.debug("Downloading release history for %s from %s", project, source)
        return await self.http_client.get_text(source)
