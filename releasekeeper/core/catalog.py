"""Release-history parsing for releasekeeper.

Update servers publish one XML document per project::

    <project>
      <title>AAA Update test</title>
      <short_name>aaa_update_test</short_name>
      <link>http://example.com/project/aaa_update_test</link>
      <supported_branches>8.x-1.,8.x-2.</supported_branches>
      <releases>
        <release>
          <name>aaa_update_test 8.x-1.1</name>
          <version>8.x-1.1</version>
          <status>published</status>
          <core_compatibility>^8 || ^9</core_compatibility>
          <terms>
            <term><name>Release type</name><value>Security update</value></term>
          </terms>
        </release>
      </releases>
    </project>

A server that knows nothing about the project answers with an ``<error>``
document instead, which parses to an empty catalog.
"""

from __future__ import annotations

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import List, Optional, Tuple, Union

from releasekeeper.constants import (
    RELEASE_STATUS_PUBLISHED,
    RELEASE_TYPE_INSECURE,
    RELEASE_TYPE_SECURITY,
    RELEASE_TYPE_TERM,
    RELEASE_TYPE_UNSUPPORTED,
)
from releasekeeper.exceptions import CatalogError, ParseError
from releasekeeper.models.release import Release, ReleaseCatalog
from releasekeeper.models.version import (
    is_supported,
    parse_supported_branches,
    parse_version,
)
from releasekeeper.utils.logger import get_logger

logger = get_logger("catalog")

__all__ = ["parse_release_history"]

_DEV_SUFFIX = "-dev"


def parse_release_history(
    document: Union[str, bytes],
    project: str,
    *,
    source: Optional[str] = None,
) -> ReleaseCatalog:
    """Parse a release-history XML document into a :class:`ReleaseCatalog`.

    Development snapshots (``8.x-1.x-dev``) are skipped. Any other release
    whose version cannot be parsed makes the whole document invalid, so that
    a security release is never silently dropped.

    Args:
        document: Raw XML.
        project: Project short name the document was requested for.
        source: URL or path the document came from, for error messages.

    Returns:
        The parsed catalog; empty when the server reported no release
        history for the project.

    Raises:
        CatalogError: The document is not a valid release history.
    """
    try:
        root = ET.fromstring(document)
    except ET.ParseError as exc:
        raise CatalogError(
            f"Invalid release history XML: {exc}", project=project, source=source
        ) from exc

    if root.tag == "error":
        logger.info("No release history for %s: %s", project, (root.text or "").strip())
        return ReleaseCatalog(project=project)

    if root.tag != "project":
        raise CatalogError(
            f"Unexpected root element <{root.tag}>", project=project, source=source
        )

    short_name = _text(root, "short_name")
    if short_name and short_name != project:
        logger.warning(
            "Release history for %s reports short name %s", project, short_name
        )

    try:
        branches = parse_supported_branches(_text(root, "supported_branches"))
    except ParseError as exc:
        raise CatalogError(
            f"Invalid supported branches: {exc.value}", project=project, source=source
        ) from exc

    releases: List[Release] = []
    releases_element = root.find("releases")
    if releases_element is not None:
        for element in releases_element.findall("release"):
            release = _parse_release(element, project, branches, source)
            if release is not None:
                releases.append(release)

    logger.debug("Parsed %d release(s) for %s", len(releases), project)

    return ReleaseCatalog(
        project=project,
        title=_text(root, "title"),
        link=_text(root, "link"),
        supported_branches=branches,
        releases=tuple(releases),
    )


def _parse_release(
    element: ET.Element,
    project: str,
    branches: Optional[frozenset],
    source: Optional[str],
) -> Optional[Release]:
    version_text = _text(element, "version")
    if not version_text:
        raise CatalogError("Release without a version", project=project, source=source)

    if version_text.endswith(_DEV_SUFFIX):
        logger.debug("Skipping development release %s %s", project, version_text)
        return None

    try:
        version = parse_version(version_text, project=project)
    except ParseError as exc:
        raise CatalogError(
            f"Invalid release version {version_text!r}", project=project, source=source
        ) from exc

    release_types = _release_types(element)
    status = _text(element, "status")

    return Release(
        project=project,
        version=version,
        published=status is None or status == RELEASE_STATUS_PUBLISHED,
        security=RELEASE_TYPE_SECURITY in release_types,
        insecure=RELEASE_TYPE_INSECURE in release_types,
        supported=(
            RELEASE_TYPE_UNSUPPORTED not in release_types
            and is_supported(version, branches)
        ),
        core_compatibility=_text(element, "core_compatibility"),
        release_types=release_types,
        release_link=_text(element, "release_link"),
        download_link=_text(element, "download_link"),
        date=_timestamp(_text(element, "date")),
    )


def _release_types(element: ET.Element) -> Tuple[str, ...]:
    types: List[str] = []
    terms = element.find("terms")
    if terms is None:
        return ()
    for term in terms.findall("term"):
        if _text(term, "name") == RELEASE_TYPE_TERM:
            value = _text(term, "value")
            if value:
                types.append(value)
    return tuple(types)


def _text(element: ET.Element, tag: str) -> Optional[str]:
    child = element.find(tag)
    if child is None or child.text is None:
        return None
    text = child.text.strip()
    return text or None


def _timestamp(text: Optional[str]) -> Optional[datetime]:
    if not text:
        return None
    try:
        return datetime.fromtimestamp(int(text), tz=timezone.utc)
    except (ValueError, OverflowError, OSError):
        logger.debug("Ignoring unparseable release date %r", text)
        return None
