from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Dict, Iterable, Optional

import pytest


def build_release_history(
    project: str,
    releases: Iterable[Dict[str, Any]],
    *,
    title: Optional[str] = None,
    supported_branches: Optional[str] = None,
    link: Optional[str] = None,
) -> str:
    """Render a release-history XML document.

    Each release dict accepts ``version`` plus optional ``status``,
    ``types`` (list of "Release type" terms), ``core_compatibility`` and
    ``date``.
    """
    lines = [
        '<?xml version="1.0" encoding="utf-8"?>',
        "<project>",
        f"  <title>{title or project}</title>",
        f"  <short_name>{project}</short_name>",
    ]
    if link:
        lines.append(f"  <link>{link}</link>")
    if supported_branches is not None:
        lines.append(f"  <supported_branches>{supported_branches}</supported_branches>")
    lines.append("  <releases>")
    for release in releases:
        version = release["version"]
        lines.append("    <release>")
        lines.append(f"      <name>{project} {version}</name>")
        lines.append(f"      <version>{version}</version>")
        lines.append(f"      <status>{release.get('status', 'published')}</status>")
        lines.append(
            f"      <release_link>http://example.com/{project}-{version}-release</release_link>"
        )
        lines.append(
            f"      <download_link>http://example.com/{project}-{version}.tar.gz</download_link>"
        )
        if "date" in release:
            lines.append(f"      <date>{release['date']}</date>")
        if "core_compatibility" in release:
            lines.append(
                f"      <core_compatibility>{release['core_compatibility']}</core_compatibility>"
            )
        types = release.get("types", [])
        if types:
            lines.append("      <terms>")
            for value in types:
                lines.append(
                    "        <term><name>Release type</name>"
                    f"<value>{value}</value></term>"
                )
            lines.append("      </terms>")
        lines.append("    </release>")
    lines.append("  </releases>")
    lines.append("</project>")
    return "\n".join(lines)


@pytest.fixture
def release_history() -> Callable[..., str]:
    """Factory fixture rendering release-history XML documents."""
    return build_release_history


@pytest.fixture
def catalog_dir(tmp_path: Path) -> Path:
    """Empty directory for offline ``{project}.xml`` release histories."""
    directory = tmp_path / "catalog"
    directory.mkdir()
    return directory
