"""Installed-state loading and project grouping for releasekeeper.

The installed state of a site is described in a TOML document::

    [core]
    name = "drupal"
    version = "8.0.0"

    [[extensions]]
    name = "views_ui"
    title = "Views UI"
    type = "module"
    project = "views"
    version = "8.x-3.1"
    enabled = true

Extensions are then grouped into the projects they are released in, since
projects, not extensions, are what the update server publishes releases for.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Set, Union

import tomli as tomllib

from releasekeeper.constants import PROJECT_TYPE_ORDER
from releasekeeper.exceptions import StateError
from releasekeeper.models.extension import InstalledExtension, InstalledProject
from releasekeeper.utils.filesystem import safe_read_bytes
from releasekeeper.utils.logger import get_logger

logger = get_logger("projects")

__all__ = ["SiteState", "load_site_state", "parse_site_state", "group_projects"]

_EXTENSION_KEYS = frozenset(
    {"name", "title", "type", "project", "version", "enabled", "hidden", "base_theme"}
)
_CORE_KEYS = frozenset({"name", "title", "version"})


@dataclass
class SiteState:
    """Everything installed on one site.

    Attributes:
        core: The core package, if declared.
        extensions: Installed modules and themes.
        path: Document the state was loaded from.
    """

    core: Optional[InstalledExtension] = None
    extensions: List[InstalledExtension] = field(default_factory=list)
    path: Optional[Path] = None


def load_site_state(path: Union[str, Path]) -> SiteState:
    """Load an installed-state TOML document from ``path``.

    Raises:
        FileOperationError: The file cannot be read.
        StateError: The document is not valid TOML or has invalid entries.
    """
    state_path = Path(path)
    raw = safe_read_bytes(state_path)

    try:
        data = tomllib.loads(raw.decode("utf-8"))
    except (tomllib.TOMLDecodeError, UnicodeDecodeError) as exc:
        raise StateError(
            f"Invalid TOML in {state_path}: {exc}", state_path=str(state_path)
        ) from exc

    state = parse_site_state(data, state_path=str(state_path))
    state.path = state_path
    logger.debug(
        "Loaded %d extension(s) from %s", len(state.extensions), state_path
    )
    return state


def parse_site_state(
    data: Mapping[str, Any],
    *,
    state_path: Optional[str] = None,
) -> SiteState:
    """Build a :class:`SiteState` from an already decoded document."""
    unknown = set(data) - {"core", "extensions"}
    if unknown:
        raise StateError(
            f"Unknown section(s): {', '.join(sorted(unknown))}",
            state_path=state_path,
        )

    core: Optional[InstalledExtension] = None
    core_data = data.get("core")
    if core_data is not None:
        if not isinstance(core_data, dict):
            raise StateError("[core] must be a table", state_path=state_path)
        core = _build_extension(
            {**core_data, "type": "core"}, _CORE_KEYS | {"type"}, state_path
        )

    entries = data.get("extensions", [])
    if not isinstance(entries, list):
        raise StateError("extensions must be an array of tables", state_path=state_path)

    extensions: List[InstalledExtension] = []
    seen: Set[str] = set()
    for entry in entries:
        if not isinstance(entry, dict):
            raise StateError("extensions must be an array of tables", state_path=state_path)
        extension = _build_extension(entry, _EXTENSION_KEYS, state_path)
        if extension.type == "core":
            raise StateError(
                "Core must be declared in the [core] table",
                state_path=state_path,
                entry=extension.name,
            )
        if extension.name in seen:
            raise StateError(
                "Duplicate extension", state_path=state_path, entry=extension.name
            )
        seen.add(extension.name)
        extensions.append(extension)

    return SiteState(core=core, extensions=extensions)


def _build_extension(
    entry: Mapping[str, Any],
    allowed: frozenset,
    state_path: Optional[str],
) -> InstalledExtension:
    name = entry.get("name")
    if not isinstance(name, str) or not name:
        raise StateError("Entry without a name", state_path=state_path)

    unknown = set(entry) - allowed
    if unknown:
        raise StateError(
            f"Unknown key(s): {', '.join(sorted(unknown))}",
            state_path=state_path,
            entry=name,
        )

    for key in ("enabled", "hidden"):
        if key in entry and not isinstance(entry[key], bool):
            raise StateError(
                f"{key} must be a boolean", state_path=state_path, entry=name
            )
    for key in ("title", "type", "project", "version", "base_theme"):
        if key in entry and not isinstance(entry[key], str):
            raise StateError(
                f"{key} must be a string", state_path=state_path, entry=name
            )

    try:
        return InstalledExtension(**entry)
    except ValueError as exc:
        raise StateError(str(exc), state_path=state_path, entry=name) from exc


def group_projects(
    state: SiteState,
    *,
    check_disabled: bool = False,
) -> List[InstalledProject]:
    """Group installed extensions into projects.

    Hidden extensions are skipped unless they are the base theme of a
    theme that is itself checked; base themes of enabled subthemes count as
    enabled. Disabled projects are returned with ``checked=False`` unless
    ``check_disabled`` is set.

    Returns:
        Projects ordered core first, then by group, then by name.
    """
    by_name = {ext.name: ext for ext in state.extensions}
    required_bases = _required_base_themes(state.extensions, by_name)

    projects: Dict[str, InstalledProject] = {}
    enabled_projects: Set[str] = set()

    if state.core is not None:
        core = state.core
        projects[core.project] = InstalledProject(
            name=core.project,
            title=core.title,
            project_type="core",
            version=core.version,
            includes=[core.title],
        )
        enabled_projects.add(core.project)

    for ext in state.extensions:
        required = ext.name in required_bases
        if ext.hidden and not required:
            logger.debug("Skipping hidden extension %s", ext.name)
            continue

        enabled = ext.enabled or required
        project = projects.get(ext.project)
        if project is None:
            project = InstalledProject(
                name=ext.project,
                title=ext.title if ext.name == ext.project else ext.project,
                project_type=ext.type,
                version=ext.version,
            )
            projects[ext.project] = project
        elif ext.version and project.version and ext.version != project.version:
            logger.warning(
                "Extension %s reports version %s, but project %s is at %s",
                ext.name,
                ext.version,
                project.name,
                project.version,
            )
        elif project.version is None:
            project.version = ext.version

        if ext.name == ext.project:
            project.title = ext.title
        project.includes.append(ext.title)
        if enabled:
            enabled_projects.add(ext.project)

    for name, project in projects.items():
        project.includes.sort()
        if project.project_type == "core" or name in enabled_projects:
            continue
        project.project_type = f"{project.project_type}-disabled"
        project.checked = check_disabled

    return sorted(
        projects.values(),
        key=lambda p: (PROJECT_TYPE_ORDER.get(p.project_type, len(PROJECT_TYPE_ORDER)), p.name),
    )


def _required_base_themes(
    extensions: List[InstalledExtension],
    by_name: Mapping[str, InstalledExtension],
) -> Set[str]:
    """Names of base themes needed by enabled, visible subthemes."""
    required: Set[str] = set()
    for ext in extensions:
        if ext.type != "theme" or ext.hidden or not ext.enabled:
            continue
        base = ext.base_theme
        while base and base not in required:
            required.add(base)
            parent = by_name.get(base)
            base = parent.base_theme if parent is not None else None
    return required
