from __future__ import annotations

from pathlib import Path
from typing import Any, Dict

import pytest

from releasekeeper.core.projects import (
    SiteState,
    group_projects,
    load_site_state,
    parse_site_state,
)
from releasekeeper.exceptions import FileOperationError, StateError
from releasekeeper.models.extension import InstalledExtension

STATE_TOML = """
[core]
name = "drupal"
title = "Drupal core"
version = "8.0.0"

[[extensions]]
name = "views_ui"
title = "Views UI"
project = "views"
version = "8.x-3.1"

[[extensions]]
name = "views"
title = "Views"
version = "8.x-3.1"

[[extensions]]
name = "bartik"
title = "Bartik"
type = "theme"
version = "8.0.0"
project = "drupal"

[[extensions]]
name = "old_module"
version = "1.0"
enabled = false
"""


def _state(**extensions: Dict[str, Any]) -> SiteState:
    return SiteState(
        extensions=[InstalledExtension(name=name, **fields) for name, fields in extensions.items()]
    )


@pytest.mark.unit
class TestLoadSiteState:
    """Tests for reading installed-state documents."""

    def test_load_file(self, tmp_path: Path) -> None:
        """Test a TOML document loads into a SiteState."""
        path = tmp_path / "site.toml"
        path.write_text(STATE_TOML, encoding="utf-8")

        state = load_site_state(path)

        assert state.path == path
        assert state.core is not None
        assert state.core.type == "core"
        assert state.core.version == "8.0.0"
        assert [e.name for e in state.extensions] == [
            "views_ui",
            "views",
            "bartik",
            "old_module",
        ]
        assert state.extensions[3].enabled is False

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises FileOperationError."""
        with pytest.raises(FileOperationError):
            load_site_state(tmp_path / "missing.toml")

    def test_invalid_toml(self, tmp_path: Path) -> None:
        """Test TOML syntax errors raise StateError."""
        path = tmp_path / "site.toml"
        path.write_text("[core\n", encoding="utf-8")

        with pytest.raises(StateError, match="Invalid TOML"):
            load_site_state(path)

    def test_empty_document(self) -> None:
        """Test an empty document has no core and no extensions."""
        state = parse_site_state({})

        assert state.core is None
        assert state.extensions == []

    @pytest.mark.parametrize(
        "data, message",
        [
            ({"modules": []}, "Unknown section"),
            ({"extensions": {"name": "x"}}, "array of tables"),
            ({"extensions": [{"title": "No name"}]}, "without a name"),
            ({"extensions": [{"name": "x", "colour": "red"}]}, "Unknown key"),
            ({"extensions": [{"name": "x", "enabled": "yes"}]}, "boolean"),
            ({"extensions": [{"name": "x", "version": 1.0}]}, "string"),
            ({"extensions": [{"name": "x", "type": "profile"}]}, "Unknown extension type"),
            ({"extensions": [{"name": "x", "type": "core"}]}, "[core] table"),
            ({"extensions": [{"name": "x"}, {"name": "x"}]}, "Duplicate"),
            ({"core": "drupal"}, "must be a table"),
        ],
    )
    def test_invalid_entries(self, data: Dict[str, Any], message: str) -> None:
        """Test malformed documents raise StateError."""
        with pytest.raises(StateError) as exc_info:
            parse_site_state(data, state_path="site.toml")

        assert message in str(exc_info.value)
        assert exc_info.value.state_path == "site.toml"


@pytest.mark.unit
class TestGroupProjects:
    """Tests for grouping extensions into projects."""

    def test_extensions_share_a_project(self) -> None:
        """Test extensions released together form one project."""
        state = _state(
            views_ui={"title": "Views UI", "project": "views", "version": "8.x-3.1"},
            views={"title": "Views", "version": "8.x-3.1"},
        )

        (project,) = group_projects(state)

        assert project.name == "views"
        assert project.title == "Views"
        assert project.version == "8.x-3.1"
        assert project.includes == ["Views", "Views UI"]
        assert project.project_type == "module"
        assert project.checked

    def test_project_title_falls_back_to_name(self) -> None:
        """Test a project without a same-named extension is titled by name."""
        state = _state(views_ui={"title": "Views UI", "project": "views"})

        assert group_projects(state)[0].title == "views"

    def test_ordering(self) -> None:
        """Test core first, then modules, themes and disabled groups by name."""
        state = _state(
            zeta={"version": "1.0"},
            alpha={"version": "1.0"},
            olivero={"type": "theme", "version": "1.0"},
            gone={"version": "1.0", "enabled": False},
        )
        state.core = InstalledExtension(name="drupal", type="core", version="8.0.0")

        projects = group_projects(state, check_disabled=True)

        assert [(p.name, p.project_type) for p in projects] == [
            ("drupal", "core"),
            ("alpha", "module"),
            ("zeta", "module"),
            ("olivero", "theme"),
            ("gone", "module-disabled"),
        ]

    def test_core_includes_its_extensions(self) -> None:
        """Test extensions shipped with core join the core project."""
        state = _state(bartik={"title": "Bartik", "type": "theme", "project": "drupal"})
        state.core = InstalledExtension(
            name="drupal", title="Drupal core", type="core", version="8.0.0"
        )

        (core,) = group_projects(state)

        assert core.project_type == "core"
        assert core.includes == ["Bartik", "Drupal core"]

    def test_disabled_not_checked_by_default(self) -> None:
        """Test disabled projects are reported but not checked."""
        state = _state(gone={"version": "1.0", "enabled": False})

        (project,) = group_projects(state)

        assert project.project_type == "module-disabled"
        assert project.checked is False

    def test_disabled_checked_when_enabled_by_policy(self) -> None:
        """Test check_disabled includes disabled projects."""
        state = _state(gone={"type": "theme", "version": "1.0", "enabled": False})

        (project,) = group_projects(state, check_disabled=True)

        assert project.project_type == "theme-disabled"
        assert project.checked is True

    def test_partially_enabled_project_is_enabled(self) -> None:
        """Test one enabled extension makes the whole project enabled."""
        state = _state(
            a={"project": "pack", "enabled": False, "version": "1.0"},
            b={"project": "pack", "version": "1.0"},
        )

        (project,) = group_projects(state)

        assert project.project_type == "module"
        assert project.checked

    def test_hidden_extensions_skipped(self) -> None:
        """Test hidden extensions are not reported."""
        state = _state(
            helper={"hidden": True, "version": "1.0"},
            visible={"version": "1.0"},
        )

        assert [p.name for p in group_projects(state)] == ["visible"]

    def test_hidden_base_theme_checked(self) -> None:
        """Test a hidden base theme of an enabled subtheme is checked."""
        state = _state(
            base={"type": "theme", "hidden": True, "enabled": False, "version": "1.0"},
            middle={"type": "theme", "hidden": True, "base_theme": "base", "version": "1.0"},
            sub={"type": "theme", "base_theme": "middle", "version": "1.0"},
        )

        projects = {p.name: p for p in group_projects(state)}

        assert set(projects) == {"base", "middle", "sub"}
        assert projects["base"].project_type == "theme"
        assert projects["base"].checked

    def test_base_theme_of_disabled_subtheme_not_required(self) -> None:
        """Test a disabled subtheme does not pull in its hidden base theme."""
        state = _state(
            base={"type": "theme", "hidden": True, "version": "1.0"},
            sub={"type": "theme", "base_theme": "base", "enabled": False, "version": "1.0"},
        )

        assert [p.name for p in group_projects(state)] == ["sub"]

    def test_first_version_wins(self) -> None:
        """Test conflicting extension versions keep the first one."""
        state = _state(
            a={"project": "pack", "version": "1.0"},
            b={"project": "pack", "version": "1.1"},
        )

        assert group_projects(state)[0].version == "1.0"

    def test_missing_version_filled_from_later_extension(self) -> None:
        """Test a later extension supplies a missing version."""
        state = _state(
            a={"project": "pack"},
            b={"project": "pack", "version": "1.1"},
        )

        assert group_projects(state)[0].version == "1.1"
