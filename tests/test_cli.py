from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, List
from unittest.mock import patch

import pytest
from click.testing import CliRunner, Result

from releasekeeper.__version__ import __version__
from releasekeeper.cli import cli, main
from releasekeeper.commands.check import _table_row
from releasekeeper.core.checker import ProjectReport
from releasekeeper.core.resolver import resolve
from releasekeeper.models.release import Release

SITE_TOML = """
[core]
name = "drupal"
title = "Drupal core"
version = "8.0.0"

[[extensions]]
name = "views"
title = "Views"
version = "{views}"

[[extensions]]
name = "old_theme"
type = "theme"
version = "1.0"
enabled = false
"""


@pytest.fixture
def workspace(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    release_history: Callable[..., str],
) -> Path:
    """Working directory holding an offline catalog for drupal and views."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("RELEASEKEEPER_CONFIG", raising=False)

    catalog = tmp_path / "catalog"
    catalog.mkdir()
    (catalog / "drupal.xml").write_text(
        release_history("drupal", [{"version": "8.0.0"}], title="Drupal core"),
        encoding="utf-8",
    )
    (catalog / "views.xml").write_text(
        release_history(
            "views",
            [
                {"version": "8.x-1.1", "types": ["Security update"]},
                {"version": "8.x-1.0"},
            ],
            title="Views",
        ),
        encoding="utf-8",
    )
    return tmp_path


def _write_site(workspace: Path, views: str) -> Path:
    path = workspace / "site.toml"
    path.write_text(SITE_TOML.format(views=views), encoding="utf-8")
    return path


def _invoke(args: List[str]) -> Result:
    return CliRunner().invoke(cli, ["--no-color", *args])


@pytest.mark.unit
class TestCheckCommand:
    """End-to-end tests for ``releasekeeper check``."""

    def test_up_to_date(self, workspace: Path) -> None:
        """Test exit code 0 when every project is current."""
        _write_site(workspace, "8.x-1.1")

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog"])

        assert result.exit_code == 0, result.output
        assert "All projects are up to date!" in result.output
        assert "Available Updates" in result.output

    def test_security_update(self, workspace: Path) -> None:
        """Test exit code 1 and a security summary when an update is required."""
        _write_site(workspace, "8.x-1.0")

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog"])

        assert result.exit_code == 1
        assert "1 project(s) require a security update" in result.output

    def test_json_output(self, workspace: Path) -> None:
        """Test JSON output lists every project with its status."""
        _write_site(workspace, "8.x-1.0")

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog", "-f", "json"])

        data = json.loads(result.stdout)
        statuses = {entry["name"]: entry["status"] for entry in data}
        assert statuses == {
            "drupal": "up-to-date",
            "views": "security-update-required",
            "old_theme": "not-checked",
        }
        views = next(entry for entry in data if entry["name"] == "views")
        assert views["result"]["recommended"] == "8.x-1.1"
        assert views["result"]["security_releases"] == ["8.x-1.1"]

    def test_outdated_only(self, workspace: Path) -> None:
        """Test --outdated-only keeps projects that need attention."""
        _write_site(workspace, "8.x-1.0")

        result = _invoke(
            ["check", "site.toml", "--catalog-dir", "catalog", "-f", "json", "--outdated-only"]
        )

        assert [entry["name"] for entry in json.loads(result.stdout)] == ["views"]

    def test_simple_output(self, workspace: Path) -> None:
        """Test the simple format groups projects under headings."""
        _write_site(workspace, "8.x-1.0")

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog", "-f", "simple"])

        assert "Modules" in result.output
        assert "Uninstalled themes" in result.output
        assert "[Security update required!] views" in result.output
        assert "Security update: 8.x-1.1" in result.output

    def test_missing_catalog_document(self, workspace: Path) -> None:
        """Test a project without a catalog file is reported as failed."""
        _write_site(workspace, "8.x-1.1")
        (workspace / "catalog" / "views.xml").unlink()

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog", "-f", "simple"])

        assert result.exit_code == 1
        assert "Failed to get available update data for 1 project(s)" in result.output

    def test_check_disabled_from_config(self, workspace: Path, release_history: Callable[..., str]) -> None:
        """Test the config file enables checking disabled projects."""
        _write_site(workspace, "8.x-1.1")
        (workspace / "catalog" / "old_theme.xml").write_text(
            release_history("old_theme", [{"version": "1.0"}]), encoding="utf-8"
        )
        (workspace / "releasekeeper.toml").write_text(
            "[releasekeeper]\ncheck_disabled_extensions = true\n", encoding="utf-8"
        )

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog", "-f", "json"])

        statuses = {entry["name"]: entry["status"] for entry in json.loads(result.stdout)}
        assert statuses["old_theme"] == "up-to-date"

    def test_check_disabled_flag_overrides_config(self, workspace: Path) -> None:
        """Test --no-check-disabled wins over the config file."""
        _write_site(workspace, "8.x-1.1")
        (workspace / "releasekeeper.toml").write_text(
            "[releasekeeper]\ncheck_disabled_extensions = true\n", encoding="utf-8"
        )

        result = _invoke(
            ["check", "site.toml", "--catalog-dir", "catalog", "-f", "json", "--no-check-disabled"]
        )

        statuses = {entry["name"]: entry["status"] for entry in json.loads(result.stdout)}
        assert statuses["old_theme"] == "not-checked"

    def test_empty_state(self, workspace: Path) -> None:
        """Test an empty state file is not an error."""
        (workspace / "site.toml").write_text("", encoding="utf-8")

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog"])

        assert result.exit_code == 0
        assert "No projects found" in result.output

    def test_invalid_state(self, workspace: Path) -> None:
        """Test a malformed state file exits 1 with the error."""
        (workspace / "site.toml").write_text('core = "drupal"\n', encoding="utf-8")

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog"])

        assert result.exit_code == 1
        assert "[core] must be a table" in result.output


@pytest.mark.unit
class TestTableRow:
    """Tests for the table renderer's per-project row."""

    @staticmethod
    def _report(installed: str, releases: List[Release]) -> ProjectReport:
        return ProjectReport(
            name="views",
            title="Views",
            project_type="module",
            installed=installed,
            result=resolve(installed, releases),
        )

    def test_security_recommendation_listed(self) -> None:
        """Test a recommended security release is named in Other Releases."""
        report = self._report(
            "1.0", [Release("views", "1.1", security=True), Release("views", "1.0")]
        )

        row = _table_row(report)

        assert row[4] == "1.1"
        assert row[-1] == "Security update: 1.1"

    def test_plain_recommendation_not_repeated(self) -> None:
        """Test the recommended release only appears in its own column."""
        report = self._report("1.0", [Release("views", "1.1"), Release("views", "1.0")])

        row = _table_row(report)

        assert row[4] == "1.1"
        assert row[-1] == "[dim]-[/dim]"


@pytest.mark.unit
class TestGlobalOptions:
    """Tests for the top-level group."""

    def test_version(self) -> None:
        """Test --version prints the package version."""
        result = CliRunner().invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert f"releasekeeper {__version__}" in result.output

    def test_help_lists_check(self) -> None:
        """Test the help text lists the check command."""
        result = CliRunner().invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "check" in result.output

    def test_invalid_config(self, workspace: Path) -> None:
        """Test a bad config file aborts with exit code 1."""
        _write_site(workspace, "8.x-1.1")
        (workspace / "releasekeeper.toml").write_text(
            "[releasekeeper]\ncolour = 1\n", encoding="utf-8"
        )

        result = _invoke(["check", "site.toml", "--catalog-dir", "catalog"])

        assert result.exit_code == 1
        assert "Unknown configuration keys: colour" in result.output

    def test_explicit_config(self, workspace: Path) -> None:
        """Test --config selects a config file outside the working directory."""
        _write_site(workspace, "8.x-1.1")
        config = workspace / "custom.toml"
        config.write_text("[releasekeeper]\ntimeout = 0\n", encoding="utf-8")

        result = _invoke(["--config", str(config), "check", "site.toml", "--catalog-dir", "catalog"])

        assert result.exit_code == 1
        assert "timeout must be at least 1" in result.output


@pytest.mark.unit
class TestMain:
    """Tests for the main() exit code mapping."""

    def test_usage_error(self, capsys: pytest.CaptureFixture) -> None:
        """Test usage errors return exit code 2."""
        with patch("sys.argv", ["releasekeeper", "check"]):
            assert main() == 2

    def test_version(self) -> None:
        """Test a clean run returns 0."""
        with patch("sys.argv", ["releasekeeper", "--version"]):
            assert main() == 0

    def test_keyboard_interrupt(self) -> None:
        """Test Ctrl+C returns 130."""
        with patch("releasekeeper.cli.cli", side_effect=KeyboardInterrupt):
            assert main() == 130

    def test_unexpected_error(self) -> None:
        """Test unexpected exceptions return 1."""
        with patch("releasekeeper.cli.cli", side_effect=RuntimeError("boom")):
            assert main() == 1
