from __future__ import annotations

import builtins
from unittest.mock import MagicMock, patch

import pytest

from releasekeeper.__main__ import main


@pytest.mark.unit
class TestMain:
    """Tests for the python -m entry point."""

    @pytest.mark.parametrize("exit_code", [0, 1, 130], ids=["ok", "error", "interrupted"])
    def test_returns_cli_exit_code(self, exit_code: int) -> None:
        """Test main returns the CLI exit code."""
        cli_module = MagicMock()
        cli_module.main = MagicMock(return_value=exit_code)

        with patch.dict("sys.modules", {"releasekeeper.cli": cli_module}):
            assert main() == exit_code

        cli_module.main.assert_called_once_with()

    def test_import_error(self, capsys: pytest.CaptureFixture) -> None:
        """Test an import failure is reported and returns 1."""
        real_import = builtins.__import__

        def failing_import(name: str, *args: object, **kwargs: object) -> object:
            if name == "releasekeeper.cli":
                raise ImportError("No module named 'rich'")
            return real_import(name, *args, **kwargs)

        with patch("builtins.__import__", side_effect=failing_import):
            result = main()

        assert result == 1
        err = capsys.readouterr().err
        assert "could not be loaded" in err
        assert "No module named 'rich'" in err
