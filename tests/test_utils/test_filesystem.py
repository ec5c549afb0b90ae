from __future__ import annotations

from pathlib import Path

import pytest

from releasekeeper.utils.filesystem import safe_read_bytes
from releasekeeper.exceptions import FileOperationError


@pytest.mark.unit
class TestSafeReadBytes:
    """Tests for safe_read_bytes."""

    def test_reads_file(self, tmp_path: Path) -> None:
        """Test file contents are returned unchanged."""
        path = tmp_path / "views.xml"
        path.write_bytes(b"<project/>")

        assert safe_read_bytes(path) == b"<project/>"

    def test_accepts_string_path(self, tmp_path: Path) -> None:
        """Test string paths are accepted."""
        path = tmp_path / "site.toml"
        path.write_bytes(b"[core]\n")

        assert safe_read_bytes(str(path)) == b"[core]\n"

    def test_missing_file(self, tmp_path: Path) -> None:
        """Test a missing file raises FileOperationError."""
        with pytest.raises(FileOperationError, match="File not found") as exc_info:
            safe_read_bytes(tmp_path / "missing.xml")

        assert exc_info.value.operation == "read"

    def test_directory(self, tmp_path: Path) -> None:
        """Test a directory is rejected."""
        with pytest.raises(FileOperationError, match="Not a file"):
            safe_read_bytes(tmp_path)

    def test_too_large(self, tmp_path: Path) -> None:
        """Test files above max_size are rejected."""
        path = tmp_path / "big.xml"
        path.write_bytes(b"x" * 11)

        with pytest.raises(FileOperationError, match="File too large"):
            safe_read_bytes(path, max_size=10)

    def test_size_limit_disabled(self, tmp_path: Path) -> None:
        """Test max_size=None disables the size check."""
        path = tmp_path / "big.xml"
        path.write_bytes(b"x" * 11)

        assert len(safe_read_bytes(path, max_size=None)) == 11
