"""Tests for agntc.utils.filesystem module."""

import errno
from pathlib import Path
from unittest.mock import patch

import pytest

from agntc.utils.filesystem import copy_file, path_exists, read_dir_entries, remove_path


class TestReadDirEntries:
    """Tests for read_dir_entries()."""

    def test_sorted_entries(self, temp_dir: Path):
        """Children are listed by name with their kind."""
        (temp_dir / "b.md").write_text("b")
        (temp_dir / "a").mkdir()

        entries = read_dir_entries(temp_dir)

        assert [(e.name, e.is_directory) for e in entries] == [("a", True), ("b.md", False)]

    def test_missing_directory(self, temp_dir: Path):
        """A missing directory has no entries."""
        assert read_dir_entries(temp_dir / "missing") == []


class TestCopyFile:
    """Tests for copy_file()."""

    def test_creates_parent(self, temp_dir: Path):
        """The destination directory is created."""
        src = temp_dir / "src.txt"
        src.write_text("hello")

        dest = copy_file(src, temp_dir / "out" / "nested" / "dest.txt")

        assert dest.read_text() == "hello"


class TestRemovePath:
    """Tests for remove_path()."""

    def test_remove_file(self, temp_dir: Path):
        """Files are unlinked."""
        path = temp_dir / "file.txt"
        path.write_text("x")

        assert remove_path(path, recursive=False)
        assert not path.exists()

    def test_remove_tree(self, temp_dir: Path):
        """Recursive removal deletes a populated directory."""
        path = temp_dir / "dir"
        (path / "sub").mkdir(parents=True)
        (path / "sub" / "f.txt").write_text("x")

        assert remove_path(path, recursive=True)
        assert not path.exists()

    def test_missing_is_not_an_error(self, temp_dir: Path):
        """A missing path reports False."""
        assert not remove_path(temp_dir / "missing", recursive=True)
        assert not remove_path(temp_dir / "missing.txt", recursive=False)

    def test_recursive_on_file(self, temp_dir: Path):
        """A directory marker that became a file is still removed."""
        path = temp_dir / "was-a-dir"
        path.write_text("x")

        assert remove_path(path, recursive=True)
        assert not path.exists()

    def test_permission_error_propagates(self, temp_dir: Path):
        """Errors other than absence propagate unchanged."""
        path = temp_dir / "file.txt"
        path.write_text("x")

        with patch.object(Path, "unlink", side_effect=PermissionError(errno.EACCES, "denied")):
            with pytest.raises(PermissionError):
                remove_path(path, recursive=False)


class TestPathExists:
    """Tests for path_exists()."""

    def test_broken_symlink_exists(self, temp_dir: Path):
        """A dangling symlink still occupies the path."""
        link = temp_dir / "link"
        link.symlink_to(temp_dir / "nowhere")

        assert path_exists(link)

    def test_empty_directory_exists(self, temp_dir: Path):
        """An empty directory exists."""
        assert path_exists(temp_dir)
        assert not path_exists(temp_dir / "missing")
