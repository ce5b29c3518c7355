"""Filesystem utilities for agntc."""

import errno
import shutil
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class DirEntry:
    """An immediate child of a directory."""

    name: str
    is_directory: bool


def read_dir_entries(path: Path) -> list[DirEntry]:
    """List the immediate children of a directory, sorted by name.

    Returns an empty list when the directory is missing or unreadable.
    """
    try:
        children = sorted(path.iterdir(), key=lambda p: p.name)
    except OSError:
        return []
    return [DirEntry(name=child.name, is_directory=child.is_dir()) for child in children]


def copy_file(src: Path, dest: Path) -> Path:
    """Copy a file, creating the destination's parent directory.

    Args:
        src: Source file path
        dest: Destination file path

    Returns:
        Path to the copied file
    """
    dest.parent.mkdir(parents=True, exist_ok=True)
    shutil.copy2(src, dest)
    return dest


def remove_path(path: Path, recursive: bool) -> bool:
    """Remove a file or directory.

    A missing path is not an error. Any other OSError (e.g. permission
    denied) propagates.

    Args:
        path: Path to remove
        recursive: Remove a directory and its contents

    Returns:
        True if the path was removed, False if it didn't exist
    """
    try:
        if recursive:
            shutil.rmtree(path)
        elif path.is_dir() and not path.is_symlink():
            # rmdir only succeeds for empty directories, like ``rm`` without -r
            path.rmdir()
        else:
            path.unlink()
    except FileNotFoundError:
        return False
    except NotADirectoryError:
        # A directory marker that is now a plain file
        path.unlink()
    except OSError as e:
        if e.errno == errno.ENOENT:
            return False
        raise
    return True


def path_exists(path: Path) -> bool:
    """Check whether anything (file, directory, broken symlink) is at path."""
    return path.exists() or path.is_symlink()
