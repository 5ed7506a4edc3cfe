"""Utilities for deciding which entries of a directory-backed item are content."""

import fnmatch
import os
from pathlib import Path
from typing import FrozenSet, List, Optional

# Build artifacts and tool caches that never count as item content
DEFAULT_IGNORE_PATTERNS: FrozenSet[str] = frozenset(
    {
        "node_modules",
        "__pycache__",
        "dist",
        "build",
        "venv",
        ".venv",
        ".git",
        ".pytest_cache",
        ".mypy_cache",
        ".ruff_cache",
        ".tox",
        ".cache",
        "*.egg-info",
        "*.pyc",
        "*.pyo",
        ".DS_Store",
        "Thumbs.db",
    }
)


def is_hidden(name: str) -> bool:
    return name.startswith(".")


def should_ignore_path(
    file_path: Path, base_path: Path, ignore_patterns: Optional[FrozenSet[str]] = None
) -> bool:
    """Check if a path below `base_path` is excluded from item content.

    Hidden entries (any path part starting with ".") are always excluded.

    Args:
        file_path: The path to check
        base_path: The item root used for the relative path
        ignore_patterns: Names or glob patterns to exclude, defaults to DEFAULT_IGNORE_PATTERNS

    Returns:
        True if the path should be ignored
    """
    if ignore_patterns is None:
        ignore_patterns = DEFAULT_IGNORE_PATTERNS

    try:
        relative_path = file_path.relative_to(base_path)
    except ValueError:
        # Outside the item root, not ours to judge
        return False

    if any(is_hidden(part) for part in relative_path.parts):
        return True

    relative_posix = relative_path.as_posix()
    for pattern in ignore_patterns:
        # Direct name match (e.g. "node_modules")
        if pattern in relative_path.parts:
            return True

        # Glob match against any single part or the whole relative path
        if any(fnmatch.fnmatch(part, pattern) for part in relative_path.parts):
            return True
        if fnmatch.fnmatch(relative_posix, pattern):
            return True

    return False


def list_content_files(
    root: Path, ignore_patterns: Optional[FrozenSet[str]] = None
) -> List[str]:
    """List content files of a directory as sorted relative POSIX paths.

    Walks the tree without following symbolic links, prunes ignored
    directories, and skips symlinked files and anything that is not a regular file.
    Sorting makes the result independent of filesystem enumeration order.
    """
    files: List[str] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        dirnames[:] = [
            d
            for d in dirnames
            if not (current / d).is_symlink()
            and not should_ignore_path(current / d, root, ignore_patterns)
        ]
        for name in filenames:
            path = current / name
            if path.is_symlink() or not path.is_file():
                continue
            if should_ignore_path(path, root, ignore_patterns):
                continue
            files.append(path.relative_to(root).as_posix())

    files.sort()
    return files


def list_untracked_entries(
    root: Path, ignore_patterns: Optional[FrozenSet[str]] = None
) -> List[str]:
    """List entries of a directory that are not content, as sorted relative POSIX paths.

    This is the complement of `list_content_files`: hidden and ignored
    entries, symbolic links and special files. Excluded directories are
    listed whole, their children are not.
    """
    entries: List[str] = []

    for dirpath, dirnames, filenames in os.walk(root, followlinks=False):
        current = Path(dirpath)
        walked = []
        for d in dirnames:
            path = current / d
            if path.is_symlink() or should_ignore_path(path, root, ignore_patterns):
                entries.append(path.relative_to(root).as_posix())
            else:
                walked.append(d)
        dirnames[:] = walked

        for name in filenames:
            path = current / name
            if (
                path.is_symlink()
                or not path.is_file()
                or should_ignore_path(path, root, ignore_patterns)
            ):
                entries.append(path.relative_to(root).as_posix())

    entries.sort()
    return entries
