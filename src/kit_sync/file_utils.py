"""Utilities for file operations: content checksums and atomic writes."""

import asyncio
import hashlib
import os
import shutil
import uuid
from pathlib import Path
from typing import List, Union

from loguru import logger

from kit_sync.ignore_utils import list_content_files, list_untracked_entries


class FileError(Exception):
    """Base exception for file operations."""

    pass


class FileWriteError(FileError):
    """Raised when file operations fail."""

    pass


def _to_bytes(content: Union[str, bytes]) -> bytes:
    if isinstance(content, bytes):
        return content
    return content.encode("utf-8")


async def compute_checksum(content: Union[str, bytes]) -> str:
    """
    Compute SHA-256 checksum of content.

    Args:
        content: Text or raw bytes to hash

    Returns:
        SHA-256 hex digest

    Raises:
        FileError: If checksum computation fails
    """
    try:
        return hashlib.sha256(_to_bytes(content)).hexdigest()
    except Exception as e:
        logger.error(f"Failed to compute checksum: {e}")
        raise FileError(f"Failed to compute checksum: {e}") from e


def _hash_tree(root: Path) -> str:
    digest = hashlib.sha256()
    for rel_path in list_content_files(root):
        data = (root / rel_path).read_bytes()
        name = rel_path.encode("utf-8")
        # length prefixes keep (path, bytes) boundaries unambiguous
        digest.update(len(name).to_bytes(8, "big"))
        digest.update(name)
        digest.update(len(data).to_bytes(8, "big"))
        digest.update(data)
    return digest.hexdigest()


async def read_file_bytes(path: Path) -> bytes:
    """Read raw bytes of a file off the event loop."""
    try:
        return await asyncio.to_thread(path.read_bytes)
    except Exception as e:
        logger.error(f"Failed to read file {path}: {e}")
        raise FileError(f"Failed to read file {path}: {e}") from e


async def compute_file_checksum(path: Path) -> str:
    """Compute SHA-256 checksum of a single file's bytes."""
    return await compute_checksum(await read_file_bytes(path))


async def compute_tree_checksum(path: Path) -> str:
    """
    Compute a stable checksum for a whole directory tree.

    Regular files are enumerated recursively, excluding hidden entries, symbolic
    links and build-artifact directories. Relative paths are sorted before
    folding so the digest does not depend on enumeration order.

    Args:
        path: Root directory of the tree

    Returns:
        SHA-256 hex digest

    Raises:
        FileError: If any file of the tree cannot be read
    """
    try:
        return await asyncio.to_thread(_hash_tree, path)
    except Exception as e:
        logger.error(f"Failed to hash directory {path}: {e}")
        raise FileError(f"Failed to hash directory {path}: {e}") from e


async def compute_path_checksum(path: Path) -> str:
    """Checksum a file, or a directory as a tree."""
    if path.is_dir():
        return await compute_tree_checksum(path)
    return await compute_file_checksum(path)


async def ensure_directory(path: Path) -> None:
    """
    Ensure directory exists, creating if necessary.

    Args:
        path: Directory path to ensure

    Raises:
        FileWriteError: If directory creation fails
    """
    try:
        path.mkdir(parents=True, exist_ok=True)
    except Exception as e:
        logger.error(f"Failed to create directory: {path}: {e}")
        raise FileWriteError(f"Failed to create directory {path}: {e}") from e


def _temp_sibling(path: Path) -> Path:
    return path.with_name(f".{path.name}.{uuid.uuid4().hex[:8]}.tmp")


def _write_atomic(path: Path, data: bytes) -> None:
    temp_path = _temp_sibling(path)
    try:
        with open(temp_path, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(temp_path, path)
    except BaseException:
        temp_path.unlink(missing_ok=True)
        raise


async def write_file_atomic(path: Path, content: Union[str, bytes]) -> None:
    """
    Write file with atomic operation using temporary file.

    The temporary file lives next to the target so the final rename stays on
    one filesystem; readers see either the old or the new content.

    Args:
        path: Target file path
        content: Content to write

    Raises:
        FileWriteError: If write operation fails
    """
    try:
        await asyncio.to_thread(_write_atomic, path, _to_bytes(content))
    except Exception as e:
        logger.error(f"Failed to write file: {path}: {e}")
        raise FileWriteError(f"Failed to write file {path}: {e}") from e


def _carry_untracked(backup: Path, staging: Path, moved: List[str]) -> None:
    """Move non-content entries of the old tree into the staged one, recording each in `moved`."""
    for rel_path in list_untracked_entries(backup):
        destination = staging / rel_path
        if destination.exists() or destination.is_symlink():
            logger.warning(f"Not keeping {backup / rel_path}: replaced by new content")
            continue
        destination.parent.mkdir(parents=True, exist_ok=True)
        os.replace(backup / rel_path, destination)
        moved.append(rel_path)


def _copy_tree_atomic(source: Path, target: Path) -> None:
    if not source.is_dir():
        raise FileNotFoundError(f"Source directory not found: {source}")
    staging = _temp_sibling(target)
    backup = None
    moved: List[str] = []
    try:
        staging.mkdir(parents=True)
        for rel_path in list_content_files(source):
            destination = staging / rel_path
            destination.parent.mkdir(parents=True, exist_ok=True)
            shutil.copy2(source / rel_path, destination)

        if target.exists() or target.is_symlink():
            backup = target.with_name(f".{target.name}.{uuid.uuid4().hex[:8]}.old")
            os.replace(target, backup)
            if backup.is_dir() and not backup.is_symlink():
                _carry_untracked(backup, staging, moved)
        os.replace(staging, target)
    except BaseException:
        # hand carried entries back before the old tree is restored
        for rel_path in reversed(moved):
            os.replace(staging / rel_path, backup / rel_path)
        shutil.rmtree(staging, ignore_errors=True)
        if backup is not None and not target.exists():
            os.replace(backup, target)
            backup = None
        raise
    finally:
        if backup is not None:
            if backup.is_dir() and not backup.is_symlink():
                shutil.rmtree(backup, ignore_errors=True)
            else:
                backup.unlink(missing_ok=True)


async def copy_tree_atomic(source: Path, target: Path) -> None:
    """
    Replace the content files of `target` with those of `source`.

    The tree is staged in a temporary sibling directory and swapped in with a
    rename, so an interrupted copy never leaves a partial target. Entries of
    the old target that are not content (hidden files, ignored directories,
    symlinks) are moved into the new tree, so they survive the swap.

    Raises:
        FileWriteError: If staging or the swap fails
    """
    try:
        await asyncio.to_thread(_copy_tree_atomic, source, target)
    except Exception as e:
        logger.error(f"Failed to copy directory {source} -> {target}: {e}")
        raise FileWriteError(f"Failed to copy directory {source} to {target}: {e}") from e


def _remove_tree_content(root: Path) -> None:
    parents = {root}
    for rel_path in list_content_files(root):
        path = root / rel_path
        path.unlink()
        parents.update(p for p in path.parents if p == root or root in p.parents)

    # deepest first, only directories the removed files lived in
    for directory in sorted(parents, key=lambda p: len(p.parts), reverse=True):
        if directory.is_dir() and not any(directory.iterdir()):
            directory.rmdir()


def _remove(path: Path) -> None:
    if path.is_dir() and not path.is_symlink():
        _remove_tree_content(path)
    else:
        path.unlink(missing_ok=True)


async def remove_path(path: Path) -> None:
    """
    Delete a file, or the content files of a directory tree.

    Non-content entries of a directory (hidden files, ignored directories,
    symlinks) are left in place; directories emptied by the removal are
    deleted, the root included.

    Raises:
        FileWriteError: If deletion fails
    """
    try:
        await asyncio.to_thread(_remove, path)
    except Exception as e:
        logger.error(f"Failed to delete {path}: {e}")
        raise FileWriteError(f"Failed to delete {path}: {e}") from e
