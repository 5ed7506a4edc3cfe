"""Tests for file utilities."""

import os
from pathlib import Path

import pytest

from kit_sync.file_utils import (
    FileError,
    FileWriteError,
    compute_checksum,
    compute_file_checksum,
    compute_path_checksum,
    compute_tree_checksum,
    copy_tree_atomic,
    ensure_directory,
    remove_path,
    write_file_atomic,
)


def make_tree(root: Path) -> Path:
    (root / "sub").mkdir(parents=True)
    (root / "a.md").write_text("alpha")
    (root / "sub" / "b.md").write_text("beta")
    return root


@pytest.mark.asyncio
async def test_compute_checksum():
    """Test checksum computation."""
    checksum = await compute_checksum("test content")
    assert isinstance(checksum, str)
    assert len(checksum) == 64  # SHA-256 produces 64 char hex string


@pytest.mark.asyncio
async def test_compute_checksum_text_and_bytes_agree():
    assert await compute_checksum("héllo") == await compute_checksum("héllo".encode("utf-8"))


@pytest.mark.asyncio
async def test_compute_checksum_error():
    """Test checksum error handling."""
    with pytest.raises(FileError):
        await compute_checksum(object())  # pyright: ignore [reportArgumentType]


@pytest.mark.asyncio
async def test_file_checksum_is_byte_exact(tmp_path: Path):
    lf = tmp_path / "lf.md"
    crlf = tmp_path / "crlf.md"
    lf.write_bytes(b"line\n")
    crlf.write_bytes(b"line\r\n")
    assert await compute_file_checksum(lf) != await compute_file_checksum(crlf)


@pytest.mark.asyncio
async def test_file_checksum_missing_file(tmp_path: Path):
    with pytest.raises(FileError):
        await compute_file_checksum(tmp_path / "missing.md")


@pytest.mark.asyncio
async def test_tree_checksum_is_stable(tmp_path: Path):
    first = make_tree(tmp_path / "one")
    second = make_tree(tmp_path / "two")
    assert await compute_tree_checksum(first) == await compute_tree_checksum(second)


@pytest.mark.asyncio
async def test_tree_checksum_ignores_enumeration_order(tmp_path: Path, monkeypatch):
    root = make_tree(tmp_path / "tree")
    (root / "c.md").write_text("gamma")
    expected = await compute_tree_checksum(root)

    real_walk = os.walk

    def reversed_walk(top, *args, **kwargs):
        for dirpath, dirnames, filenames in real_walk(top, *args, **kwargs):
            dirnames.reverse()
            yield dirpath, dirnames, list(reversed(filenames))

    monkeypatch.setattr(os, "walk", reversed_walk)
    assert await compute_tree_checksum(root) == expected


@pytest.mark.asyncio
async def test_tree_checksum_changes_with_content_and_names(tmp_path: Path):
    root = make_tree(tmp_path / "tree")
    original = await compute_tree_checksum(root)

    (root / "a.md").write_text("alpha!")
    edited = await compute_tree_checksum(root)
    assert edited != original

    (root / "a.md").write_text("alpha")
    (root / "a.md").rename(root / "z.md")
    assert await compute_tree_checksum(root) != original


@pytest.mark.asyncio
async def test_tree_checksum_path_boundaries(tmp_path: Path):
    # "ab" + "c" must not hash like "a" + "bc"
    one = tmp_path / "one"
    two = tmp_path / "two"
    one.mkdir()
    two.mkdir()
    (one / "ab").write_text("c")
    (two / "a").write_text("bc")
    assert await compute_tree_checksum(one) != await compute_tree_checksum(two)


@pytest.mark.asyncio
async def test_tree_checksum_excludes_hidden_and_artifacts(tmp_path: Path):
    root = make_tree(tmp_path / "tree")
    expected = await compute_tree_checksum(root)

    (root / ".hidden").write_text("secret")
    (root / ".git").mkdir()
    (root / ".git" / "HEAD").write_text("ref")
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "node_modules" / "pkg" / "index.js").write_text("x")
    (root / "__pycache__").mkdir()
    (root / "__pycache__" / "mod.pyc").write_bytes(b"\x00")

    assert await compute_tree_checksum(root) == expected


@pytest.mark.asyncio
async def test_tree_checksum_excludes_symlinks(tmp_path: Path):
    root = make_tree(tmp_path / "tree")
    expected = await compute_tree_checksum(root)

    outside = tmp_path / "outside"
    outside.mkdir()
    (outside / "big.md").write_text("not part of the tree")
    try:
        (root / "link.md").symlink_to(outside / "big.md")
        (root / "linked_dir").symlink_to(outside, target_is_directory=True)
    except (OSError, NotImplementedError):
        pytest.skip("symlinks not supported")

    assert await compute_tree_checksum(root) == expected


@pytest.mark.asyncio
async def test_path_checksum_dispatches(tmp_path: Path):
    root = make_tree(tmp_path / "tree")
    assert await compute_path_checksum(root) == await compute_tree_checksum(root)
    assert await compute_path_checksum(root / "a.md") == await compute_checksum("alpha")


@pytest.mark.asyncio
async def test_ensure_directory(tmp_path: Path):
    """Test directory creation."""
    test_dir = tmp_path / "test_dir" / "nested"
    await ensure_directory(test_dir)
    assert test_dir.is_dir()


@pytest.mark.asyncio
async def test_write_file_atomic(tmp_path: Path):
    """Test atomic file writing."""
    test_file = tmp_path / "test.txt"
    await write_file_atomic(test_file, "test content")
    assert test_file.read_text() == "test content"

    await write_file_atomic(test_file, b"replaced")
    assert test_file.read_bytes() == b"replaced"

    # Temp files should be cleaned up
    assert [p.name for p in tmp_path.iterdir()] == ["test.txt"]


@pytest.mark.asyncio
async def test_write_file_atomic_error(tmp_path: Path):
    """Test error handling in atomic write."""
    with pytest.raises(FileWriteError):
        await write_file_atomic(tmp_path / "missing" / "test.txt", "content")


@pytest.mark.asyncio
async def test_copy_tree_atomic_replaces_target(tmp_path: Path):
    source = make_tree(tmp_path / "source")
    target = tmp_path / "target"
    target.mkdir()
    (target / "stale.md").write_text("old")

    await copy_tree_atomic(source, target)

    assert (target / "a.md").read_text() == "alpha"
    assert (target / "sub" / "b.md").read_text() == "beta"
    assert not (target / "stale.md").exists()
    assert await compute_tree_checksum(target) == await compute_tree_checksum(source)
    # no staging or backup directories left behind
    assert sorted(p.name for p in tmp_path.iterdir()) == ["source", "target"]


@pytest.mark.asyncio
async def test_copy_tree_atomic_missing_source(tmp_path: Path):
    target = tmp_path / "target"
    target.mkdir()
    (target / "keep.md").write_text("keep")

    with pytest.raises(FileWriteError):
        await copy_tree_atomic(tmp_path / "missing", target)

    assert (target / "keep.md").read_text() == "keep"


@pytest.mark.asyncio
async def test_remove_path(tmp_path: Path):
    tree = make_tree(tmp_path / "tree")
    single = tmp_path / "single.md"
    single.write_text("x")

    await remove_path(tree)
    await remove_path(single)
    await remove_path(tmp_path / "never-existed")

    assert not tree.exists()
    assert not single.exists()


@pytest.mark.asyncio
async def test_copy_tree_atomic_keeps_untracked_entries(tmp_path: Path):
    source = make_tree(tmp_path / "source")
    target = tmp_path / "target"
    (target / "node_modules").mkdir(parents=True)
    (target / "node_modules" / "dep.js").write_text("dep")
    (target / "sub").mkdir()
    (target / "sub" / ".local").write_text("mine")
    (target / ".env").write_text("TOKEN=1")
    (target / "stale.md").write_text("old")

    await copy_tree_atomic(source, target)

    assert not (target / "stale.md").exists()
    assert (target / "sub" / "b.md").read_text() == "beta"
    assert (target / "sub" / ".local").read_text() == "mine"
    assert (target / ".env").read_text() == "TOKEN=1"
    assert (target / "node_modules" / "dep.js").read_text() == "dep"
    assert await compute_tree_checksum(target) == await compute_tree_checksum(source)
    assert sorted(p.name for p in tmp_path.iterdir()) == ["source", "target"]


@pytest.mark.asyncio
async def test_remove_path_keeps_untracked_entries(tmp_path: Path):
    tree = make_tree(tmp_path / "tree")
    (tree / ".env").write_text("TOKEN=1")
    (tree / "node_modules").mkdir()
    (tree / "node_modules" / "dep.js").write_text("dep")

    await remove_path(tree)

    assert not (tree / "a.md").exists()
    assert not (tree / "sub").exists()
    assert sorted(p.name for p in tree.iterdir()) == [".env", "node_modules"]
    assert (tree / "node_modules" / "dep.js").read_text() == "dep"
