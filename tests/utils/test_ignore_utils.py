"""Tests for content-file selection of directory items."""

from pathlib import Path

from kit_sync.ignore_utils import (
    DEFAULT_IGNORE_PATTERNS,
    is_hidden,
    list_content_files,
    list_untracked_entries,
    should_ignore_path,
)


def test_is_hidden():
    assert is_hidden(".git")
    assert is_hidden(".DS_Store")
    assert not is_hidden("SKILL.md")


def test_should_ignore_hidden_parts(tmp_path: Path):
    assert should_ignore_path(tmp_path / ".cache" / "file.md", tmp_path)
    assert should_ignore_path(tmp_path / "docs" / ".draft.md", tmp_path)
    assert not should_ignore_path(tmp_path / "docs" / "guide.md", tmp_path)


def test_should_ignore_default_patterns(tmp_path: Path):
    assert "node_modules" in DEFAULT_IGNORE_PATTERNS
    assert should_ignore_path(tmp_path / "node_modules" / "x" / "index.js", tmp_path)
    assert should_ignore_path(tmp_path / "pkg.egg-info" / "PKG-INFO", tmp_path)
    assert should_ignore_path(tmp_path / "scripts" / "mod.pyc", tmp_path)


def test_should_ignore_custom_patterns(tmp_path: Path):
    patterns = frozenset({"*.log"})
    assert should_ignore_path(tmp_path / "out.log", tmp_path, patterns)
    assert not should_ignore_path(tmp_path / "node_modules" / "a.js", tmp_path, patterns)


def test_paths_outside_base_are_not_ignored(tmp_path: Path):
    assert not should_ignore_path(Path("/elsewhere/node_modules"), tmp_path / "root")


def test_list_content_files_sorted_posix(tmp_path: Path):
    (tmp_path / "b" / "nested").mkdir(parents=True)
    (tmp_path / "b" / "nested" / "z.md").write_text("z")
    (tmp_path / "a.md").write_text("a")
    (tmp_path / ".hidden.md").write_text("h")
    (tmp_path / "dist").mkdir()
    (tmp_path / "dist" / "bundle.js").write_text("js")

    assert list_content_files(tmp_path) == ["a.md", "b/nested/z.md"]


def test_list_content_files_missing_root(tmp_path: Path):
    assert list_content_files(tmp_path / "missing") == []


def test_list_untracked_entries_complements_content(tmp_path: Path):
    (tmp_path / "scripts").mkdir()
    (tmp_path / "scripts" / "run.py").write_text("run")
    (tmp_path / "scripts" / "cache.pyc").write_bytes(b"\x00")
    (tmp_path / "SKILL.md").write_text("s")
    (tmp_path / ".env").write_text("TOKEN=1")
    (tmp_path / "node_modules" / "dep").mkdir(parents=True)
    (tmp_path / "node_modules" / "dep" / "index.js").write_text("js")
    (tmp_path / "link.md").symlink_to(tmp_path / "SKILL.md")

    assert list_untracked_entries(tmp_path) == [
        ".env",
        "link.md",
        "node_modules",
        "scripts/cache.pyc",
    ]
    assert list_content_files(tmp_path) == ["SKILL.md", "scripts/run.py"]


def test_list_untracked_entries_missing_root(tmp_path: Path):
    assert list_untracked_entries(tmp_path / "missing") == []
