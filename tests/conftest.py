"""Common test fixtures."""

from io import StringIO
from pathlib import Path
from typing import Optional

import os
import pytest
from rich.console import Console

from kit_sync.config import SyncConfig
from kit_sync.deps import SyncContext
from kit_sync.repository import BaselineRepository
from kit_sync.schemas import Item, ItemKind, Scope
from kit_sync.sync import PlanBuilder, PlanExecutor


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def config_home(tmp_path, monkeypatch) -> Path:
    # Patch HOME environment variable for the duration of the test
    monkeypatch.setenv("HOME", str(tmp_path))
    # On Windows, also set USERPROFILE
    if os.name == "nt":
        monkeypatch.setenv("USERPROFILE", str(tmp_path))
    monkeypatch.setenv("KIT_SYNC_HOME", str(tmp_path / "kit-sync"))
    monkeypatch.setenv("KIT_SYNC_ENV", "test")
    monkeypatch.delenv("NO_COLOR", raising=False)
    return tmp_path


@pytest.fixture
def sync_config(config_home) -> SyncConfig:
    return SyncConfig(home=config_home / "kit-sync", env="test", lock_stale_timeout=2.0)


@pytest.fixture
def console():
    """Create test console that captures output."""
    output = StringIO()
    return Console(file=output, width=200, color_system=None), output


@pytest.fixture
def sync_context(sync_config, console) -> SyncContext:
    test_console, _ = console
    return SyncContext.create(sync_config, console=test_console)


@pytest.fixture
def baseline_repository(sync_config) -> BaselineRepository:
    return BaselineRepository(sync_config.registry_path)


@pytest.fixture
def plan_builder() -> PlanBuilder:
    return PlanBuilder(concurrency=4)


@pytest.fixture
def executor(baseline_repository) -> PlanExecutor:
    return PlanExecutor(baseline_repository, concurrency=4)


@pytest.fixture
def target_dir(tmp_path) -> Path:
    path = tmp_path / "target"
    path.mkdir()
    return path


@pytest.fixture
def source_dir(tmp_path) -> Path:
    """A small kit source with one of each item kind."""
    source = tmp_path / "kit"
    (source / "agents").mkdir(parents=True)
    (source / "commands" / "git").mkdir(parents=True)
    (source / "rules").mkdir()
    (source / "skills" / "pdf" / "scripts").mkdir(parents=True)

    (source / "CLAUDE.md").write_text("# Project rules\n")
    (source / "agents" / "planner.md").write_text("You plan things.\n")
    (source / "commands" / "git" / "commit.md").write_text("Commit the staged changes.\n")
    (source / "rules" / "style.md").write_text("Use tabs.\n")
    (source / "skills" / "pdf" / "SKILL.md").write_text("Read PDFs.\n")
    (source / "skills" / "pdf" / "scripts" / "extract.py").write_text("print('pdf')\n")
    return source


def make_item(
    target: Path,
    content: Optional[str] = None,
    item_id: Optional[str] = None,
    kind: ItemKind = ItemKind.AGENT,
    provider: str = "claude",
    scope: Scope = Scope.LOCAL,
    source_path: Optional[Path] = None,
) -> Item:
    """Build an item with inline content (or none, for a removed item)."""
    return Item(
        id=item_id or target.stem,
        kind=kind,
        provider=provider,
        scope=scope,
        target_path=target,
        content=content.encode("utf-8") if content is not None else None,
        source_path=source_path,
    )


@pytest.fixture
def item_factory():
    return make_item
