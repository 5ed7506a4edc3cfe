"""Explicit dependency context for kit-sync operations.

Instead of module-level singletons, commands build one SyncContext and pass it
to the functions that need config, console or the baseline repository.
"""

from dataclasses import dataclass, field
from typing import Optional

from rich.console import Console

from kit_sync.config import SyncConfig
from kit_sync.repository import BaselineRepository
from kit_sync.sync import PlanBuilder, PlanExecutor, SyncLock


@dataclass
class SyncContext:
    config: SyncConfig
    console: Console = field(default_factory=Console)
    _repository: Optional[BaselineRepository] = field(default=None, init=False, repr=False)

    @classmethod
    def create(
        cls, config: Optional[SyncConfig] = None, console: Optional[Console] = None
    ) -> "SyncContext":
        config = config or SyncConfig()
        return cls(config=config, console=console or Console(no_color=not config.color))

    @property
    def baseline_repository(self) -> BaselineRepository:
        if self._repository is None:
            self._repository = BaselineRepository(self.config.registry_path)
        return self._repository

    def plan_builder(self) -> PlanBuilder:
        return PlanBuilder(concurrency=self.config.concurrency)

    def plan_executor(self) -> PlanExecutor:
        return PlanExecutor(self.baseline_repository, concurrency=self.config.concurrency)

    def sync_lock(self, name: str = "sync") -> SyncLock:
        return SyncLock(
            self.config.lock_dir,
            name=name,
            stale_timeout=self.config.lock_stale_timeout,
            poll_interval=self.config.lock_poll_interval,
        )

    def reset(self) -> None:
        """Drop cached handles so the next access starts fresh."""
        self._repository = None
