"""Schemas for conflict resolutions and plan execution results."""

from enum import Enum
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field

from kit_sync.schemas.plan import ActionKind


class ResolutionKind(str, Enum):
    KEEP = "keep"
    OVERWRITE = "overwrite"


class Resolution(BaseModel):
    """Terminal outcome of resolving one conflict."""

    kind: ResolutionKind

    @classmethod
    def keep(cls) -> "Resolution":
        return cls(kind=ResolutionKind.KEEP)

    @classmethod
    def overwrite(cls) -> "Resolution":
        return cls(kind=ResolutionKind.OVERWRITE)


class Operation(str, Enum):
    """Filesystem effect of executing one action."""

    WRITE = "write"
    REMOVE = "remove"
    NONE = "none"


class BaselineUpdate(BaseModel):
    """A change to hand back to the baseline store.

    `checksum` is the new baseline, or None when the record must be removed.
    """

    target_path: Path
    checksum: Optional[str] = None

    @property
    def removed(self) -> bool:
        return self.checksum is None


class ItemResult(BaseModel):
    target_path: Path
    item_id: str
    action: ActionKind
    operation: Operation
    success: bool = True
    error: Optional[str] = None
    checksum: Optional[str] = None
    resolution: Optional[ResolutionKind] = None

    @property
    def applied(self) -> bool:
        return self.success and self.operation != Operation.NONE


class ExecutionResult(BaseModel):
    """Aggregate outcome of executing a plan."""

    results: List[ItemResult] = Field(default_factory=list)
    baseline_updates: List[BaselineUpdate] = Field(default_factory=list)
    dry_run: bool = False

    @property
    def applied(self) -> int:
        return sum(1 for r in self.results if r.applied)

    @property
    def skipped(self) -> int:
        return sum(1 for r in self.results if r.success and r.operation == Operation.NONE)

    @property
    def failed(self) -> int:
        return sum(1 for r in self.results if not r.success)

    @property
    def failures(self) -> List[ItemResult]:
        return [r for r in self.results if not r.success]

    @property
    def unresolved_conflicts(self) -> List[ItemResult]:
        """Conflicts that ended as keep, i.e. were left untouched."""
        return [
            r
            for r in self.results
            if r.action == ActionKind.CONFLICT and r.resolution != ResolutionKind.OVERWRITE
        ]

    @property
    def success(self) -> bool:
        return self.failed == 0
