"""Plan schemas: per-item actions and the aggregated reconciliation plan."""

from collections import Counter
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from kit_sync.schemas.base import Item


class ActionKind(str, Enum):
    """What a plan does with one item. This set is closed."""

    INSTALL = "install"
    UPDATE = "update"
    SKIP = "skip"
    CONFLICT = "conflict"
    DELETE = "delete"


class LocalState(BaseModel):
    """What exists at a target path right now."""

    target_path: Path
    exists: bool
    checksum: Optional[str] = None


class Action(BaseModel):
    """The decision for a single item."""

    kind: ActionKind
    item: Item
    target_path: Path
    reason: str
    diff: Optional[str] = None

    # checksum context for reporting and execution
    local_checksum: Optional[str] = None
    baseline_checksum: Optional[str] = None
    candidate_checksum: Optional[str] = None

    @property
    def key(self) -> str:
        return self.item.key


class ItemError(BaseModel):
    """An item that could not be classified, e.g. because hashing failed."""

    item: Item
    target_path: Path
    error: str


class PlanSummary(BaseModel):
    install: int = 0
    update: int = 0
    skip: int = 0
    conflict: int = 0
    delete: int = 0

    def count(self, kind: ActionKind) -> int:
        return getattr(self, kind.value)

    @property
    def total(self) -> int:
        return sum(self.count(kind) for kind in ActionKind)


class Plan(BaseModel):
    """The complete set of per-item decisions for one reconciliation pass.

    Build plans with `Plan.from_actions` so the summary always matches the
    action list and `has_conflicts` matches the conflict count.
    """

    actions: List[Action] = Field(default_factory=list)
    summary: PlanSummary = Field(default_factory=PlanSummary)
    has_conflicts: bool = False
    errors: List[ItemError] = Field(default_factory=list)

    @classmethod
    def from_actions(
        cls, actions: List[Action], errors: Optional[List[ItemError]] = None
    ) -> "Plan":
        counts = Counter(action.kind.value for action in actions)
        summary = PlanSummary(**counts)
        return cls(
            actions=actions,
            summary=summary,
            has_conflicts=summary.conflict > 0,
            errors=errors or [],
        )

    def actions_of(self, kind: ActionKind) -> List[Action]:
        return [a for a in self.actions if a.kind == kind]

    def grouped(self) -> Dict[ActionKind, List[Action]]:
        """Actions grouped by kind, every kind present, plan order kept."""
        groups: Dict[ActionKind, List[Action]] = {kind: [] for kind in ActionKind}
        for action in self.actions:
            groups[action.kind].append(action)
        return groups
