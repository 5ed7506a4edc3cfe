"""Pydantic schemas for items, plans and execution results."""

from kit_sync.schemas.base import Item, ItemKind, Scope
from kit_sync.schemas.execution import (
    BaselineUpdate,
    ExecutionResult,
    ItemResult,
    Operation,
    Resolution,
    ResolutionKind,
)
from kit_sync.schemas.plan import (
    Action,
    ActionKind,
    ItemError,
    LocalState,
    Plan,
    PlanSummary,
)

__all__ = [
    "Action",
    "ActionKind",
    "BaselineUpdate",
    "ExecutionResult",
    "Item",
    "ItemError",
    "ItemKind",
    "ItemResult",
    "LocalState",
    "Operation",
    "Plan",
    "PlanSummary",
    "Resolution",
    "ResolutionKind",
    "Scope",
]
