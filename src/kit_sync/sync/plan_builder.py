"""Builds reconciliation plans from items, baselines and local state."""

import asyncio
from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import logfire
from loguru import logger

from kit_sync import file_utils
from kit_sync.config import DEFAULT_CONCURRENCY
from kit_sync.repository import BaselineRecord
from kit_sync.schemas import Action, ActionKind, Item, ItemError, LocalState, Plan, Scope
from kit_sync.services.exceptions import DuplicateTargetPathError
from kit_sync.sync.classifier import classify_change
from kit_sync.sync.diff import generate_diff, generate_tree_diff
from kit_sync.sync.local_state_scanner import LocalStateScanner

_Outcome = Union[Tuple[Optional[str], LocalState], Exception]


def check_unique_targets(items: Sequence[Item]) -> None:
    """Raise DuplicateTargetPathError if two items share a target path."""
    by_target: Dict[str, List[str]] = defaultdict(list)
    for item in items:
        by_target[item.key].append(item.id)
    for target, ids in by_target.items():
        if len(ids) > 1:
            raise DuplicateTargetPathError(target, ids)


def find_orphans(
    items: Iterable[Item],
    records: Iterable[BaselineRecord],
    provider: str,
    scope: Scope,
    target_root: Optional[Path] = None,
) -> List[Item]:
    """
    Turn tracked records that no source item claims into candidate-less items.

    Only records of the given provider and scope (and below `target_root`,
    when given) are considered, so a run for one provider or project never
    plans deletions for another.
    """
    claimed = {item.key for item in items}
    orphans = []
    for record in records:
        if record.provider != provider or record.scope != scope:
            continue
        if record.target_path in claimed:
            continue
        if target_root is not None and not Path(record.target_path).is_relative_to(target_root):
            continue
        orphans.append(record.to_item())
    return orphans


class PlanBuilder:
    """Classifies every item independently and aggregates the result into a Plan."""

    def __init__(
        self,
        scanner: Optional[LocalStateScanner] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self.scanner = scanner or LocalStateScanner(asyncio.Semaphore(concurrency))

    async def _inspect(
        self, item: Item, local_states: Mapping[str, LocalState]
    ) -> Tuple[Optional[str], LocalState]:
        candidate = await self.scanner.get_candidate_checksum(item)
        local = local_states.get(item.key)
        if local is None:
            local = await self.scanner.get_local_state(item)
        return candidate, local

    async def build_plan(
        self,
        items: Sequence[Item],
        baselines: Mapping[str, str],
        local_states: Optional[Mapping[str, LocalState]] = None,
    ) -> Plan:
        """
        Build a plan with exactly one action per successfully inspected item.

        Args:
            items: Items to reconcile, target paths must be unique
            baselines: target path key -> last tool-written checksum
            local_states: Optional precomputed local states by target path key,
                anything missing is read from disk

        Returns:
            Plan with actions in input order; items whose hashing failed are
            reported in `plan.errors` and excluded from the summary

        Raises:
            DuplicateTargetPathError: If two items share a target path
        """
        items = list(items)
        check_unique_targets(items)
        local_states = local_states or {}

        with logfire.span("build_plan", items=len(items)):
            outcomes: List[_Outcome] = await asyncio.gather(
                *(self._inspect(item, local_states) for item in items),
                return_exceptions=True,
            )

            actions: List[Action] = []
            errors: List[ItemError] = []
            for item, outcome in zip(items, outcomes):
                if isinstance(outcome, BaseException):
                    if not isinstance(outcome, Exception):
                        raise outcome
                    logger.error(f"Failed to inspect {item.key}: {outcome}")
                    errors.append(
                        ItemError(item=item, target_path=item.target_path, error=str(outcome))
                    )
                    continue

                candidate, local = outcome
                baseline = baselines.get(item.key)
                kind, reason = classify_change(
                    local=local.checksum,
                    baseline=baseline,
                    candidate=candidate,
                    local_exists=local.exists,
                )
                action = Action(
                    kind=kind,
                    item=item,
                    target_path=item.target_path,
                    reason=reason,
                    local_checksum=local.checksum,
                    baseline_checksum=baseline,
                    candidate_checksum=candidate,
                )
                if kind == ActionKind.CONFLICT:
                    action.diff = await self.conflict_diff(item)
                actions.append(action)

            plan = Plan.from_actions(actions, errors)

        logger.info(
            "Plan: "
            + ", ".join(f"{plan.summary.count(k)} {k.value}" for k in ActionKind)
            + (f", {len(errors)} errors" if errors else "")
        )
        return plan

    async def conflict_diff(self, item: Item) -> Optional[str]:
        """Diff local content against the candidate, None if it cannot be produced."""
        try:
            if item.is_directory:
                return await asyncio.to_thread(
                    generate_tree_diff, item.target_path, item.source_path, item.id
                )

            local = await file_utils.read_file_bytes(item.target_path)
            if item.content is not None:
                candidate: Optional[bytes] = item.content
            elif item.source_path is not None:
                candidate = await file_utils.read_file_bytes(item.source_path)
            else:
                candidate = None
            return generate_diff(local, candidate, item.target_path.name)
        except Exception as e:
            logger.warning(f"Could not diff {item.key}: {e}")
            return None
