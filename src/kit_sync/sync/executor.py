"""Applies a reconciliation plan to the filesystem."""

import asyncio
from typing import Callable, Dict, List, Mapping, Optional, Tuple

import logfire
from loguru import logger

from kit_sync import file_utils
from kit_sync.config import DEFAULT_CONCURRENCY
from kit_sync.repository import BaselineRepository
from kit_sync.schemas import (
    Action,
    ActionKind,
    BaselineUpdate,
    ExecutionResult,
    ItemResult,
    Operation,
    Plan,
    Resolution,
    ResolutionKind,
)


def _conflict_operation(action: Action, resolution: Optional[Resolution]) -> Operation:
    if resolution is None or resolution.kind == ResolutionKind.KEEP:
        return Operation.NONE
    # overwrite applies whatever the source wants: new content, or removal
    return Operation.WRITE if action.item.has_candidate else Operation.REMOVE


# One entry per ActionKind; tests check the mapping is complete.
OPERATIONS: Dict[ActionKind, Callable[[Action, Optional[Resolution]], Operation]] = {
    ActionKind.INSTALL: lambda action, resolution: Operation.WRITE,
    ActionKind.UPDATE: lambda action, resolution: Operation.WRITE,
    ActionKind.DELETE: lambda action, resolution: Operation.REMOVE,
    ActionKind.SKIP: lambda action, resolution: Operation.NONE,
    ActionKind.CONFLICT: _conflict_operation,
}


def operation_for(action: Action, resolution: Optional[Resolution] = None) -> Operation:
    return OPERATIONS[action.kind](action, resolution)


class PlanExecutor:
    """
    Executes plan actions under a concurrency cap with partial-failure semantics.

    Every write is atomic (temp file then rename), so an interrupted run leaves
    each target either fully written or untouched.
    """

    def __init__(
        self,
        baseline_repository: Optional[BaselineRepository] = None,
        concurrency: int = DEFAULT_CONCURRENCY,
    ):
        self.baseline_repository = baseline_repository
        self.concurrency = concurrency

    async def write_candidate(self, action: Action) -> str:
        """Write the item's candidate to its target, return the new baseline checksum."""
        item = action.item
        target = action.target_path
        await file_utils.ensure_directory(target.parent)

        if item.content is not None:
            await file_utils.write_file_atomic(target, item.content)
            return action.candidate_checksum or await file_utils.compute_checksum(item.content)

        if item.source_path is None:
            raise file_utils.FileWriteError(f"No candidate content for {action.key}")

        if item.source_path.is_dir():
            await file_utils.copy_tree_atomic(item.source_path, target)
            return await file_utils.compute_tree_checksum(target)

        data = await file_utils.read_file_bytes(item.source_path)
        await file_utils.write_file_atomic(target, data)
        return await file_utils.compute_checksum(data)

    async def execute_action(
        self,
        action: Action,
        resolution: Optional[Resolution],
        dry_run: bool,
        semaphore: asyncio.Semaphore,
    ) -> Tuple[ItemResult, Optional[BaselineUpdate]]:
        operation = operation_for(action, resolution)
        result = ItemResult(
            target_path=action.target_path,
            item_id=action.item.id,
            action=action.kind,
            operation=operation,
            resolution=resolution.kind if resolution else None,
        )
        if action.kind == ActionKind.CONFLICT and resolution is None:
            result.resolution = ResolutionKind.KEEP

        if operation == Operation.NONE:
            return result, None

        if dry_run:
            logger.debug(f"[dry-run] would {operation.value} {action.key}")
            result.checksum = action.candidate_checksum
            update = BaselineUpdate(
                target_path=action.target_path,
                checksum=action.candidate_checksum if operation == Operation.WRITE else None,
            )
            return result, update

        async with semaphore:
            try:
                if operation == Operation.WRITE:
                    checksum = await self.write_candidate(action)
                    result.checksum = checksum
                    update = BaselineUpdate(target_path=action.target_path, checksum=checksum)
                else:
                    await file_utils.remove_path(action.target_path)
                    update = BaselineUpdate(target_path=action.target_path, checksum=None)
            except Exception as e:
                logger.error(f"Failed to {operation.value} {action.key}: {e}")
                result.success = False
                result.error = str(e)
                return result, None

        logger.debug(f"{operation.value} {action.key}")
        return result, update

    async def execute(
        self,
        plan: Plan,
        resolutions: Optional[Mapping[str, Resolution]] = None,
        dry_run: bool = False,
    ) -> ExecutionResult:
        """
        Apply a plan.

        Args:
            plan: Plan to apply
            resolutions: target path key -> Resolution for conflict actions;
                a conflict without a resolution is kept
            dry_run: Compute the would-be result without touching the filesystem

        Returns:
            ExecutionResult with one ItemResult per action, in plan order
        """
        resolutions = resolutions or {}
        semaphore = asyncio.Semaphore(self.concurrency)

        with logfire.span("execute_plan", actions=len(plan.actions), dry_run=dry_run):
            outcomes = await asyncio.gather(
                *(
                    self.execute_action(action, resolutions.get(action.key), dry_run, semaphore)
                    for action in plan.actions
                )
            )

        results: List[ItemResult] = [result for result, _ in outcomes]
        updates: List[BaselineUpdate] = [update for _, update in outcomes if update is not None]
        execution = ExecutionResult(results=results, baseline_updates=updates, dry_run=dry_run)

        if not dry_run and self.baseline_repository is not None and updates:
            await self.baseline_repository.apply_updates(
                updates, (action.item for action in plan.actions)
            )
            await self.baseline_repository.save()

        logger.info(
            f"Executed plan{' (dry run)' if dry_run else ''}: {execution.applied} applied, "
            f"{execution.skipped} skipped, {execution.failed} failed"
        )
        return execution
