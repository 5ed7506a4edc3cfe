"""Service for reading the current on-disk state of item target paths."""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from loguru import logger

from kit_sync import file_utils
from kit_sync.config import DEFAULT_CONCURRENCY
from kit_sync.ignore_utils import list_content_files
from kit_sync.schemas import Item, LocalState


@dataclass
class ScanResult:
    """Result of scanning a set of target paths."""

    # target key -> LocalState
    states: Dict[str, LocalState] = field(default_factory=dict)
    # target key -> error message
    errors: Dict[str, str] = field(default_factory=dict)


class LocalStateScanner:
    """
    Reads target paths and computes their checksums.
    The filesystem is treated as the source of truth for local state.
    """

    def __init__(self, semaphore: Optional[asyncio.Semaphore] = None):
        self.semaphore = semaphore or asyncio.Semaphore(DEFAULT_CONCURRENCY)

    async def get_local_state(self, item: Item) -> LocalState:
        """
        Get the local state of one item's target path.

        Directory-backed items are hashed as trees, everything else as a file.
        A directory holding no content files (only hidden or ignored entries)
        counts as absent.

        Raises:
            FileError: If the target exists but cannot be read
        """
        target = item.target_path
        async with self.semaphore:
            if not target.exists():
                return LocalState(target_path=target, exists=False)

            if item.is_directory or target.is_dir():
                if target.is_dir() and not await asyncio.to_thread(list_content_files, target):
                    return LocalState(target_path=target, exists=False)
                checksum = await file_utils.compute_tree_checksum(target)
            else:
                checksum = await file_utils.compute_file_checksum(target)

        logger.debug(f"local {item.key} ({checksum[:8]})")
        return LocalState(target_path=target, exists=True, checksum=checksum)

    async def get_candidate_checksum(self, item: Item) -> Optional[str]:
        """Checksum of the item's candidate content, None if it has no candidate."""
        if item.content is not None:
            return await file_utils.compute_checksum(item.content)
        if item.source_path is None:
            return None
        async with self.semaphore:
            return await file_utils.compute_path_checksum(item.source_path)

    async def scan(self, items: Iterable[Item]) -> ScanResult:
        """Scan all target paths concurrently, collecting per-item errors."""
        result = ScanResult()
        items = list(items)

        outcomes = await asyncio.gather(
            *(self.get_local_state(item) for item in items), return_exceptions=True
        )
        for item, outcome in zip(items, outcomes):
            if isinstance(outcome, BaseException):
                if not isinstance(outcome, Exception):
                    raise outcome
                result.errors[item.key] = str(outcome)
                logger.error(f"Failed to read {item.key}: {outcome}")
            else:
                result.states[item.key] = outcome

        if result.errors:
            logger.warning(f"Encountered {len(result.errors)} errors while scanning")
        return result
