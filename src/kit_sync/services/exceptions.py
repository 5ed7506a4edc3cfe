from typing import List


class SyncError(Exception):
    """Base class for kit-sync errors"""

    pass


class DuplicateTargetPathError(SyncError):
    """Raised when two items of one plan share a target path"""

    def __init__(self, target_path: str, item_ids: List[str]):
        self.target_path = target_path
        self.item_ids = item_ids
        super().__init__(
            f"Duplicate target path {target_path} for items: {', '.join(item_ids)}"
        )


class LockTimeoutError(SyncError):
    """Raised when an advisory lock cannot be acquired in time"""

    pass


class RegistryError(SyncError):
    """Raised when the baseline registry cannot be read or written"""

    pass
