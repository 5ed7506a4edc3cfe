"""Services package."""

from .exceptions import DuplicateTargetPathError, LockTimeoutError, RegistryError, SyncError

__all__ = [
    "DuplicateTargetPathError",
    "LockTimeoutError",
    "RegistryError",
    "SyncError",
]
