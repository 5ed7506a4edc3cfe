"""CLI commands for kit-sync."""

from . import status, sync

__all__ = ["status", "sync"]
