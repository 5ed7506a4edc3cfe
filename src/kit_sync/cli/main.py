"""Main CLI entry point for kit-sync."""  # pragma: no cover

from kit_sync.cli.app import app  # pragma: no cover

# Register commands
from kit_sync.cli.commands import status, sync  # pragma: no cover

__all__ = ["app", "status", "sync"]  # pragma: no cover

if __name__ == "__main__":  # pragma: no cover
    app()
