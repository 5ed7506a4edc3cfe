"""Utility functions for kit-sync."""

import sys
from pathlib import PurePath
from typing import Union

from loguru import logger

from kit_sync.config import SyncConfig


def setup_logging(config: SyncConfig, console_level: str = "WARNING") -> None:
    """
    Configure loguru sinks for kit-sync.

    - stderr sink at `console_level` so the CLI stays quiet by default
    - rotating file sink under the kit-sync home, skipped in the test env
    """
    logger.remove()
    logger.add(sys.stderr, level=console_level, colorize=True)

    if config.env != "test":
        logger.add(
            str(config.log_path),
            level=config.log_level,
            rotation="10 MB",
            retention=5,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )
    logger.debug(f"Logging configured (env={config.env}, home={config.home})")


def to_posix_key(path: Union[str, PurePath]) -> str:
    """Normalize a path to the POSIX string used as registry and plan key."""
    return PurePath(path).as_posix()
