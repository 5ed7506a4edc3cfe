"""Named advisory lock guarding whole kit-sync invocations against each other.

The lock is a marker file created exclusively. A waiter does not sleep-poll:
it blocks on a watcher of the lock directory until the marker is deleted or a
short timeout elapses, then re-checks. Markers older than the staleness
timeout are force-cleared so a crashed holder cannot block forever.
"""

import asyncio
import os
import time
import uuid
from pathlib import Path
from types import TracebackType
from typing import Optional, Type

from loguru import logger
from watchfiles import Change, awatch

from kit_sync.config import DEFAULT_LOCK_STALE_TIMEOUT
from kit_sync.services.exceptions import LockTimeoutError


class SyncLock:
    """
    Async context manager for a named advisory lock.

    Usage:
        async with SyncLock(config.lock_dir, "sync"):
            ...
    """

    def __init__(
        self,
        lock_dir: Path,
        name: str = "sync",
        stale_timeout: float = DEFAULT_LOCK_STALE_TIMEOUT,
        poll_interval: float = 0.1,
        timeout: Optional[float] = None,
    ):
        self.lock_path = lock_dir / f"{name}.lock"
        self.name = name
        self.stale_timeout = stale_timeout
        self.poll_interval = poll_interval
        self.timeout = timeout
        self._held = False

    @property
    def held(self) -> bool:
        return self._held

    def _try_create(self) -> bool:
        try:
            fd = os.open(self.lock_path, os.O_CREAT | os.O_EXCL | os.O_WRONLY, 0o644)
        except FileExistsError:
            return False
        with os.fdopen(fd, "w") as f:
            f.write(f"{os.getpid()} {time.time()}\n")
        return True

    def _age(self) -> Optional[float]:
        try:
            return time.time() - self.lock_path.stat().st_mtime
        except FileNotFoundError:
            return None

    def _clear_if_stale(self) -> bool:
        age = self._age()
        if age is None or age <= self.stale_timeout:
            return False

        # claim the marker under a unique name so only one waiter clears it
        claimed = self.lock_path.with_name(f"{self.lock_path.name}.{uuid.uuid4().hex[:8]}.stale")
        try:
            os.replace(self.lock_path, claimed)
        except FileNotFoundError:
            return True

        try:
            age = time.time() - claimed.stat().st_mtime
            if age <= self.stale_timeout:
                # a new holder took the lock between the check and the claim
                try:
                    os.link(claimed, self.lock_path)
                except FileExistsError:
                    logger.debug(f"{self.name} lock re-taken while restoring it")
                return False
        finally:
            claimed.unlink(missing_ok=True)

        logger.warning(f"Removing stale {self.name} lock (age: {round(age)}s)")
        return True

    async def _wait_for_release(self, wait: float) -> None:
        """Block until the marker is deleted or `wait` seconds pass."""
        stop_event = asyncio.Event()
        loop = asyncio.get_running_loop()
        handle = loop.call_later(wait, stop_event.set)
        step_ms = max(int(self.poll_interval * 1000), 10)
        watcher = awatch(
            self.lock_path.parent,
            stop_event=stop_event,
            debounce=step_ms,
            step=min(step_ms, 50),
            rust_timeout=step_ms,
            yield_on_timeout=True,
            recursive=False,
        )
        try:
            async for changes in watcher:
                if any(
                    change == Change.deleted and Path(path).name == self.lock_path.name
                    for change, path in changes
                ):
                    return
                if not self.lock_path.exists():
                    return
        finally:
            handle.cancel()
            await watcher.aclose()

    async def acquire(self) -> None:
        """
        Acquire the lock, waiting for the current holder if necessary.

        Raises:
            LockTimeoutError: If `timeout` is set and elapses first
        """
        self.lock_path.parent.mkdir(parents=True, exist_ok=True)
        started = time.monotonic()

        while True:
            if self._try_create():
                self._held = True
                logger.debug(f"Acquired {self.name} lock: {self.lock_path}")
                return

            if self._clear_if_stale():
                continue

            wait = self.stale_timeout
            if self.timeout is not None:
                remaining = self.timeout - (time.monotonic() - started)
                if remaining <= 0:
                    raise LockTimeoutError(
                        f"Failed to acquire {self.name} lock: another operation may be in progress"
                    )
                wait = min(wait, remaining)

            age = self._age()
            if age is not None:
                # wake no later than the moment the marker turns stale
                wait = min(wait, max(self.stale_timeout - age, 0) + self.poll_interval)

            logger.debug(f"Waiting for {self.name} lock (up to {wait:.1f}s)")
            await self._wait_for_release(wait)

    async def release(self) -> None:
        if not self._held:
            return
        self.lock_path.unlink(missing_ok=True)
        self._held = False
        logger.debug(f"Released {self.name} lock")

    async def __aenter__(self) -> "SyncLock":
        await self.acquire()
        return self

    async def __aexit__(
        self,
        exc_type: Optional[Type[BaseException]],
        exc: Optional[BaseException],
        tb: Optional[TracebackType],
    ) -> None:
        await self.release()
