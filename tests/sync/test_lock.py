"""Tests for the sync advisory lock."""

import asyncio
import os
import time
from pathlib import Path

import pytest

from kit_sync.services.exceptions import LockTimeoutError
from kit_sync.sync import SyncLock


@pytest.mark.asyncio
async def test_acquire_and_release(tmp_path: Path):
    lock = SyncLock(tmp_path / "locks", "sync")

    async with lock:
        assert lock.held
        assert lock.lock_path.exists()
        assert lock.lock_path.read_text().split()[0] == str(os.getpid())

    assert not lock.held
    assert not lock.lock_path.exists()


@pytest.mark.asyncio
async def test_release_is_idempotent(tmp_path: Path):
    lock = SyncLock(tmp_path, "sync")
    await lock.release()
    await lock.acquire()
    await lock.release()
    await lock.release()
    assert not lock.lock_path.exists()


@pytest.mark.asyncio
async def test_released_on_error(tmp_path: Path):
    lock = SyncLock(tmp_path, "sync")
    with pytest.raises(RuntimeError):
        async with lock:
            raise RuntimeError("boom")
    assert not lock.lock_path.exists()


@pytest.mark.asyncio
async def test_waiter_blocks_until_release(tmp_path: Path):
    holder = SyncLock(tmp_path, "sync", poll_interval=0.05)
    waiter = SyncLock(tmp_path, "sync", poll_interval=0.05, timeout=10)
    events = []

    await holder.acquire()

    async def wait_for_lock():
        async with waiter:
            events.append("waiter acquired")

    task = asyncio.create_task(wait_for_lock())
    await asyncio.sleep(0.3)
    assert events == []

    events.append("holder released")
    await holder.release()
    await asyncio.wait_for(task, timeout=10)

    assert events == ["holder released", "waiter acquired"]
    assert not waiter.lock_path.exists()


@pytest.mark.asyncio
async def test_independent_names_do_not_block(tmp_path: Path):
    async with SyncLock(tmp_path, "sync"):
        async with SyncLock(tmp_path, "registry", timeout=1):
            pass


@pytest.mark.asyncio
async def test_timeout(tmp_path: Path):
    holder = SyncLock(tmp_path, "sync")
    await holder.acquire()
    try:
        waiter = SyncLock(tmp_path, "sync", poll_interval=0.05, timeout=0.3)
        started = time.monotonic()
        with pytest.raises(LockTimeoutError):
            await waiter.acquire()
        assert time.monotonic() - started < 5
        assert not waiter.held
    finally:
        await holder.release()


@pytest.mark.asyncio
async def test_stale_lock_is_cleared(tmp_path: Path):
    lock_path = tmp_path / "sync.lock"
    lock_path.write_text("99999 0\n")
    old = time.time() - 120
    os.utime(lock_path, (old, old))

    lock = SyncLock(tmp_path, "sync", stale_timeout=30, timeout=5)
    await lock.acquire()
    try:
        assert lock.held
        assert lock_path.read_text().split()[0] == str(os.getpid())
    finally:
        await lock.release()
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_waiter_takes_over_when_holder_goes_stale(tmp_path: Path):
    # the holder never releases, the waiter wakes when the marker turns stale
    holder = SyncLock(tmp_path, "sync", stale_timeout=0.5)
    await holder.acquire()

    waiter = SyncLock(tmp_path, "sync", stale_timeout=0.5, poll_interval=0.05, timeout=10)
    await asyncio.wait_for(waiter.acquire(), timeout=10)
    assert waiter.held
    await waiter.release()


@pytest.mark.asyncio
async def test_fresh_lock_taken_after_stale_check_survives(tmp_path: Path, monkeypatch):
    holder = SyncLock(tmp_path, "sync", stale_timeout=30)
    await holder.acquire()
    marker = holder.lock_path.read_text()

    # the waiter saw an old marker, but a live holder replaced it before the clear
    waiter = SyncLock(tmp_path, "sync", stale_timeout=30)
    monkeypatch.setattr(waiter, "_age", lambda: 999.0)

    assert waiter._clear_if_stale() is False
    assert holder.lock_path.read_text() == marker
    assert [p.name for p in tmp_path.iterdir()] == ["sync.lock"]

    await holder.release()
    assert list(tmp_path.iterdir()) == []
