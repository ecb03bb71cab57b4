"""Tests for ProcessRunLock."""

import asyncio

import pytest

from leadrouter.adapters.locking.run_lock import ProcessRunLock
from leadrouter.domain.errors import RunLockTimeout


@pytest.mark.asyncio
async def test_holders_run_one_at_a_time():
    lock = ProcessRunLock()
    events: list[str] = []

    async def run(name: str):
        async with lock.hold():
            events.append(f"{name}:start")
            await asyncio.sleep(0.01)
            events.append(f"{name}:end")

    await asyncio.gather(run("a"), run("b"))
    assert events == ["a:start", "a:end", "b:start", "b:end"]


@pytest.mark.asyncio
async def test_lock_released_after_error():
    lock = ProcessRunLock()
    with pytest.raises(RuntimeError):
        async with lock.hold():
            raise RuntimeError("boom")

    async with lock.hold():
        pass


@pytest.mark.asyncio
async def test_bounded_wait_times_out_while_held():
    lock = ProcessRunLock()
    entered = asyncio.Event()
    release = asyncio.Event()

    async def long_run():
        async with lock.hold():
            entered.set()
            await release.wait()

    task = asyncio.create_task(long_run())
    await entered.wait()
    with pytest.raises(RunLockTimeout):
        async with lock.hold(timeout=0.05):
            pass

    release.set()
    await task
    async with lock.hold(timeout=0.05):
        pass


@pytest.mark.asyncio
async def test_bounded_wait_succeeds_when_free():
    lock = ProcessRunLock()
    async with lock.hold(timeout=0.05):
        pass
