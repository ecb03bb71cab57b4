"""Run lock adapters — serialize engine runs across tasks and processes."""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine

from leadrouter.application.ports.run_lock import RunLock
from leadrouter.domain.errors import RunLockTimeout

logger = logging.getLogger(__name__)

TRY_LOCK_INTERVAL = 0.1


async def _acquire(lock: asyncio.Lock, timeout: float | None) -> None:
    if timeout is None:
        await lock.acquire()
        return
    try:
        await asyncio.wait_for(lock.acquire(), timeout)
    except asyncio.TimeoutError:
        raise RunLockTimeout(timeout) from None


class ProcessRunLock(RunLock):
    """In-process lock; enough for a single API worker and for tests."""

    def __init__(self):
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, timeout: float | None = None) -> AsyncIterator[None]:
        await _acquire(self._lock, timeout)
        try:
            yield
        finally:
            self._lock.release()


class PostgresAdvisoryRunLock(RunLock):
    """Session-level ``pg_advisory_lock`` held on a dedicated connection.

    The connection is separate from the unit-of-work session, so per-lead
    commits and rollbacks never release the lock mid-run. With a timeout the
    lock is polled with ``pg_try_advisory_lock`` until the deadline.
    """

    def __init__(self, engine: AsyncEngine, key: int):
        self._engine = engine
        self._key = key
        self._local = asyncio.Lock()

    @asynccontextmanager
    async def hold(self, timeout: float | None = None) -> AsyncIterator[None]:
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout

        await _acquire(self._local, timeout)
        try:
            async with self._engine.connect() as conn:
                if deadline is None:
                    await conn.execute(text("SELECT pg_advisory_lock(:key)"), {"key": self._key})
                else:
                    await self._try_until(conn, loop, deadline, timeout)
                logger.debug("Advisory lock %d acquired", self._key)
                try:
                    yield
                finally:
                    await conn.execute(
                        text("SELECT pg_advisory_unlock(:key)"), {"key": self._key}
                    )
                    logger.debug("Advisory lock %d released", self._key)
        finally:
            self._local.release()

    async def _try_until(self, conn, loop, deadline: float, timeout: float) -> None:
        while True:
            result = await conn.execute(
                text("SELECT pg_try_advisory_lock(:key)"), {"key": self._key}
            )
            if result.scalar():
                return
            remaining = deadline - loop.time()
            if remaining <= 0:
                logger.info("Advisory lock %d busy for %.1fs, giving up", self._key, timeout)
                raise RunLockTimeout(timeout)
            await asyncio.sleep(min(TRY_LOCK_INTERVAL, remaining))
