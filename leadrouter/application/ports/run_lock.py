"""Port interfaces for run serialization and per-item transactions."""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager


class RunLock(ABC):
    @abstractmethod
    def hold(self, timeout: float | None = None) -> AbstractAsyncContextManager[None]:
        """Context manager held for the duration of one engine run.

        Only one batch (or single-item assignment) may read and bump worker
        counters at a time. Waits forever when *timeout* is None, otherwise
        raises ``RunLockTimeout`` after *timeout* seconds.
        """
        ...


class UnitOfWork(ABC):
    @abstractmethod
    async def commit(self) -> None:
        ...

    @abstractmethod
    async def rollback(self) -> None:
        ...
