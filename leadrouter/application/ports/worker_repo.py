"""Port interface for the sales worker registry."""

from abc import ABC, abstractmethod
from datetime import datetime

from leadrouter.domain.entities.worker import Worker


class WorkerRepository(ABC):
    @abstractmethod
    async def get_by_id(self, worker_id: int) -> Worker | None:
        ...

    @abstractmethod
    async def get_all(self) -> list[Worker]:
        ...

    @abstractmethod
    async def list_active(self) -> list[Worker]:
        ...

    @abstractmethod
    async def increment_load(self, worker_id: int, assigned_at: datetime) -> None:
        """Atomically add one to daily/total load and stamp last_assigned_at.

        Must be a single arithmetic UPDATE (or CAS loop), never
        read-then-write.
        """
        ...

    @abstractmethod
    async def reset_daily_loads(self) -> int:
        """Zero every worker's daily load. Returns the number of rows touched."""
        ...
