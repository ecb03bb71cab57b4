"""Port interface for the lead (work item) source."""

from abc import ABC, abstractmethod
from datetime import datetime

from leadrouter.domain.entities.work_item import WorkItem
from leadrouter.domain.value_objects.enums import AssignmentMethod


class LeadRepository(ABC):
    @abstractmethod
    async def get_by_id(self, work_item_id: int) -> WorkItem | None:
        ...

    @abstractmethod
    async def list_unassigned(self, limit: int) -> list[WorkItem]:
        """Return at most *limit* unassigned, non-terminal leads, oldest first."""
        ...

    @abstractmethod
    async def claim(
        self,
        work_item_id: int,
        worker_id: int,
        method: AssignmentMethod,
        assigned_at: datetime,
    ) -> bool:
        """Set the owner only if the lead is still unassigned and non-terminal.

        Returns False when the lead was claimed or closed in the meantime.
        """
        ...

    @abstractmethod
    async def release(self, work_item_id: int, worker_id: int) -> None:
        """Undo a claim made by :meth:`claim` for *worker_id*."""
        ...
