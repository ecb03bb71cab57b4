"""Port interface for the append-only assignment audit log."""

from abc import ABC, abstractmethod

from leadrouter.domain.entities.assignment_record import AssignmentRecord


class AssignmentLogRepository(ABC):
    @abstractmethod
    async def append(self, record: AssignmentRecord) -> AssignmentRecord:
        ...

    @abstractmethod
    async def list_for_work_item(self, work_item_id: int) -> list[AssignmentRecord]:
        ...
