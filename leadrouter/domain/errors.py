"""Allocation error taxonomy."""


class AllocationError(Exception):
    """Base class for allocation engine errors."""

    def __init__(self, message: str, details: dict | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {
            "error": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


class NoActiveWorkers(AllocationError):
    """The registry has no active worker; nothing can be assigned."""

    def __init__(self):
        super().__init__("No active sales workers available for allocation")


class StaleWorkItem(AllocationError):
    """The lead was assigned or closed by someone else after it was read."""

    def __init__(self, work_item_id: int):
        super().__init__(
            f"Lead {work_item_id} is no longer assignable",
            {"work_item_id": work_item_id},
        )


class PersistenceFailure(AllocationError):
    """Writing the lead or the worker counters failed."""


class AuditWriteFailure(AllocationError):
    """The assignment stands but its audit record could not be written."""


class WorkItemNotFound(AllocationError):
    def __init__(self, work_item_id: int):
        super().__init__(f"Lead {work_item_id} not found", {"work_item_id": work_item_id})


class WorkerUnavailable(AllocationError):
    """A manually chosen worker does not exist or is inactive."""

    def __init__(self, worker_id: int):
        super().__init__(
            f"Sales worker {worker_id} is not active", {"worker_id": worker_id}
        )


class RunLockTimeout(AllocationError):
    """Another allocation run held the lock for longer than the caller waits."""

    def __init__(self, timeout: float):
        super().__init__(
            f"Allocation lock not acquired within {timeout:g}s", {"timeout": timeout}
        )
