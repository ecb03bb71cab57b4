"""WorkItem entity — a lead waiting for (or holding) an owner."""

from dataclasses import dataclass
from datetime import datetime

from leadrouter.domain.value_objects.enums import AssignmentMethod


@dataclass
class WorkItem:
    id: int | None
    segment: str | None = None
    product_id: int | None = None
    owner_id: int | None = None
    method: AssignmentMethod = AssignmentMethod.NONE
    assigned_at: datetime | None = None
    terminal: bool = False
    created_at: datetime | None = None

    def is_assignable(self) -> bool:
        """Owned or terminal (converted / closed) leads are never candidates."""
        return self.owner_id is None and not self.terminal

    def segment_or_none(self) -> str | None:
        """The segment as stored; blank counts as absent."""
        if self.segment is None or not self.segment.strip():
            return None
        return self.segment
