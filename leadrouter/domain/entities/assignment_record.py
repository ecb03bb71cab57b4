"""AssignmentRecord entity — one audit-log line per committed assignment."""

from dataclasses import dataclass
from datetime import datetime

from leadrouter.domain.value_objects.enums import AssignmentMethod


@dataclass
class AssignmentRecord:
    id: int | None
    work_item_id: int
    owner_id: int
    method: AssignmentMethod
    reason: str
    created_at: datetime | None = None
