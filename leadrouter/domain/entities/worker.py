"""Worker entity — a salesperson who can own leads."""

from dataclasses import dataclass
from datetime import datetime


@dataclass
class Worker:
    id: int | None
    code: str
    full_name: str
    active: bool = True
    daily_load: int = 0
    total_load: int = 0
    last_assigned_at: datetime | None = None
    manual_order: int | None = None

    def record_assignment(self, assigned_at: datetime) -> None:
        """Mirror a committed assignment onto this in-memory copy."""
        self.daily_load += 1
        self.total_load += 1
        self.last_assigned_at = assigned_at
