"""AllocationRule entity — routes a segment and/or product interest to owners."""

from dataclasses import dataclass, field
from datetime import datetime


@dataclass(frozen=True)
class AllocationRule:
    id: int | None
    code: str
    segment: str | None = None
    product_ids: frozenset[int] = field(default_factory=frozenset)
    owner_ids: tuple[int, ...] = ()
    active: bool = True
    created_at: datetime | None = None

    def has_segment(self) -> bool:
        return bool(self.segment and self.segment.strip())

    def has_product_filter(self) -> bool:
        return len(self.product_ids) > 0
