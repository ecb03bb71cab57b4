"""Port interface for allocation rule persistence."""

from abc import ABC, abstractmethod

from leadrouter.domain.entities.allocation_rule import AllocationRule


class AllocationRuleRepository(ABC):
    @abstractmethod
    async def save(self, rule: AllocationRule) -> AllocationRule:
        ...

    @abstractmethod
    async def get_by_id(self, rule_id: int) -> AllocationRule | None:
        ...

    @abstractmethod
    async def get_all(self, active: bool | None = None) -> list[AllocationRule]:
        """All rules, newest first, optionally filtered on the active flag."""
        ...

    @abstractmethod
    async def list_active(self) -> list[AllocationRule]:
        """Active rules in stable store order (newest first)."""
        ...

    @abstractmethod
    async def update(self, rule: AllocationRule) -> AllocationRule:
        ...

    @abstractmethod
    async def deactivate(self, rule_id: int) -> AllocationRule | None:
        ...
