"""SQLAlchemy repository implementations."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from leadrouter.adapters.persistence.models import (
    AllocationRuleModel,
    AssignmentLogModel,
    LeadModel,
    SalesWorkerModel,
)
from leadrouter.application.ports.allocation_rule_repo import AllocationRuleRepository
from leadrouter.application.ports.assignment_log_repo import AssignmentLogRepository
from leadrouter.application.ports.lead_repo import LeadRepository
from leadrouter.application.ports.run_lock import UnitOfWork
from leadrouter.application.ports.worker_repo import WorkerRepository
from leadrouter.domain.entities.allocation_rule import AllocationRule
from leadrouter.domain.entities.assignment_record import AssignmentRecord
from leadrouter.domain.entities.work_item import WorkItem
from leadrouter.domain.entities.worker import Worker
from leadrouter.domain.value_objects.enums import AssignmentMethod, LeadStatus

OPEN_STATUSES = [s.value for s in LeadStatus if s.is_open()]

# ─── Mappers ─────────────────────────────────────────────────────────


def _worker_to_domain(m: SalesWorkerModel) -> Worker:
    return Worker(
        id=m.id,
        code=m.employee_code,
        full_name=m.full_name,
        active=m.is_active,
        daily_load=m.daily_lead_count or 0,
        total_load=m.total_lead_count or 0,
        last_assigned_at=m.last_assigned_at,
        manual_order=m.round_robin_order,
    )


def _rule_to_domain(m: AllocationRuleModel) -> AllocationRule:
    return AllocationRule(
        id=m.id,
        code=m.rule_code,
        segment=m.customer_group,
        product_ids=frozenset(m.product_group_ids or []),
        owner_ids=tuple(m.assigned_sales_ids or []),
        active=m.is_active,
        created_at=m.created_at,
    )


def _lead_to_domain(m: LeadModel) -> WorkItem:
    return WorkItem(
        id=m.id,
        segment=m.customer_group,
        product_id=m.interested_product_group_id,
        owner_id=m.assigned_sales_id,
        method=AssignmentMethod(m.assignment_method or AssignmentMethod.NONE.value),
        assigned_at=m.assigned_at,
        terminal=m.is_converted or m.status not in OPEN_STATUSES,
        created_at=m.created_at,
    )


def _log_to_domain(m: AssignmentLogModel) -> AssignmentRecord:
    return AssignmentRecord(
        id=m.id,
        work_item_id=m.lead_id,
        owner_id=m.sales_employee_id,
        method=AssignmentMethod(m.method),
        reason=m.reason,
        created_at=m.created_at,
    )


# ─── Repositories ────────────────────────────────────────────────────


class SqlWorkerRepository(WorkerRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, worker_id: int) -> Worker | None:
        m = await self._s.get(SalesWorkerModel, worker_id)
        return _worker_to_domain(m) if m else None

    async def get_all(self) -> list[Worker]:
        result = await self._s.execute(select(SalesWorkerModel).order_by(SalesWorkerModel.id))
        return [_worker_to_domain(m) for m in result.scalars()]

    async def list_active(self) -> list[Worker]:
        result = await self._s.execute(
            select(SalesWorkerModel)
            .where(SalesWorkerModel.is_active.is_(True))
            .order_by(SalesWorkerModel.id)
        )
        return [_worker_to_domain(m) for m in result.scalars()]

    async def increment_load(self, worker_id: int, assigned_at: datetime) -> None:
        result = await self._s.execute(
            update(SalesWorkerModel)
            .where(SalesWorkerModel.id == worker_id)
            .values(
                daily_lead_count=SalesWorkerModel.daily_lead_count + 1,
                total_lead_count=SalesWorkerModel.total_lead_count + 1,
                last_assigned_at=assigned_at,
            )
        )
        if result.rowcount != 1:
            raise LookupError(f"Sales worker {worker_id} not found")
        await self._s.flush()

    async def reset_daily_loads(self) -> int:
        result = await self._s.execute(update(SalesWorkerModel).values(daily_lead_count=0))
        await self._s.flush()
        return result.rowcount


class SqlAllocationRuleRepository(AllocationRuleRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def save(self, rule: AllocationRule) -> AllocationRule:
        m = AllocationRuleModel(
            rule_code=rule.code,
            customer_group=rule.segment,
            product_group_ids=sorted(rule.product_ids),
            assigned_sales_ids=list(rule.owner_ids),
            is_active=rule.active,
        )
        self._s.add(m)
        await self._s.flush()
        await self._s.refresh(m)
        return _rule_to_domain(m)

    async def get_by_id(self, rule_id: int) -> AllocationRule | None:
        m = await self._s.get(AllocationRuleModel, rule_id)
        return _rule_to_domain(m) if m else None

    async def get_all(self, active: bool | None = None) -> list[AllocationRule]:
        stmt = select(AllocationRuleModel)
        if active is not None:
            stmt = stmt.where(AllocationRuleModel.is_active.is_(active))
        result = await self._s.execute(
            stmt.order_by(AllocationRuleModel.created_at.desc(), AllocationRuleModel.id.desc())
        )
        return [_rule_to_domain(m) for m in result.scalars()]

    async def list_active(self) -> list[AllocationRule]:
        return await self.get_all(active=True)

    async def update(self, rule: AllocationRule) -> AllocationRule:
        await self._s.execute(
            update(AllocationRuleModel)
            .where(AllocationRuleModel.id == rule.id)
            .values(
                rule_code=rule.code,
                customer_group=rule.segment,
                product_group_ids=sorted(rule.product_ids),
                assigned_sales_ids=list(rule.owner_ids),
                is_active=rule.active,
            )
        )
        await self._s.flush()
        return rule

    async def deactivate(self, rule_id: int) -> AllocationRule | None:
        m = await self._s.get(AllocationRuleModel, rule_id)
        if m is None:
            return None
        m.is_active = False
        await self._s.flush()
        return _rule_to_domain(m)


class SqlLeadRepository(LeadRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def get_by_id(self, work_item_id: int) -> WorkItem | None:
        m = await self._s.get(LeadModel, work_item_id)
        return _lead_to_domain(m) if m else None

    async def list_unassigned(self, limit: int) -> list[WorkItem]:
        result = await self._s.execute(
            select(LeadModel)
            .where(
                LeadModel.assigned_sales_id.is_(None),
                LeadModel.is_converted.is_(False),
                LeadModel.status.in_(OPEN_STATUSES),
            )
            .order_by(LeadModel.created_at, LeadModel.id)
            .limit(limit)
        )
        return [_lead_to_domain(m) for m in result.scalars()]

    async def claim(
        self,
        work_item_id: int,
        worker_id: int,
        method: AssignmentMethod,
        assigned_at: datetime,
    ) -> bool:
        result = await self._s.execute(
            update(LeadModel)
            .where(
                LeadModel.id == work_item_id,
                LeadModel.assigned_sales_id.is_(None),
                LeadModel.is_converted.is_(False),
                LeadModel.status.in_(OPEN_STATUSES),
            )
            .values(
                assigned_sales_id=worker_id,
                assignment_method=method.value,
                assigned_at=assigned_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()
        return result.rowcount == 1

    async def release(self, work_item_id: int, worker_id: int) -> None:
        await self._s.execute(
            update(LeadModel)
            .where(
                LeadModel.id == work_item_id,
                LeadModel.assigned_sales_id == worker_id,
            )
            .values(
                assigned_sales_id=None,
                assignment_method=AssignmentMethod.NONE.value,
                assigned_at=None,
            )
            .execution_options(synchronize_session=False)
        )
        await self._s.flush()


class SqlAssignmentLogRepository(AssignmentLogRepository):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def append(self, record: AssignmentRecord) -> AssignmentRecord:
        m = AssignmentLogModel(
            lead_id=record.work_item_id,
            sales_employee_id=record.owner_id,
            method=record.method.value,
            reason=record.reason,
        )
        if record.created_at is not None:
            m.created_at = record.created_at
        self._s.add(m)
        await self._s.flush()
        record.id = m.id
        return record

    async def list_for_work_item(self, work_item_id: int) -> list[AssignmentRecord]:
        result = await self._s.execute(
            select(AssignmentLogModel)
            .where(AssignmentLogModel.lead_id == work_item_id)
            .order_by(AssignmentLogModel.id)
        )
        return [_log_to_domain(m) for m in result.scalars()]


class SqlUnitOfWork(UnitOfWork):
    def __init__(self, session: AsyncSession):
        self._s = session

    async def commit(self) -> None:
        await self._s.commit()

    async def rollback(self) -> None:
        await self._s.rollback()
