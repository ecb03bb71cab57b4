"""FastAPI dependency injection — wires adapters into the allocation engine."""

from __future__ import annotations

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from leadrouter.adapters.locking.run_lock import PostgresAdvisoryRunLock, ProcessRunLock
from leadrouter.adapters.persistence.database import engine, get_session
from leadrouter.adapters.persistence.repositories import (
    SqlAllocationRuleRepository,
    SqlAssignmentLogRepository,
    SqlLeadRepository,
    SqlUnitOfWork,
    SqlWorkerRepository,
)
from leadrouter.application.ports.run_lock import RunLock
from leadrouter.application.use_cases.allocate_leads import AllocationEngine
from leadrouter.config import settings

# Singleton run lock, shared by every request, the scheduler and the CLI
_run_lock: RunLock
if settings.use_advisory_lock:
    _run_lock = PostgresAdvisoryRunLock(engine, settings.allocation_lock_key)
else:
    _run_lock = ProcessRunLock()


def build_allocation_engine(session: AsyncSession) -> AllocationEngine:
    return AllocationEngine(
        lead_repo=SqlLeadRepository(session),
        worker_repo=SqlWorkerRepository(session),
        rule_repo=SqlAllocationRuleRepository(session),
        audit_repo=SqlAssignmentLogRepository(session),
        unit_of_work=SqlUnitOfWork(session),
        run_lock=_run_lock,
        single_item_timeout=settings.single_item_lock_timeout,
    )


def get_rule_repo(session: AsyncSession = Depends(get_session)) -> SqlAllocationRuleRepository:
    return SqlAllocationRuleRepository(session)


def get_worker_repo(session: AsyncSession = Depends(get_session)) -> SqlWorkerRepository:
    return SqlWorkerRepository(session)


def get_audit_repo(session: AsyncSession = Depends(get_session)) -> SqlAssignmentLogRepository:
    return SqlAssignmentLogRepository(session)


def get_unit_of_work(session: AsyncSession = Depends(get_session)) -> SqlUnitOfWork:
    return SqlUnitOfWork(session)


def get_allocation_engine(session: AsyncSession = Depends(get_session)) -> AllocationEngine:
    return build_allocation_engine(session)
