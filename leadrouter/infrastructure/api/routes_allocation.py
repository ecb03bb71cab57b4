"""Allocation endpoints — batch run, single-lead assign, manual override."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel

from leadrouter.application.ports.assignment_log_repo import AssignmentLogRepository
from leadrouter.application.ports.run_lock import UnitOfWork
from leadrouter.application.ports.worker_repo import WorkerRepository
from leadrouter.application.use_cases.allocate_leads import (
    AllocationEngine,
    AssignmentOutcome,
    auto_assign_after_create,
)
from leadrouter.config import settings
from leadrouter.domain.errors import (
    NoActiveWorkers,
    PersistenceFailure,
    StaleWorkItem,
    WorkerUnavailable,
    WorkItemNotFound,
)
from leadrouter.domain.policies.candidate_selection import selection_key
from leadrouter.infrastructure.api.dependencies import (
    get_allocation_engine,
    get_audit_repo,
    get_unit_of_work,
    get_worker_repo,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/allocation", tags=["allocation"])


class ManualAssignRequest(BaseModel):
    worker_id: int


@router.post("/run")
async def run_batch(
    limit: int | None = Query(default=None, ge=1),
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Distribute unassigned leads: matching rules first, then lowest load."""
    try:
        summary = await engine.run_batch(limit or settings.allocation_batch_limit)
    except NoActiveWorkers as e:
        raise HTTPException(status_code=409, detail=e.to_dict())

    return {
        "status": "ok",
        "total": summary.total,
        "assigned": summary.assigned,
        "assigned_by_rule": summary.assigned_by_rule,
        "assigned_by_fallback": summary.assigned_by_fallback,
        "skipped": summary.skipped,
        "results": [_outcome_to_dict(o) for o in summary.outcomes],
    }


@router.post("/leads/{lead_id}/assign")
async def assign_lead(
    lead_id: int,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Auto-assign one lead (the lead-creation trigger)."""
    outcome = await engine.assign_one(lead_id)
    if outcome.error:
        return {"status": "error", "error": outcome.error, **_outcome_to_dict(outcome)}
    return {"status": "ok", **_outcome_to_dict(outcome)}


@router.post("/leads/{lead_id}/created", status_code=202)
async def lead_created(
    lead_id: int,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Notification from the lead-creation path. Always accepted."""
    if not settings.auto_assign_on_create:
        return {"lead_id": lead_id, "assigned": False, "auto_assign": False}
    assigned = await auto_assign_after_create(engine, lead_id)
    return {"lead_id": lead_id, "assigned": assigned, "auto_assign": True}


@router.post("/leads/{lead_id}/manual")
async def assign_lead_manually(
    lead_id: int,
    body: ManualAssignRequest,
    engine: AllocationEngine = Depends(get_allocation_engine),
):
    """Operator picks the owner of an unassigned lead."""
    try:
        outcome = await engine.assign_manually(lead_id, body.worker_id)
    except WorkItemNotFound as e:
        raise HTTPException(status_code=404, detail=e.to_dict())
    except (StaleWorkItem, WorkerUnavailable) as e:
        raise HTTPException(status_code=409, detail=e.to_dict())
    except PersistenceFailure as e:
        logger.error("Manual assignment of lead %s failed: %s", lead_id, e.message)
        raise HTTPException(status_code=500, detail=e.to_dict())

    return {"status": "ok", **_outcome_to_dict(outcome)}


@router.get("/leads/{lead_id}/history")
async def assignment_history(
    lead_id: int,
    audit_repo: AssignmentLogRepository = Depends(get_audit_repo),
):
    records = await audit_repo.list_for_work_item(lead_id)
    return {
        "lead_id": lead_id,
        "total": len(records),
        "records": [
            {
                "id": r.id,
                "sales_employee_id": r.owner_id,
                "method": r.method.value,
                "reason": r.reason,
                "created_at": r.created_at.isoformat() if r.created_at else None,
            }
            for r in records
        ],
    }


@router.get("/workers")
async def list_workers(worker_repo: WorkerRepository = Depends(get_worker_repo)):
    """Workers in the order the engine would pick them (inactive last)."""
    workers = await worker_repo.get_all()
    workers.sort(key=lambda w: (not w.active, selection_key(w)))
    return {
        "total": len(workers),
        "workers": [
            {
                "id": w.id,
                "employee_code": w.code,
                "full_name": w.full_name,
                "is_active": w.active,
                "daily_lead_count": w.daily_load,
                "total_lead_count": w.total_load,
                "last_assigned_at": w.last_assigned_at.isoformat() if w.last_assigned_at else None,
                "round_robin_order": w.manual_order,
            }
            for w in workers
        ],
    }


@router.post("/workers/reset-daily")
async def reset_daily_counts(
    worker_repo: WorkerRepository = Depends(get_worker_repo),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    count = await worker_repo.reset_daily_loads()
    await uow.commit()
    logger.info("Daily lead counters reset for %d workers", count)
    return {"status": "ok", "reset": count}


def _outcome_to_dict(o: AssignmentOutcome) -> dict:
    return {
        "lead_id": o.work_item_id,
        "assigned": o.assigned,
        "sales_employee_id": o.owner_id,
        "method": o.method.value,
        "reason": o.reason,
        "audit_logged": o.audit_logged,
    }
