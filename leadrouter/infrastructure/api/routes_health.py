"""Health endpoint — database reachability, allocatable workforce, scheduled jobs."""

from fastapi import APIRouter, Depends
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from leadrouter.adapters.persistence.database import get_session
from leadrouter.adapters.persistence.models import SalesWorkerModel
from leadrouter.adapters.scheduler.allocation_scheduler import allocation_scheduler
from leadrouter.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(session: AsyncSession = Depends(get_session)):
    active_workers = None
    try:
        active_workers = (
            await session.execute(
                select(func.count(SalesWorkerModel.id)).where(SalesWorkerModel.is_active.is_(True))
            )
        ).scalar() or 0
        db_status = "connected"
    except Exception as e:
        db_status = f"error: {e}"

    # Zero active workers means nothing can be allocated
    healthy = db_status == "connected" and bool(active_workers)
    return {
        "status": "ok" if healthy else "degraded",
        "database": db_status,
        "active_workers": active_workers,
        "scheduler": allocation_scheduler.list_jobs() if settings.scheduler_enabled else [],
        "service": "LeadRouter - lead allocation engine",
    }
