"""Run lead allocation from the command line (cron, ops).

Usage:
    python -m leadrouter.tools.allocate run-batch
    python -m leadrouter.tools.allocate run-batch --limit 100
    python -m leadrouter.tools.allocate reset-daily
    python -m leadrouter.tools.allocate status
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from sqlalchemy import func, select

from leadrouter.adapters.persistence.database import async_session_factory
from leadrouter.adapters.persistence.models import LeadModel, SalesWorkerModel
from leadrouter.adapters.persistence.repositories import OPEN_STATUSES
from leadrouter.adapters.scheduler.allocation_scheduler import (
    reset_daily_loads,
    run_allocation_batch,
)
from leadrouter.config import settings

logging.basicConfig(level=logging.INFO, format="%(levelname)s | %(message)s")
logger = logging.getLogger(__name__)


async def _print_status() -> None:
    """Print worker loads and the size of the unassigned backlog."""
    async with async_session_factory() as session:
        workers = (
            await session.execute(select(SalesWorkerModel).order_by(SalesWorkerModel.id))
        ).scalars().all()
        backlog = (
            await session.execute(
                select(func.count(LeadModel.id)).where(
                    LeadModel.assigned_sales_id.is_(None),
                    LeadModel.is_converted.is_(False),
                    LeadModel.status.in_(OPEN_STATUSES),
                )
            )
        ).scalar() or 0

    print(f"\n{'='*50}")
    print("ALLOCATION STATUS")
    print(f"{'='*50}")
    print(f"Unassigned leads: {backlog}")
    print(f"Active workers:   {sum(1 for w in workers if w.is_active)}/{len(workers)}")
    for w in workers:
        flag = " " if w.is_active else "x"
        print(
            f" [{flag}] {w.employee_code:<10} today={w.daily_lead_count:<4} "
            f"total={w.total_lead_count:<6} last={w.last_assigned_at or '-'}"
        )
    print(f"{'='*50}\n")


async def _run_batch(limit: int) -> int:
    summary = await run_allocation_batch(limit)
    if summary is None:
        logger.error("No active sales workers, nothing was assigned")
        return 2
    print(
        f"total={summary.total} rule={summary.assigned_by_rule} "
        f"fallback={summary.assigned_by_fallback} skipped={summary.skipped}"
    )
    return 0


def main():
    parser = argparse.ArgumentParser(description="Allocate CRM leads to sales workers")
    sub = parser.add_subparsers(dest="command", required=True)

    batch = sub.add_parser("run-batch", help="Assign unassigned leads, oldest first")
    batch.add_argument(
        "--limit", type=int, default=settings.allocation_batch_limit,
        help=f"Maximum leads per pass (default: {settings.allocation_batch_limit})",
    )
    sub.add_parser("reset-daily", help="Zero every worker's daily lead counter")
    sub.add_parser("status", help="Show worker loads and the unassigned backlog")

    args = parser.parse_args()

    if args.command == "run-batch":
        if args.limit < 1:
            logger.error("--limit must be at least 1")
            sys.exit(1)
        sys.exit(asyncio.run(_run_batch(args.limit)))
    elif args.command == "reset-daily":
        asyncio.run(reset_daily_loads())
    else:
        asyncio.run(_print_status())


if __name__ == "__main__":
    main()
