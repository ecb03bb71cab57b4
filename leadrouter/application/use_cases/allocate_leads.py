"""AllocationEngine — rule match → load-balanced pick → commit → audit."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable

from leadrouter.application.ports.allocation_rule_repo import AllocationRuleRepository
from leadrouter.application.ports.assignment_log_repo import AssignmentLogRepository
from leadrouter.application.ports.lead_repo import LeadRepository
from leadrouter.application.ports.run_lock import RunLock, UnitOfWork
from leadrouter.application.ports.worker_repo import WorkerRepository
from leadrouter.domain.entities.allocation_rule import AllocationRule
from leadrouter.domain.entities.assignment_record import AssignmentRecord
from leadrouter.domain.entities.work_item import WorkItem
from leadrouter.domain.entities.worker import Worker
from leadrouter.domain.errors import (
    AllocationError,
    AuditWriteFailure,
    NoActiveWorkers,
    PersistenceFailure,
    StaleWorkItem,
    WorkerUnavailable,
    WorkItemNotFound,
)
from leadrouter.domain.policies.candidate_selection import active_pool, pick_candidate
from leadrouter.domain.policies.rule_matching import match_rule
from leadrouter.domain.value_objects.enums import AssignmentMethod

logger = logging.getLogger(__name__)

FALLBACK_REASON = "fallback: lowest current load"
MANUAL_REASON = "manual assignment"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class AssignmentOutcome:
    """Summary of one lead's allocation attempt."""

    work_item_id: int
    assigned: bool
    owner_id: int | None = None
    method: AssignmentMethod = AssignmentMethod.NONE
    reason: str | None = None
    audit_logged: bool = False
    error: str | None = None


@dataclass
class BatchSummary:
    total: int = 0
    assigned_by_rule: int = 0
    assigned_by_fallback: int = 0
    skipped: int = 0
    outcomes: list[AssignmentOutcome] = field(
        default_factory=list, compare=False, repr=False
    )

    @property
    def assigned(self) -> int:
        return self.assigned_by_rule + self.assigned_by_fallback

    def record(self, outcome: AssignmentOutcome) -> None:
        self.outcomes.append(outcome)
        if not outcome.assigned:
            self.skipped += 1
        elif outcome.method == AssignmentMethod.RULE_BASED:
            self.assigned_by_rule += 1
        else:
            self.assigned_by_fallback += 1


@dataclass(frozen=True)
class _Decision:
    worker: Worker
    method: AssignmentMethod
    reason: str


class AllocationEngine:
    """Decides which active sales worker owns each unassigned lead.

    Every entry point runs under the run lock, so worker counters read by one
    run are never stale with respect to another run's commits.
    """

    def __init__(
        self,
        lead_repo: LeadRepository,
        worker_repo: WorkerRepository,
        rule_repo: AllocationRuleRepository,
        audit_repo: AssignmentLogRepository,
        unit_of_work: UnitOfWork,
        run_lock: RunLock,
        clock: Callable[[], datetime] = _utcnow,
        single_item_timeout: float | None = None,
    ):
        self._leads = lead_repo
        self._workers = worker_repo
        self._rules = rule_repo
        self._audit = audit_repo
        self._uow = unit_of_work
        self._lock = run_lock
        self._clock = clock
        self._single_item_timeout = single_item_timeout

    # ─── Single-item mode ────────────────────────────────────────────

    async def assign_one(self, work_item_id: int) -> AssignmentOutcome:
        """Assign one freshly created lead. Never raises.

        Failures are logged and reported through ``outcome.error`` so the
        lead-creation path is never blocked by allocation problems. The run
        lock is awaited for at most ``single_item_timeout`` seconds; a lead
        that misses it stays unassigned for the next batch.
        """
        try:
            async with self._lock.hold(timeout=self._single_item_timeout):
                item = await self._leads.get_by_id(work_item_id)
                if item is None:
                    raise WorkItemNotFound(work_item_id)
                if not item.is_assignable():
                    logger.info("Lead %s already owned or closed, nothing to do", work_item_id)
                    return AssignmentOutcome(
                        work_item_id=work_item_id,
                        assigned=False,
                        owner_id=item.owner_id,
                        method=item.method,
                    )

                workers = await self._workers.list_active()
                if not workers:
                    raise NoActiveWorkers()
                rules = await self._rules.list_active()
                return await self._allocate(item, rules, workers)

        except AllocationError as e:
            logger.warning("Auto-assign of lead %s failed: %s", work_item_id, e.message)
            return AssignmentOutcome(work_item_id=work_item_id, assigned=False, error=e.message)
        except Exception as e:
            logger.exception("Error auto-assigning lead %s", work_item_id)
            return AssignmentOutcome(work_item_id=work_item_id, assigned=False, error=str(e))

    # ─── Batch mode ──────────────────────────────────────────────────

    async def run_batch(self, limit: int) -> BatchSummary:
        """Allocate up to *limit* unassigned leads, oldest first.

        Rules and workers are read once; worker load/timestamp are updated in
        memory after every commit so later leads see the new load.

        Raises:
            NoActiveWorkers: before touching any lead.
            ValueError: if limit < 1.
        """
        if limit < 1:
            raise ValueError("Batch limit must be at least 1")

        async with self._lock.hold():
            workers = await self._workers.list_active()
            if not workers:
                logger.warning("Batch aborted: no active sales workers")
                raise NoActiveWorkers()

            rules = await self._rules.list_active()
            items = await self._leads.list_unassigned(limit)
            logger.info(
                "Batch allocating %d leads (%d rules, %d active workers)",
                len(items), len(rules), len(workers),
            )

            summary = BatchSummary(total=len(items))
            for item in items:
                summary.record(await self._allocate_in_batch(item, rules, workers))

        logger.info(
            "Batch complete: %d/%d assigned (rule=%d, fallback=%d, skipped=%d)",
            summary.assigned, summary.total,
            summary.assigned_by_rule, summary.assigned_by_fallback, summary.skipped,
        )
        return summary

    async def _allocate_in_batch(
        self, item: WorkItem, rules: list[AllocationRule], workers: list[Worker]
    ) -> AssignmentOutcome:
        if not item.is_assignable():
            return AssignmentOutcome(work_item_id=item.id, assigned=False)
        try:
            return await self._allocate(item, rules, workers)
        except StaleWorkItem:
            logger.info("Lead %s was claimed elsewhere, skipping", item.id)
            return AssignmentOutcome(work_item_id=item.id, assigned=False)
        except PersistenceFailure as e:
            logger.error("Lead %s skipped: %s", item.id, e.message)
            return AssignmentOutcome(work_item_id=item.id, assigned=False, error=e.message)

    # ─── Manual mode ─────────────────────────────────────────────────

    async def assign_manually(self, work_item_id: int, worker_id: int) -> AssignmentOutcome:
        """Operator override for an unassigned lead.

        Raises:
            WorkItemNotFound, WorkerUnavailable, StaleWorkItem, PersistenceFailure
        """
        async with self._lock.hold():
            item = await self._leads.get_by_id(work_item_id)
            if item is None:
                raise WorkItemNotFound(work_item_id)
            if not item.is_assignable():
                raise StaleWorkItem(work_item_id)

            worker = await self._workers.get_by_id(worker_id)
            if worker is None or not worker.active:
                raise WorkerUnavailable(worker_id)

            decision = _Decision(worker, AssignmentMethod.MANUAL, MANUAL_REASON)
            return await self._commit(item, decision)

    # ─── Pipeline ────────────────────────────────────────────────────

    async def _allocate(
        self, item: WorkItem, rules: list[AllocationRule], workers: list[Worker]
    ) -> AssignmentOutcome:
        decision = self._decide(item, rules, workers)
        logger.info(
            "Lead %s → worker %s (%s: %s)",
            item.id, decision.worker.id, decision.method.value, decision.reason,
        )
        return await self._commit(item, decision)

    def _decide(
        self, item: WorkItem, rules: list[AllocationRule], workers: list[Worker]
    ) -> _Decision:
        """Step 1: rule-based pool. Step 2: global fallback pool."""
        active = [w for w in workers if w.active]
        by_id = {w.id: w for w in active}

        match = match_rule(item, rules)
        if match is not None:
            pool = active_pool(match.rule.owner_ids, by_id)
            if pool:
                return _Decision(pick_candidate(pool), AssignmentMethod.RULE_BASED, match.describe())
            logger.info(
                "Lead %s: rule %s has no active owners, falling back",
                item.id, match.rule.code,
            )

        if not active:
            raise NoActiveWorkers()
        return _Decision(pick_candidate(active), AssignmentMethod.ROUND_ROBIN, FALLBACK_REASON)

    async def _commit(self, item: WorkItem, decision: _Decision) -> AssignmentOutcome:
        """Claim the lead, bump the worker counters, then append the audit line.

        Claim and counters become durable together; if the counter update
        fails the claim is released before rolling back.
        """
        worker = decision.worker
        now = self._clock()

        try:
            claimed = await self._leads.claim(item.id, worker.id, decision.method, now)
        except Exception as e:
            await self._rollback()
            raise PersistenceFailure(
                f"Could not claim lead {item.id}: {e}", {"work_item_id": item.id}
            ) from e

        if not claimed:
            await self._rollback()
            raise StaleWorkItem(item.id)

        try:
            await self._workers.increment_load(worker.id, now)
            await self._uow.commit()
        except Exception as e:
            await self._release(item, worker)
            raise PersistenceFailure(
                f"Could not update counters of worker {worker.id}: {e}",
                {"work_item_id": item.id, "worker_id": worker.id},
            ) from e

        worker.record_assignment(now)
        item.owner_id = worker.id
        item.method = decision.method
        item.assigned_at = now

        outcome = AssignmentOutcome(
            work_item_id=item.id,
            assigned=True,
            owner_id=worker.id,
            method=decision.method,
            reason=decision.reason,
        )
        try:
            await self._append_audit(item, decision, now)
            outcome.audit_logged = True
        except AuditWriteFailure as e:
            logger.error("Audit gap, reconcile manually: %s %s", e.message, e.details)
        return outcome

    async def _append_audit(self, item: WorkItem, decision: _Decision, now: datetime) -> None:
        record = AssignmentRecord(
            id=None,
            work_item_id=item.id,
            owner_id=decision.worker.id,
            method=decision.method,
            reason=decision.reason,
            created_at=now,
        )
        try:
            await self._audit.append(record)
            await self._uow.commit()
        except Exception as e:
            await self._rollback()
            raise AuditWriteFailure(
                f"Could not write audit record for lead {item.id}: {e}",
                {
                    "work_item_id": item.id,
                    "worker_id": decision.worker.id,
                    "method": decision.method.value,
                    "reason": decision.reason,
                },
            ) from e

    async def _release(self, item: WorkItem, worker: Worker) -> None:
        try:
            await self._leads.release(item.id, worker.id)
        except Exception:
            logger.exception("Could not release claim on lead %s", item.id)
        await self._rollback()

    async def _rollback(self) -> None:
        try:
            await self._uow.rollback()
        except Exception:
            logger.exception("Rollback failed")


async def auto_assign_after_create(engine: AllocationEngine, lead_id: int) -> bool:
    """Hook for the lead-creation path: best-effort, never raises."""
    outcome = await engine.assign_one(lead_id)
    if outcome.error:
        logger.info("Lead %s left unassigned: %s", lead_id, outcome.error)
    return outcome.assigned
