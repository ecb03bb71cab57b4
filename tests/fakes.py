"""In-memory fakes of the allocation ports, shared by unit and API tests."""

from __future__ import annotations

from contextlib import asynccontextmanager
from dataclasses import replace
from datetime import datetime, timedelta, timezone

from leadrouter.application.ports.allocation_rule_repo import AllocationRuleRepository
from leadrouter.application.ports.assignment_log_repo import AssignmentLogRepository
from leadrouter.application.ports.lead_repo import LeadRepository
from leadrouter.application.ports.run_lock import RunLock, UnitOfWork
from leadrouter.application.ports.worker_repo import WorkerRepository
from leadrouter.application.use_cases.allocate_leads import AllocationEngine
from leadrouter.domain.entities.allocation_rule import AllocationRule
from leadrouter.domain.entities.assignment_record import AssignmentRecord
from leadrouter.domain.entities.work_item import WorkItem
from leadrouter.domain.entities.worker import Worker
from leadrouter.domain.errors import RunLockTimeout
from leadrouter.domain.value_objects.enums import AssignmentMethod

T0 = datetime(2026, 1, 5, 9, 0, tzinfo=timezone.utc)


class FakeClock:
    """Strictly increasing timestamps, one second apart."""

    def __init__(self, start: datetime = T0):
        self._now = start

    def __call__(self) -> datetime:
        self._now += timedelta(seconds=1)
        return self._now


class FakeLeadRepo(LeadRepository):
    def __init__(self, items: list[WorkItem] | None = None):
        self.items: dict[int, WorkItem] = {i.id: replace(i) for i in items or []}
        self.fail_claim: set[int] = set()
        self.claimed_elsewhere: set[int] = set()

    async def get_by_id(self, work_item_id):
        item = self.items.get(work_item_id)
        return replace(item) if item else None

    async def list_unassigned(self, limit):
        pending = [i for i in self.items.values() if i.is_assignable()]
        pending.sort(key=lambda i: (i.created_at or T0, i.id))
        return [replace(i) for i in pending[:limit]]

    async def claim(self, work_item_id, worker_id, method, assigned_at):
        if work_item_id in self.fail_claim:
            raise ConnectionError("lead table unavailable")
        if work_item_id in self.claimed_elsewhere:
            self.items[work_item_id].owner_id = 999
            self.items[work_item_id].method = AssignmentMethod.MANUAL
        item = self.items.get(work_item_id)
        if item is None or not item.is_assignable():
            return False
        item.owner_id = worker_id
        item.method = method
        item.assigned_at = assigned_at
        return True

    async def release(self, work_item_id, worker_id):
        item = self.items[work_item_id]
        if item.owner_id == worker_id:
            item.owner_id = None
            item.method = AssignmentMethod.NONE
            item.assigned_at = None


class FakeWorkerRepo(WorkerRepository):
    def __init__(self, workers: list[Worker] | None = None):
        self.workers: dict[int, Worker] = {w.id: replace(w) for w in workers or []}
        self.fail_increment: set[int] = set()

    async def get_by_id(self, worker_id):
        w = self.workers.get(worker_id)
        return replace(w) if w else None

    async def get_all(self):
        return [replace(w) for w in self.workers.values()]

    async def list_active(self):
        return [replace(w) for w in self.workers.values() if w.active]

    async def increment_load(self, worker_id, assigned_at):
        if worker_id in self.fail_increment:
            raise ConnectionError("worker table unavailable")
        w = self.workers[worker_id]
        w.daily_load += 1
        w.total_load += 1
        w.last_assigned_at = assigned_at

    async def reset_daily_loads(self):
        for w in self.workers.values():
            w.daily_load = 0
        return len(self.workers)


class FakeRuleRepo(AllocationRuleRepository):
    """Keeps rules in the given order, which stands in for newest-first."""

    def __init__(self, rules: list[AllocationRule] | None = None):
        self.rules: list[AllocationRule] = list(rules or [])

    async def save(self, rule):
        saved = replace(rule, id=len(self.rules) + 1, created_at=T0)
        self.rules.insert(0, saved)
        return saved

    async def get_by_id(self, rule_id):
        return next((r for r in self.rules if r.id == rule_id), None)

    async def get_all(self, active=None):
        return [r for r in self.rules if active is None or r.active == active]

    async def list_active(self):
        return [r for r in self.rules if r.active]

    async def update(self, rule):
        self.rules = [rule if r.id == rule.id else r for r in self.rules]
        return rule

    async def deactivate(self, rule_id):
        rule = await self.get_by_id(rule_id)
        if rule is None:
            return None
        return await self.update(replace(rule, active=False))


class FakeAuditRepo(AssignmentLogRepository):
    def __init__(self):
        self.records: list[AssignmentRecord] = []
        self.fail = False

    async def append(self, record):
        if self.fail:
            raise ConnectionError("audit table unavailable")
        record.id = len(self.records) + 1
        self.records.append(record)
        return record

    async def list_for_work_item(self, work_item_id):
        return [r for r in self.records if r.work_item_id == work_item_id]


class FakeUnitOfWork(UnitOfWork):
    def __init__(self):
        self.commits = 0
        self.rollbacks = 0

    async def commit(self):
        self.commits += 1

    async def rollback(self):
        self.rollbacks += 1


class CountingRunLock(RunLock):
    """Counts acquisitions; with ``busy`` set, a bounded wait times out."""

    def __init__(self):
        self.acquired = 0
        self.held = False
        self.busy = False
        self.timeouts: list[float | None] = []

    @asynccontextmanager
    async def hold(self, timeout=None):
        assert not self.held, "run lock is not re-entrant"
        self.timeouts.append(timeout)
        if self.busy and timeout is not None:
            raise RunLockTimeout(timeout)
        self.acquired += 1
        self.held = True
        try:
            yield
        finally:
            self.held = False


# ─── Factories ───────────────────────────────────────────────────────


def worker(
    wid: int,
    load: int = 0,
    active: bool = True,
    last: datetime | None = None,
    order: int | None = None,
) -> Worker:
    return Worker(
        id=wid, code=f"NV{wid:03d}", full_name=f"Sales {wid}", active=active,
        daily_load=load, total_load=load, last_assigned_at=last, manual_order=order,
    )


def lead(
    lid: int,
    segment: str | None = None,
    product: int | None = None,
    owner: int | None = None,
    terminal: bool = False,
) -> WorkItem:
    return WorkItem(
        id=lid, segment=segment, product_id=product, owner_id=owner,
        terminal=terminal, created_at=T0 + timedelta(minutes=lid),
    )


def rule(
    rid: int,
    owners: tuple[int, ...],
    segment: str | None = None,
    products: set[int] | None = None,
    active: bool = True,
) -> AllocationRule:
    return AllocationRule(
        id=rid, code=f"SA{rid:03d}", segment=segment,
        product_ids=frozenset(products or ()), owner_ids=owners, active=active,
    )


class Harness:
    """An engine wired to fresh fakes, with the fakes kept at hand."""

    def __init__(self, workers=(), leads=(), rules=(), single_item_timeout=2.0):
        self.leads = FakeLeadRepo(list(leads))
        self.workers = FakeWorkerRepo(list(workers))
        self.rules = FakeRuleRepo(list(rules))
        self.audit = FakeAuditRepo()
        self.uow = FakeUnitOfWork()
        self.lock = CountingRunLock()
        self.engine = AllocationEngine(
            lead_repo=self.leads,
            worker_repo=self.workers,
            rule_repo=self.rules,
            audit_repo=self.audit,
            unit_of_work=self.uow,
            run_lock=self.lock,
            clock=FakeClock(),
            single_item_timeout=single_item_timeout,
        )

    def owner_of(self, lead_id: int) -> int | None:
        return self.leads.items[lead_id].owner_id

    def load_of(self, worker_id: int) -> int:
        return self.workers.workers[worker_id].daily_load
