"""Tests for domain entities."""

from dataclasses import FrozenInstanceError

import pytest

from leadrouter.domain.entities.allocation_rule import AllocationRule
from leadrouter.domain.entities.work_item import WorkItem
from leadrouter.domain.entities.worker import Worker
from tests.fakes import T0


def test_unowned_open_lead_is_assignable():
    assert WorkItem(id=1).is_assignable() is True


def test_owned_lead_is_not_assignable():
    assert WorkItem(id=1, owner_id=3).is_assignable() is False


def test_terminal_lead_is_not_assignable():
    assert WorkItem(id=1, terminal=True).is_assignable() is False


def test_blank_segment_reads_as_none():
    assert WorkItem(id=1, segment="   ").segment_or_none() is None
    assert WorkItem(id=1, segment=" VIP").segment_or_none() == " VIP"


def test_worker_record_assignment_bumps_counters():
    w = Worker(id=1, code="NV001", full_name="Sales 1", daily_load=2, total_load=10)
    w.record_assignment(T0)
    assert w.daily_load == 3
    assert w.total_load == 11
    assert w.last_assigned_at == T0


def test_rule_is_immutable():
    r = AllocationRule(id=1, code="SA001")
    with pytest.raises(FrozenInstanceError):
        r.code = "SA002"  # type: ignore[misc]


def test_rule_filters():
    r = AllocationRule(id=1, code="SA001", segment=" ", product_ids=frozenset({1}))
    assert r.has_segment() is False
    assert r.has_product_filter() is True
