"""Tests for AllocationScheduler job registration (scheduler never started)."""

from leadrouter.adapters.scheduler.allocation_scheduler import (
    BATCH_JOB_ID,
    RESET_JOB_ID,
    AllocationScheduler,
)


def test_registers_batch_and_reset_jobs():
    s = AllocationScheduler()
    s._register_jobs()
    assert {job.id for job in s.scheduler.get_jobs()} == {BATCH_JOB_ID, RESET_JOB_ID}


def test_registering_twice_replaces_jobs():
    s = AllocationScheduler()
    s._register_jobs()
    s._register_jobs()
    assert len(s.scheduler.get_jobs()) == 2


def test_stop_without_start_is_a_no_op():
    s = AllocationScheduler()
    s.stop()
    assert s._is_running is False
