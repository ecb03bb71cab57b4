"""Tests for CandidateSelectionPolicy."""

from datetime import timedelta

import pytest

from leadrouter.domain.policies.candidate_selection import (
    active_pool,
    pick_candidate,
    rank_candidates,
)
from tests.fakes import T0, worker


def test_pick_single_candidate():
    assert pick_candidate([worker(1)]).id == 1


def test_lowest_daily_load_wins():
    chosen = pick_candidate([worker(1, load=5), worker(2, load=1), worker(3, load=3)])
    assert chosen.id == 2


def test_never_assigned_beats_assigned_at_equal_load():
    a = worker(1, load=2, last=T0)
    b = worker(2, load=2, last=None)
    assert pick_candidate([a, b]).id == 2


def test_oldest_assignment_wins_at_equal_load():
    recent = worker(1, load=2, last=T0 + timedelta(hours=1))
    older = worker(2, load=2, last=T0)
    assert pick_candidate([recent, older]).id == 2


def test_manual_order_breaks_timestamp_tie():
    a = worker(1, load=0, order=5)
    b = worker(2, load=0, order=2)
    assert pick_candidate([a, b]).id == 2


def test_unset_manual_order_sorts_last():
    a = worker(1, load=0, order=None)
    b = worker(2, load=0, order=9)
    assert pick_candidate([a, b]).id == 2


def test_id_is_final_tie_break():
    """Regardless of input order, equal workers are sorted by id."""
    assert pick_candidate([worker(3), worker(1), worker(2)]).id == 1


def test_load_dominates_other_keys():
    busy = worker(1, load=3, last=None, order=1)
    idle = worker(2, load=0, last=T0, order=None)
    assert pick_candidate([busy, idle]).id == 2


def test_inactive_workers_are_never_picked():
    idle_but_inactive = worker(1, load=0, active=False)
    busy = worker(2, load=10)
    assert pick_candidate([idle_but_inactive, busy]).id == 2


def test_pick_empty_raises():
    with pytest.raises(ValueError, match="empty candidate list"):
        pick_candidate([])


def test_pick_only_inactive_raises():
    with pytest.raises(ValueError):
        pick_candidate([worker(1, active=False)])


def test_rank_candidates_full_order():
    ws = [
        worker(1, load=1),
        worker(2, load=0, last=T0),
        worker(3, load=0),
        worker(4, load=0, active=False),
    ]
    assert [w.id for w in rank_candidates(ws)] == [3, 2, 1]


def test_ranking_follows_load_changes_across_rounds():
    a, b = worker(1), worker(2)
    assert pick_candidate([a, b]).id == 1
    a.record_assignment(T0)
    assert pick_candidate([a, b]).id == 2


# ─── active_pool ─────────────────────────────────────────────────────


def test_active_pool_keeps_owner_order_and_drops_inactive():
    by_id = {1: worker(1), 2: worker(2, active=False), 3: worker(3)}
    assert [w.id for w in active_pool((3, 2, 1), by_id)] == [3, 1]


def test_active_pool_ignores_unknown_and_duplicate_owners():
    by_id = {1: worker(1)}
    assert [w.id for w in active_pool((1, 42, 1), by_id)] == [1]
