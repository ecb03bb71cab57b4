"""CandidateSelectionPolicy — deterministic load-balanced worker selection."""

from __future__ import annotations

from typing import Iterable

from leadrouter.domain.entities.worker import Worker


def selection_key(worker: Worker) -> tuple:
    """Sort key shared by rule-based and fallback pools.

    Ascending order, first wins:
      1. daily_load — fewer current assignments first.
      2. last_assigned_at — never assigned first, then oldest.
      3. manual_order — lowest first, unset last.
      4. id — final deterministic tie-break.
    """
    if worker.last_assigned_at is None:
        assigned_key = (0, 0.0)
    else:
        assigned_key = (1, worker.last_assigned_at.timestamp())

    if worker.manual_order is None:
        order_key = (1, 0)
    else:
        order_key = (0, worker.manual_order)

    return (worker.daily_load, assigned_key, order_key, worker.id)


def rank_candidates(candidates: Iterable[Worker]) -> list[Worker]:
    """Active candidates sorted by :func:`selection_key`."""
    return sorted((w for w in candidates if w.active), key=selection_key)


def pick_candidate(candidates: Iterable[Worker]) -> Worker:
    """Pick exactly one worker from a candidate pool.

    Raises:
        ValueError: if the pool holds no active worker.
    """
    ranked = rank_candidates(candidates)
    if not ranked:
        raise ValueError("Cannot pick from an empty candidate list")
    return ranked[0]


def active_pool(owner_ids: Iterable[int], workers_by_id: dict[int, Worker]) -> list[Worker]:
    """Resolve a rule's owner list to the workers that are currently active."""
    pool = []
    seen: set[int] = set()
    for owner_id in owner_ids:
        if owner_id in seen:
            continue
        seen.add(owner_id)
        worker = workers_by_id.get(owner_id)
        if worker is not None and worker.active:
            pool.append(worker)
    return pool
