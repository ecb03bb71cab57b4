"""Allocation rule endpoints — list, detail, create, update, soft delete."""

from __future__ import annotations

from dataclasses import replace

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from leadrouter.application.ports.allocation_rule_repo import AllocationRuleRepository
from leadrouter.application.ports.run_lock import UnitOfWork
from leadrouter.domain.entities.allocation_rule import AllocationRule
from leadrouter.infrastructure.api.dependencies import get_rule_repo, get_unit_of_work

router = APIRouter(prefix="/allocation/rules", tags=["allocation-rules"])

# ── Request schemas ─────────────────────────────────────────────────


class RuleCreate(BaseModel):
    rule_code: str = Field(min_length=1, max_length=50)
    customer_group: str | None = None
    product_group_ids: list[int] = Field(default_factory=list)
    assigned_sales_ids: list[int] = Field(default_factory=list)


class RuleUpdate(BaseModel):
    rule_code: str | None = Field(default=None, min_length=1, max_length=50)
    customer_group: str | None = None
    product_group_ids: list[int] | None = None
    assigned_sales_ids: list[int] | None = None
    is_active: bool | None = None


# ── Endpoints ───────────────────────────────────────────────────────


@router.get("")
async def list_rules(
    is_active: bool | None = None,
    repo: AllocationRuleRepository = Depends(get_rule_repo),
):
    """List rules newest first; this is also the order rules are matched in."""
    rules = await repo.get_all(active=is_active)
    return {"total": len(rules), "rules": [_serialize_rule(r) for r in rules]}


@router.get("/{rule_id}")
async def get_rule(rule_id: int, repo: AllocationRuleRepository = Depends(get_rule_repo)):
    rule = await repo.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Allocation rule not found")
    return _serialize_rule(rule)


@router.post("", status_code=201)
async def create_rule(
    body: RuleCreate,
    repo: AllocationRuleRepository = Depends(get_rule_repo),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    rule = await repo.save(
        AllocationRule(
            id=None,
            code=body.rule_code,
            segment=body.customer_group or None,
            product_ids=frozenset(body.product_group_ids),
            owner_ids=_dedupe(body.assigned_sales_ids),
            active=True,
        )
    )
    await uow.commit()
    return _serialize_rule(rule)


@router.put("/{rule_id}")
async def update_rule(
    rule_id: int,
    body: RuleUpdate,
    repo: AllocationRuleRepository = Depends(get_rule_repo),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    rule = await repo.get_by_id(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Allocation rule not found")

    changes = body.model_dump(exclude_unset=True)
    if "rule_code" in changes and changes["rule_code"] is not None:
        rule = replace(rule, code=changes["rule_code"])
    if "customer_group" in changes:
        rule = replace(rule, segment=changes["customer_group"] or None)
    if changes.get("product_group_ids") is not None:
        rule = replace(rule, product_ids=frozenset(changes["product_group_ids"]))
    if changes.get("assigned_sales_ids") is not None:
        rule = replace(rule, owner_ids=_dedupe(changes["assigned_sales_ids"]))
    if changes.get("is_active") is not None:
        rule = replace(rule, active=changes["is_active"])

    rule = await repo.update(rule)
    await uow.commit()
    return _serialize_rule(rule)


@router.delete("/{rule_id}")
async def delete_rule(
    rule_id: int,
    repo: AllocationRuleRepository = Depends(get_rule_repo),
    uow: UnitOfWork = Depends(get_unit_of_work),
):
    """Soft delete: the rule is deactivated, never removed."""
    rule = await repo.deactivate(rule_id)
    if not rule:
        raise HTTPException(status_code=404, detail="Allocation rule not found")
    await uow.commit()
    return _serialize_rule(rule)


def _dedupe(ids: list[int]) -> tuple[int, ...]:
    return tuple(dict.fromkeys(ids))


def _serialize_rule(r: AllocationRule) -> dict:
    return {
        "id": r.id,
        "rule_code": r.code,
        "customer_group": r.segment,
        "product_group_ids": sorted(r.product_ids),
        "assigned_sales_ids": list(r.owner_ids),
        "is_active": r.active,
        "created_at": r.created_at.isoformat() if r.created_at else None,
    }
