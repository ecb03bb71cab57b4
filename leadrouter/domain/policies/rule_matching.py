"""RuleMatchingPolicy — finds the allocation rule that routes a lead."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from leadrouter.domain.entities.allocation_rule import AllocationRule
from leadrouter.domain.entities.work_item import WorkItem


@dataclass(frozen=True)
class RuleMatch:
    """Result of the policy evaluation."""

    rule: AllocationRule
    segment_matched: bool
    product_matched: bool

    def describe(self) -> str:
        """Human-readable reason for the audit log."""
        dims = []
        if self.segment_matched:
            dims.append(f"segment={self.rule.segment}")
        if self.product_matched:
            dims.append("product")
        return f"rule {self.rule.code} ({', '.join(dims)})"


def evaluate_rule(item: WorkItem, rule: AllocationRule) -> RuleMatch | None:
    """Pure function: does *rule* route *item*?

    Business rules:
      1. Segment compatibility — rule has no segment, item has no segment,
         or both are equal. Two different segments are a hard conflict.
      2. Product compatibility — rule has no product filter, item has no
         product interest, or the item's product is in the filter.
      3. Specificity — at least one dimension must be a positive match.
         A rule that merely does not conflict does not match.
    """
    if not rule.active:
        return None

    item_segment = item.segment_or_none()
    rule_segment = rule.segment if rule.has_segment() else None

    # Rule 1: segment compatibility
    if rule_segment is not None and item_segment is not None and rule_segment != item_segment:
        return None

    # Rule 2: product compatibility
    if (
        rule.has_product_filter()
        and item.product_id is not None
        and item.product_id not in rule.product_ids
    ):
        return None

    # Rule 3: specificity
    segment_matched = rule_segment is not None and rule_segment == item_segment
    product_matched = item.product_id is not None and item.product_id in rule.product_ids
    if not (segment_matched or product_matched):
        return None

    return RuleMatch(
        rule=rule,
        segment_matched=segment_matched,
        product_matched=product_matched,
    )


def match_rule(item: WorkItem, rules: Iterable[AllocationRule]) -> RuleMatch | None:
    """Return the first rule (in store order) that routes *item*, if any."""
    for rule in rules:
        match = evaluate_rule(item, rule)
        if match is not None:
            return match
    return None
