"""Outcome reduction into categorical counts."""

from __future__ import annotations

from typing import Iterable

from regverify.common.models import BatchStatistics, Outcome

ACTIVE_STATUS = "active"


def classify(outcome: Outcome) -> str:
    if not outcome.found:
        return "not_found"
    if outcome.status.lower() == ACTIVE_STATUS:
        return "active"
    return "inactive"


def aggregate(outcomes: Iterable[Outcome]) -> BatchStatistics:
    counts = {"active": 0, "inactive": 0, "not_found": 0}
    total = 0
    for outcome in outcomes:
        counts[classify(outcome)] += 1
        total += 1
    return BatchStatistics(
        active_count=counts["active"],
        inactive_count=counts["inactive"],
        not_found_count=counts["not_found"],
        total_processed=total,
    )
