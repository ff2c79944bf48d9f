from __future__ import annotations

import math
from typing import Dict, Iterable, Tuple

from renovation_tracker.core.models import BudgetStats, Category, Transaction

COMFORTABLE = "comfortable"
CAUTION = "caution"
CRITICAL = "critical"

_BAND_MESSAGES: Dict[str, str] = {
    COMFORTABLE: "You are in a comfortable zone. Keep tracking receipts as you go.",
    CAUTION: "You are approaching the upper limit. Monitor big purchases carefully.",
    CRITICAL: "Critical zone. Pause and reassess the remaining work scope.",
}


def compute_stats(transactions: Iterable[Transaction], total_budget: float) -> BudgetStats:
    """Total the amounts of every transaction, bills and expenses alike."""
    total_spent = sum(tx.amount for tx in transactions)
    return BudgetStats(
        total_budget=total_budget,
        total_spent=total_spent,
        remaining=total_budget - total_spent,
    )


def aggregate_by_category(transactions: Iterable[Transaction]) -> Dict[Category, float]:
    """Spend per category, in enumeration order, skipping zero totals."""
    totals: Dict[Category, float] = {cat: 0.0 for cat in Category}
    for tx in transactions:
        totals[Category(tx.category)] += tx.amount
    return {cat: total for cat, total in totals.items() if total != 0}


def is_over_budget(stats: BudgetStats) -> bool:
    return stats.remaining < 0


def budget_utilization(stats: BudgetStats) -> int:
    """Percent of the budget spent, rounded and capped at 100."""
    if not stats.total_budget:
        return 0
    return min(100, math.floor(stats.total_spent / stats.total_budget * 100 + 0.5))


def utilization_band(percent: int) -> Tuple[str, str]:
    """Classify a utilisation percentage and return ``(band, message)``."""
    if percent <= 70:
        band = COMFORTABLE
    elif percent <= 90:
        band = CAUTION
    else:
        band = CRITICAL
    return band, _BAND_MESSAGES[band]
