import pytest

from renovation_tracker.core.models import BudgetStats, Category, Transaction
from renovation_tracker.summary import (
    CAUTION,
    COMFORTABLE,
    CRITICAL,
    aggregate_by_category,
    budget_utilization,
    compute_stats,
    is_over_budget,
    utilization_band,
)


def _tx(amount, category=Category.MATERIAL, type="expense", id="t"):
    return Transaction(id=id, date="2025-01-01", description="x", amount=amount,
                       category=category, type=type)


def test_total_spent_counts_every_category_and_type():
    txs = [_tx(1000, Category.MATERIAL, "expense"), _tx(2500, Category.LABOR, "bill")]
    stats = compute_stats(txs, 250600)
    assert stats == BudgetStats(total_budget=250600, total_spent=3500, remaining=247100)


def test_remaining_goes_negative_when_over_budget():
    stats = compute_stats([_tx(200000), _tx(60000, Category.LABOR)], 250600)
    assert stats.total_spent == 260000
    assert stats.remaining == -9400
    assert is_over_budget(stats)


def test_empty_list_spends_nothing():
    stats = compute_stats([], 1000)
    assert stats.total_spent == 0
    assert stats.remaining == 1000
    assert not is_over_budget(stats)


def test_aggregate_omits_zero_categories():
    assert aggregate_by_category([_tx(500, Category.LABOR)]) == {Category.LABOR: 500}


def test_aggregate_follows_enumeration_order():
    txs = [
        _tx(10, Category.FEES),
        _tx(20, Category.MATERIAL),
        _tx(5, Category.APPLIANCES),
        _tx(7, Category.MATERIAL),
        _tx(0, Category.LABOR),
    ]
    result = aggregate_by_category(txs)
    assert list(result) == [Category.MATERIAL, Category.APPLIANCES, Category.FEES]
    assert result[Category.MATERIAL] == 27


@pytest.mark.parametrize(
    "spent,expected",
    [(0, 0), (125300, 50), (250600, 100), (260000, 100), (2506, 1)],
)
def test_budget_utilization_is_rounded_and_capped(spent, expected):
    assert budget_utilization(BudgetStats(250600, spent, 250600 - spent)) == expected


def test_budget_utilization_rounds_half_up():
    assert budget_utilization(BudgetStats(200, 5, 195)) == 3


def test_budget_utilization_zero_budget():
    assert budget_utilization(BudgetStats(0, 10, -10)) == 0


@pytest.mark.parametrize(
    "percent,band",
    [(0, COMFORTABLE), (70, COMFORTABLE), (71, CAUTION), (90, CAUTION), (91, CRITICAL), (100, CRITICAL)],
)
def test_utilization_bands(percent, band):
    got, message = utilization_band(percent)
    assert got == band
    assert message
