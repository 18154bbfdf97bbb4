"""Unit tests for finance_tracker.budgets.calculations."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.budgets import calculations as calc
from finance_tracker.models import Budget, Transaction

TODAY = date(2025, 3, 15)


def _budget(**overrides) -> Budget:
    values = dict(id='food', title='Food', amount=500, start_date='2025-01-01', rollover_day=1)
    values.update(overrides)
    return Budget(**values)


def _transactions():
    return [
        Transaction(id='t1', date='2025-01-05', description='Grocer', amount='100.00',
                    type='expense', budget_id='food'),
        Transaction(id='t2', date='2025-02-05', description='Bakery', amount='50.25', type='expense'),
        Transaction(id='t3', date='2025-02-06', description='Refund', amount='30', type='income',
                    budget_id='food'),
        Transaction(id='t4', date='2025-02-07', description='Cinema', amount='999', type='expense',
                    budget_id='fun'),
    ]


def test_cumulative_budget_multiplies_elapsed_periods() -> None:
    budget = _budget()
    assert calc.budget_periods(budget, today=TODAY) == 3
    assert calc.cumulative_budget(budget, today=TODAY) == Decimal('1500')


def test_total_available_includes_starting_balance() -> None:
    assert calc.total_available(_budget(starting_balance='250.50'), today=TODAY) == Decimal('1750.50')
    assert calc.total_available(_budget(starting_balance=-100), today=TODAY) == Decimal('1400')


def test_spent_counts_allocated_expenses_only() -> None:
    budget = _budget(transaction_ids=('t2',))
    assert calc.calculate_spent(budget, _transactions()) == Decimal('150.25')
    assert calc.calculate_income(budget, _transactions()) == Decimal('30')


def test_spent_is_zero_without_allocations() -> None:
    assert calc.calculate_spent(_budget(id='empty'), _transactions()) == Decimal('0')


@pytest.mark.parametrize(
    "starting_balance, spent",
    [(0, '0'), (0, '2000'), (-300, '100'), ('12.34', '1512.34')],
)
def test_remaining_is_available_minus_spent(starting_balance, spent) -> None:
    budget = _budget(starting_balance=starting_balance)
    spent = Decimal(spent)
    remaining = calc.calculate_remaining(budget, spent, today=TODAY)
    assert remaining == calc.total_available(budget, today=TODAY) - spent


def test_remaining_goes_negative_when_overspent() -> None:
    assert calc.calculate_remaining(_budget(), Decimal('1600'), today=TODAY) == Decimal('-100')


def test_percentage_used_guards_zero_available() -> None:
    assert calc.percentage_used(Decimal('50'), Decimal('0')) == 0.0
    assert calc.percentage_used(Decimal('50'), Decimal('-10')) == 0.0
    assert calc.percentage_used(Decimal('50'), Decimal('200')) == pytest.approx(25.0)


def test_snapshot_collects_all_figures() -> None:
    budget = _budget(starting_balance=100, transaction_ids=('t2',))
    snap = calc.budget_snapshot(budget, _transactions(), today=TODAY)

    assert snap.periods == 3
    assert snap.cumulative_budget == Decimal('1500')
    assert snap.total_available == Decimal('1600')
    assert snap.spent == Decimal('150.25')
    assert snap.income == Decimal('30')
    assert snap.remaining == Decimal('1449.75')
    assert snap.percentage_used == pytest.approx(150.25 / 1600 * 100)
    assert not snap.is_over_budget


def test_snapshot_before_start_has_only_starting_balance() -> None:
    budget = _budget(start_date='2025-06-01', starting_balance=40)
    snap = calc.budget_snapshot(budget, [], today=TODAY)
    assert snap.periods == 0
    assert snap.total_available == Decimal('40')


def test_summary_frame_orders_pinned_first_and_flags_overspend() -> None:
    budgets = [
        _budget(id='food', title='Food', display_order=2),
        _budget(id='fun', title='Fun', amount=100, pinned=True),
        _budget(id='gas', title='Gas', display_order=1),
    ]
    frame = calc.budget_summary_frame(budgets, _transactions(), today=TODAY)

    assert list(frame['Budget']) == ['Fun', 'Gas', 'Food']
    fun = frame[frame['Budget'] == 'Fun'].iloc[0]
    assert fun['Spent'] == pytest.approx(999.0)
    assert fun['Status'] == 'Over'
    assert frame[frame['Budget'] == 'Food'].iloc[0]['Status'] == 'Under'


def test_summary_frame_empty() -> None:
    frame = calc.budget_summary_frame([], [], today=TODAY)
    assert frame.empty
    assert 'Status' in frame.columns
