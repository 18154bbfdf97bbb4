"""Budget accrual calculations.

This module derives, for a single budget, how much funding has accrued, how
much of it has been spent by allocated expense transactions, and what
remains.  It also tabulates a snapshot for every budget as a DataFrame.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

import pandas as pd

from ..models import Budget, Transaction
from ..periods import MonthlyStrategy, elapsed_periods


@dataclass(frozen=True)
class BudgetSnapshot:
    """Point-in-time accounting figures for one budget."""

    budget_id: str
    title: str
    periods: int
    cumulative_budget: Decimal
    total_available: Decimal
    spent: Decimal
    income: Decimal
    remaining: Decimal
    percentage_used: float

    @property
    def is_over_budget(self) -> bool:
        return self.remaining < 0


def budget_periods(
    budget: Budget,
    *,
    today: Optional[date] = None,
    monthly_strategy: Optional[MonthlyStrategy] = None,
) -> int:
    return elapsed_periods(
        budget.start_date,
        budget.period,
        budget.rollover_day,
        today=today,
        monthly_strategy=monthly_strategy,
    )


def cumulative_budget(
    budget: Budget,
    *,
    today: Optional[date] = None,
    monthly_strategy: Optional[MonthlyStrategy] = None,
) -> Decimal:
    """Calculate the funding granted across all elapsed periods.

    Args:
        budget: Budget to evaluate
        today: Reference day (defaults to the current date)
        monthly_strategy: Optional override of the monthly counting strategy

    Returns:
        ``budget.amount`` multiplied by the number of elapsed periods

    Example:
        >>> b = Budget(id='b1', title='Food', amount=500, start_date='2025-01-01')
        >>> cumulative_budget(b, today=date(2025, 3, 10))
        Decimal('1500')
    """
    periods = budget_periods(budget, today=today, monthly_strategy=monthly_strategy)
    return budget.amount * periods


def total_available(
    budget: Budget,
    *,
    today: Optional[date] = None,
    monthly_strategy: Optional[MonthlyStrategy] = None,
) -> Decimal:
    """Starting balance plus cumulative budget."""
    return budget.starting_balance + cumulative_budget(
        budget, today=today, monthly_strategy=monthly_strategy
    )


def _allocated(budget: Budget, transactions: Iterable[Transaction]) -> List[Transaction]:
    members = set(budget.transaction_ids)
    return [
        txn for txn in transactions
        if txn.budget_id == budget.id or txn.id in members
    ]


def calculate_spent(budget: Budget, transactions: Iterable[Transaction]) -> Decimal:
    """Sum allocated expense amounts.

    A transaction counts as allocated when it points at the budget or the
    budget lists it; income transactions are excluded.
    """
    return sum(
        (txn.amount for txn in _allocated(budget, transactions) if txn.is_expense),
        Decimal('0'),
    )


def calculate_income(budget: Budget, transactions: Iterable[Transaction]) -> Decimal:
    """Sum allocated income amounts (refunds, reimbursements)."""
    return sum(
        (txn.amount for txn in _allocated(budget, transactions) if not txn.is_expense),
        Decimal('0'),
    )


def calculate_remaining(
    budget: Budget,
    spent: Decimal,
    *,
    today: Optional[date] = None,
    monthly_strategy: Optional[MonthlyStrategy] = None,
) -> Decimal:
    """Total available minus ``spent``; negative when overspent."""
    return total_available(budget, today=today, monthly_strategy=monthly_strategy) - spent


def percentage_used(spent: Decimal, available: Decimal) -> float:
    if available <= 0:
        return 0.0
    return float(spent / available * 100)


def budget_snapshot(
    budget: Budget,
    transactions: Iterable[Transaction],
    *,
    today: Optional[date] = None,
    monthly_strategy: Optional[MonthlyStrategy] = None,
) -> BudgetSnapshot:
    """Compute every accounting figure for ``budget`` against one reference day."""
    now = today or date.today()
    transactions = list(transactions)
    periods = budget_periods(budget, today=now, monthly_strategy=monthly_strategy)
    cumulative = budget.amount * periods
    available = budget.starting_balance + cumulative
    spent = calculate_spent(budget, transactions)
    return BudgetSnapshot(
        budget_id=budget.id,
        title=budget.title,
        periods=periods,
        cumulative_budget=cumulative,
        total_available=available,
        spent=spent,
        income=calculate_income(budget, transactions),
        remaining=available - spent,
        percentage_used=percentage_used(spent, available),
    )


def budget_summary_frame(
    budgets: Iterable[Budget],
    transactions: Iterable[Transaction],
    *,
    today: Optional[date] = None,
) -> pd.DataFrame:
    """Create a DataFrame with one accounting row per budget.

    Args:
        budgets: Budgets to summarise
        transactions: All known transactions
        today: Reference day shared by every row

    Returns:
        DataFrame with columns: Budget, Period, Periods, Cumulative, Available,
        Spent, Income, Remaining, Percent Used, Status.  Pinned budgets come
        first, then budgets by display order.
    """
    now = today or date.today()
    transactions = list(transactions)
    ordered = sorted(
        budgets,
        key=lambda b: (
            not b.pinned,
            b.display_order if b.display_order is not None else float('inf'),
            b.title.lower(),
        ),
    )
    rows = []
    for budget in ordered:
        snap = budget_snapshot(budget, transactions, today=now)
        rows.append({
            'Budget': budget.title,
            'Period': budget.period,
            'Periods': snap.periods,
            'Cumulative': float(snap.cumulative_budget),
            'Available': float(snap.total_available),
            'Spent': float(snap.spent),
            'Income': float(snap.income),
            'Remaining': float(snap.remaining),
            'Percent Used': snap.percentage_used,
            'Status': 'Over' if snap.is_over_budget else 'Under',
        })
    return pd.DataFrame(rows, columns=[
        'Budget', 'Period', 'Periods', 'Cumulative', 'Available', 'Spent',
        'Income', 'Remaining', 'Percent Used', 'Status',
    ])
