"""Budget lifecycle series for charting.

A lifecycle series has one point per rollover boundary between a budget's
start date and today.  Each point records the credit granted at that
boundary, the expenses charged until the next boundary, and the running
balance seeded by the budget's starting balance.

Boundaries always follow the monthly rollover schedule, even for weekly and
yearly budgets.
"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import asdict, dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd

from ..models import Budget, Transaction
from ..periods import rollover_dates


@dataclass(frozen=True)
class LifecyclePoint:
    date: date
    display_label: str
    credit: Decimal
    debit: Decimal
    balance: Decimal
    cumulative_credit: Decimal
    cumulative_debit: Decimal

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date.isoformat(),
            'displayLabel': self.display_label,
            'credit': self.credit,
            'debit': self.debit,
            'balance': self.balance,
            'cumulativeCredit': self.cumulative_credit,
            'cumulativeDebit': self.cumulative_debit,
        }


def _bucket_debits(boundaries: List[date], transactions: Iterable[Transaction]) -> List[Decimal]:
    """Sum expenses into ``[boundaries[i], boundaries[i + 1])`` intervals.

    Expenses before the first boundary are dropped; anything on or after the
    last boundary belongs to the last interval.
    """
    debits = [Decimal('0')] * len(boundaries)
    for txn in transactions:
        if not txn.is_expense:
            continue
        position = bisect_right(boundaries, txn.date) - 1
        if position < 0:
            continue
        debits[position] += txn.amount
    return debits


def generate_series(
    budget: Budget,
    allocated_transactions: Iterable[Transaction],
    *,
    today: Optional[date] = None,
) -> List[LifecyclePoint]:
    """Build the credit/debit/balance history of ``budget``.

    Args:
        budget: Budget to chart
        allocated_transactions: Transactions allocated to the budget
        today: Last day considered (defaults to the current date)

    Returns:
        Points in chronological order; empty when the budget has no start date.
    """
    if budget.start_date is None:
        return []

    now = today or date.today()
    boundaries = rollover_dates(budget.start_date, budget.rollover_day or 1, now)
    debits = _bucket_debits(boundaries, allocated_transactions)

    points: List[LifecyclePoint] = []
    balance = budget.starting_balance
    cumulative_credit = Decimal('0')
    cumulative_debit = Decimal('0')
    for boundary, debit in zip(boundaries, debits):
        credit = budget.amount
        cumulative_credit += credit
        cumulative_debit += debit
        balance += credit - debit
        points.append(LifecyclePoint(
            date=boundary,
            display_label=boundary.strftime('%b %Y'),
            credit=credit,
            debit=debit,
            balance=balance,
            cumulative_credit=cumulative_credit,
            cumulative_debit=cumulative_debit,
        ))
    return points


def lifecycle_frame(points: Iterable[LifecyclePoint]) -> pd.DataFrame:
    """Tabulate a lifecycle series with float columns for plotting libraries."""
    columns = ['date', 'display_label', 'credit', 'debit', 'balance',
               'cumulative_credit', 'cumulative_debit']
    rows = [asdict(point) for point in points]
    df = pd.DataFrame(rows, columns=columns)
    if df.empty:
        return df
    df['date'] = pd.to_datetime(df['date'])
    for column in columns[2:]:
        df[column] = df[column].astype(float)
    return df
