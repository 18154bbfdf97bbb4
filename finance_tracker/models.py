"""Canonical transaction and budget records.

Both records are frozen dataclasses.  Edits produce a new instance through
:func:`dataclasses.replace` which the caller writes back through a store.
Amounts are held as :class:`decimal.Decimal` so that sums over many
transactions stay exact; dates are plain :class:`datetime.date` values with
no time component.

The dictionary form (``to_dict``/``from_dict``) uses the camelCase keys of the
exported JSON documents, e.g. ``budgetId`` and ``startingBalance``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional, Tuple

import pandas as pd

from . import config

TRANSACTION_TYPES = ('income', 'expense')
TRANSACTION_STATUSES = ('pending', 'cleared', 'reconciled')
BUDGET_PERIODS = ('monthly', 'weekly', 'yearly')

# ---------------------------------------------------------------------------
# Coercion helpers
# ---------------------------------------------------------------------------


def to_decimal(value: Any) -> Decimal:
    """Convert ``value`` into a :class:`Decimal`, rejecting non-finite input."""
    if isinstance(value, Decimal):
        number = value
    elif isinstance(value, bool):
        raise ValueError(f"Invalid amount {value!r}")
    elif isinstance(value, (int, float)):
        number = Decimal(str(value))
    elif isinstance(value, str):
        try:
            number = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(f"Invalid amount {value!r}") from None
    else:
        raise ValueError(f"Invalid amount {value!r}")
    if not number.is_finite():
        raise ValueError(f"Invalid amount {value!r}")
    return number


def to_date(value: Any) -> date:
    """Convert ISO strings and datetimes into a calendar date."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD") from None
    raise ValueError(f"Invalid date {value!r}")


def _optional_date(value: Any) -> Optional[date]:
    if value is None or value == '':
        return None
    return to_date(value)


def _utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Transaction:
    """A single income or expense event.

    ``amount`` is never negative; the direction of money is carried by
    ``type``.  ``budget_id`` is owned by the allocation operations in
    :mod:`finance_tracker.budgets.allocation` and should not be set by hand.
    """

    id: str
    date: date
    description: str
    amount: Decimal
    type: str
    category: str = 'Other'
    account: str = ''
    notes: Optional[str] = None
    status: Optional[str] = None
    budget_id: Optional[str] = None

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Transaction id is required")
        object.__setattr__(self, 'date', to_date(self.date))
        amount = to_decimal(self.amount)
        if amount < 0:
            raise ValueError(f"Transaction amount must be non-negative, got {amount}")
        object.__setattr__(self, 'amount', amount)
        if self.type not in TRANSACTION_TYPES:
            raise ValueError(f"Unknown transaction type '{self.type}'")
        if self.status is not None and self.status not in TRANSACTION_STATUSES:
            raise ValueError(f"Unknown transaction status '{self.status}'")

    @property
    def is_expense(self) -> bool:
        return self.type == 'expense'

    @property
    def signed_amount(self) -> Decimal:
        return -self.amount if self.is_expense else self.amount

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'date': self.date.isoformat(),
            'description': self.description,
            'amount': str(self.amount),
            'type': self.type,
            'category': self.category,
            'account': self.account,
        }
        if self.notes is not None:
            data['notes'] = self.notes
        if self.status is not None:
            data['status'] = self.status
        if self.budget_id is not None:
            data['budgetId'] = self.budget_id
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Transaction':
        return cls(
            id=str(data['id']),
            date=data['date'],
            description=data.get('description', ''),
            amount=data['amount'],
            type=data['type'],
            category=data.get('category') or 'Other',
            account=data.get('account', ''),
            notes=data.get('notes'),
            status=data.get('status'),
            budget_id=data.get('budgetId', data.get('budget_id')),
        )


@dataclass(frozen=True)
class Budget:
    """A recurring spending allowance.

    ``rollover_day`` selects the day of month on which a monthly budget is
    credited.  ``None`` keeps the legacy behaviour of counting whole calendar
    months instead (see :mod:`finance_tracker.periods`).
    """

    id: str
    title: str
    amount: Decimal
    period: str = 'monthly'
    start_date: Optional[date] = None
    starting_balance: Decimal = config.ZERO
    rollover_day: Optional[int] = config.DEFAULT_ROLLOVER_DAY
    transaction_ids: Tuple[str, ...] = ()
    categories: Tuple[str, ...] = ()
    pinned: bool = False
    display_order: Optional[int] = None
    created_at: str = field(default_factory=_utcnow_iso)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Budget id is required")
        object.__setattr__(self, 'amount', to_decimal(self.amount))
        object.__setattr__(self, 'starting_balance', to_decimal(self.starting_balance or 0))
        object.__setattr__(self, 'start_date', _optional_date(self.start_date))
        if self.period not in BUDGET_PERIODS:
            raise ValueError(f"Unknown budget period '{self.period}'")
        if self.rollover_day is not None and not 1 <= int(self.rollover_day) <= 31:
            raise ValueError(f"Rollover day must be between 1 and 31, got {self.rollover_day}")
        object.__setattr__(self, 'transaction_ids', unique_ids(self.transaction_ids))
        object.__setattr__(self, 'categories', tuple(self.categories or ()))

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            'id': self.id,
            'title': self.title,
            'amount': str(self.amount),
            'period': self.period,
            'startingBalance': str(self.starting_balance),
            'transactionIds': list(self.transaction_ids),
            'pinned': self.pinned,
            'createdAt': self.created_at,
        }
        if self.start_date is not None:
            data['startDate'] = self.start_date.isoformat()
        if self.rollover_day is not None:
            data['rolloverDay'] = self.rollover_day
        if self.categories:
            data['categories'] = list(self.categories)
        if self.display_order is not None:
            data['displayOrder'] = self.display_order
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Budget':
        kwargs: Dict[str, Any] = {
            'id': str(data['id']),
            'title': data.get('title', ''),
            'amount': data['amount'],
            'period': data.get('period', 'monthly'),
            'start_date': data.get('startDate'),
            'starting_balance': data.get('startingBalance', 0) or 0,
            'rollover_day': data.get('rolloverDay'),
            'transaction_ids': tuple(data.get('transactionIds') or ()),
            'categories': tuple(data.get('categories') or ()),
            'pinned': bool(data.get('pinned', False)),
            'display_order': data.get('displayOrder'),
        }
        if data.get('createdAt'):
            kwargs['created_at'] = data['createdAt']
        return cls(**kwargs)


def unique_ids(ids: Iterable[str]) -> Tuple[str, ...]:
    """Collapse repeated ids while keeping first-seen order."""
    return tuple(dict.fromkeys(str(i) for i in ids or ()))


# ---------------------------------------------------------------------------
# DataFrame helpers
# ---------------------------------------------------------------------------

TRANSACTION_COLUMNS = [
    'id', 'Date', 'Description', 'Amount', 'Type', 'Category',
    'Account', 'Notes', 'Status', 'Budget ID',
]


def transactions_to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    """Tabulate transactions with signed float amounts for analysis and charts."""
    rows: List[Dict[str, Any]] = [
        {
            'id': txn.id,
            'Date': pd.Timestamp(txn.date),
            'Description': txn.description,
            'Amount': float(txn.signed_amount),
            'Type': txn.type,
            'Category': txn.category,
            'Account': txn.account,
            'Notes': txn.notes,
            'Status': txn.status,
            'Budget ID': txn.budget_id,
        }
        for txn in transactions
    ]
    return pd.DataFrame(rows, columns=TRANSACTION_COLUMNS)


def budgets_to_frame(budgets: Iterable[Budget]) -> pd.DataFrame:
    rows = [
        {
            'id': budget.id,
            'Title': budget.title,
            'Amount': float(budget.amount),
            'Period': budget.period,
            'Start Date': pd.Timestamp(budget.start_date) if budget.start_date else pd.NaT,
            'Starting Balance': float(budget.starting_balance),
            'Rollover Day': budget.rollover_day,
            'Transactions': len(budget.transaction_ids),
            'Pinned': budget.pinned,
        }
        for budget in budgets
    ]
    return pd.DataFrame(rows)
