"""Service layer used by the application around the accounting core.

Each service wraps a :class:`~finance_tracker.storage.TransactionStore`
supplied by the caller.  Operations that touch both sides of the
budget/transaction link run inside ``store.atomic()`` and delegate the
record changes to :mod:`finance_tracker.budgets.allocation`, so callers
cannot leave a transaction pointing at a budget that does not list it.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field, replace
from datetime import date
from decimal import Decimal
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from . import config
from .budgets import allocation
from .budgets.calculations import BudgetSnapshot, budget_snapshot, calculate_spent
from .budgets.lifecycle import LifecyclePoint, generate_series
from .duplicates import DuplicateReport, detect_duplicates
from .importers import ImportResult, import_file
from .log import get_logger
from .models import Budget, Transaction
from .storage import TransactionStore

logger = get_logger(__name__)


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class ImportOutcome:
    """Result of importing one file: parse result, dedup split, stored rows."""
    result: ImportResult
    report: DuplicateReport = field(default_factory=DuplicateReport)
    persisted: List[Transaction] = field(default_factory=list)

    @property
    def inserted(self) -> int:
        return len(self.persisted)


# ---------------------------------------------------------------------------
# Budgets
# ---------------------------------------------------------------------------


class BudgetService:

    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    def list(self) -> List[Budget]:
        return self.store.list_budgets()

    def get(self, budget_id: str) -> Budget:
        return self.store.get_budget(budget_id)

    def create(
        self,
        title: str,
        amount: Union[Decimal, int, float, str],
        period: str = 'monthly',
        *,
        start_date: Optional[Union[date, str]] = None,
        starting_balance: Union[Decimal, int, float, str] = 0,
        rollover_day: Optional[int] = config.DEFAULT_ROLLOVER_DAY,
        categories: Iterable[str] = (),
        pinned: bool = False,
        display_order: Optional[int] = None,
    ) -> Budget:
        budget = Budget(
            id=_new_id(),
            title=title,
            amount=amount,
            period=period,
            start_date=start_date,
            starting_balance=starting_balance,
            rollover_day=rollover_day,
            categories=tuple(categories),
            pinned=pinned,
            display_order=display_order,
        )
        return self.store.create_budget(budget)

    def update(self, budget_id: str, **changes: Any) -> Budget:
        """Apply field changes.  Membership must change through :meth:`allocate_transactions`."""
        if 'transaction_ids' in changes:
            raise ValueError("Use allocate_transactions to change a budget's transactions")
        if 'id' in changes:
            raise ValueError("Budget id cannot be changed")
        budget = replace(self.store.get_budget(budget_id), **changes)
        return self.store.update_budget(budget)

    def delete(self, budget_id: str) -> None:
        with self.store.atomic():
            budget = self.store.get_budget(budget_id)
            for txn in allocation.release_budget(budget, self.store.list_transactions()):
                self.store.update_transaction(txn)
            self.store.delete_budget(budget_id)
        logger.info("Deleted budget '%s'", budget.title)

    def allocate_transactions(self, budget_id: str, transaction_ids: Iterable[str]) -> Budget:
        """Make ``transaction_ids`` the exact set of transactions allocated to the budget."""
        with self.store.atomic():
            budget = self.store.get_budget(budget_id)
            change = allocation.allocate(
                budget,
                transaction_ids,
                self.store.list_transactions(),
                self.store.list_budgets(),
            )
            for other in change.other_budgets:
                self.store.update_budget(other)
            for txn in change.transactions:
                self.store.update_transaction(txn)
            self.store.update_budget(change.budget)
        logger.info(
            "Budget '%s' allocation: %d added, %d removed",
            budget.title, len(change.added), len(change.removed),
        )
        return change.budget

    def calculate_spent(self, budget: Budget) -> Decimal:
        return calculate_spent(budget, self.store.list_transactions())

    def allocated_transactions(self, budget: Budget) -> List[Transaction]:
        members = set(budget.transaction_ids)
        return [
            txn for txn in self.store.list_transactions()
            if txn.budget_id == budget.id or txn.id in members
        ]

    def snapshot(self, budget_id: str, *, today: Optional[date] = None) -> BudgetSnapshot:
        budget = self.store.get_budget(budget_id)
        return budget_snapshot(budget, self.store.list_transactions(), today=today)

    def lifecycle(self, budget_id: str, *, today: Optional[date] = None) -> List[LifecyclePoint]:
        budget = self.store.get_budget(budget_id)
        return generate_series(budget, self.allocated_transactions(budget), today=today)


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


class TransactionService:

    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    def list(self) -> List[Transaction]:
        """All transactions, newest first."""
        return sorted(self.store.list_transactions(), key=lambda t: t.date, reverse=True)

    def get(self, transaction_id: str) -> Transaction:
        return self.store.get_transaction(transaction_id)

    def by_budget(self, budget_id: str) -> List[Transaction]:
        return [txn for txn in self.store.list_transactions() if txn.budget_id == budget_id]

    def by_type(self, txn_type: str) -> List[Transaction]:
        return [txn for txn in self.store.list_transactions() if txn.type == txn_type]

    def by_category(self, category: str) -> List[Transaction]:
        return [txn for txn in self.store.list_transactions() if txn.category == category]

    def create(
        self,
        date: Union[date, str],
        description: str,
        amount: Union[Decimal, int, float, str],
        type: str,
        category: str = 'Other',
        account: str = '',
        notes: Optional[str] = None,
        status: Optional[str] = None,
    ) -> Transaction:
        transaction = Transaction(
            id=_new_id(),
            date=date,
            description=description,
            amount=amount,
            type=type,
            category=category,
            account=account,
            notes=notes,
            status=status,
        )
        return self.store.create_transaction(transaction)

    def update(self, transaction_id: str, **changes: Any) -> Transaction:
        """Edit or re-categorize.  ``budget_id`` changes only through budget allocation."""
        if 'budget_id' in changes:
            raise ValueError("Use BudgetService.allocate_transactions to change a transaction's budget")
        if 'id' in changes:
            raise ValueError("Transaction id cannot be changed")
        transaction = replace(self.store.get_transaction(transaction_id), **changes)
        return self.store.update_transaction(transaction)

    def delete(self, transaction_id: str) -> None:
        with self.store.atomic():
            transaction = self.store.get_transaction(transaction_id)
            for budget in allocation.detach_transaction(transaction, self.store.list_budgets()):
                self.store.update_budget(budget)
            self.store.delete_transaction(transaction_id)

    def bulk_create(self, transactions: Iterable[Transaction]) -> int:
        return self.store.bulk_create_transactions(transactions)

    def import_csv(
        self,
        source,
        fmt: Optional[str] = None,
        account: Optional[str] = None,
    ) -> ImportOutcome:
        """Parse a bank export, drop duplicates of stored transactions, persist the rest.

        Args:
            source: CSV text, raw bytes, a ``Path`` or a file-like object
            fmt: Adapter name; detected from the header row when omitted
            account: Account label for the imported transactions

        Returns:
            An :class:`ImportOutcome`.  Format and row problems are reported in
            ``outcome.result.errors``; an unreadable source raises ``OSError``.
        """
        result = import_file(source, fmt=fmt, account=account)
        outcome = ImportOutcome(result=result)
        if not result.transactions:
            return outcome
        outcome.report = detect_duplicates(result.transactions, self.store.list_transactions())
        if outcome.report.unique:
            with self.store.atomic():
                self.store.bulk_create_transactions(outcome.report.unique)
            outcome.persisted = list(outcome.report.unique)
        logger.info(
            "Imported %d transactions (%d duplicates, %d skipped, %d errors)",
            outcome.inserted, len(outcome.report.duplicates), result.skipped, len(result.errors),
        )
        return outcome


# ---------------------------------------------------------------------------
# Whole-database utilities
# ---------------------------------------------------------------------------


class DatabaseService:

    def __init__(self, store: TransactionStore) -> None:
        self.store = store

    def clear_all(self) -> None:
        self.store.clear()

    def export_data(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            'budgets': [budget.to_dict() for budget in self.store.list_budgets()],
            'transactions': [txn.to_dict() for txn in self.store.list_transactions()],
        }

    def import_data(self, data: Dict[str, List[Dict[str, Any]]]) -> None:
        budgets = [Budget.from_dict(item) for item in data.get('budgets', [])]
        transactions = [Transaction.from_dict(item) for item in data.get('transactions', [])]
        with self.store.atomic():
            for budget in budgets:
                self.store.create_budget(budget)
            self.store.bulk_create_transactions(transactions)

    def get_stats(self) -> Dict[str, Any]:
        transactions = self.store.list_transactions()
        return {
            'total_budgets': len(self.store.list_budgets()),
            'total_transactions': len(transactions),
            'total_income': sum((t.amount for t in transactions if t.type == 'income'), Decimal('0')),
            'total_expenses': sum((t.amount for t in transactions if t.type == 'expense'), Decimal('0')),
        }


def auto_load_raw_files(
    service: TransactionService,
    raw_dir: Optional[Union[str, Path]] = None,
) -> Dict[str, Any]:
    """Import every CSV export found in the raw data directory.

    Args:
        service: Transaction service bound to the target store
        raw_dir: Directory to scan; defaults to ``config.RAW_DATA_DIR``

    Returns dict with keys: loaded_files, error_files, total_inserted,
    total_duplicates, total_skipped, issues
    """
    directory = Path(raw_dir) if raw_dir else config.RAW_DATA_DIR
    results: Dict[str, Any] = {
        'loaded_files': [],
        'error_files': [],
        'total_inserted': 0,
        'total_duplicates': 0,
        'total_skipped': 0,
        'issues': {},
    }
    if not directory.exists():
        return results

    for path in sorted(directory.iterdir()):
        if not path.is_file() or path.suffix.lower() != '.csv':
            continue
        try:
            outcome = service.import_csv(path)
        except OSError as exc:
            results['error_files'].append(f"{path.name}: {exc}")
            continue

        if outcome.result.errors:
            results['issues'][path.name] = list(outcome.result.errors)
        if not outcome.result.transactions:
            reason = outcome.result.errors[0] if outcome.result.errors else 'No transactions found'
            results['error_files'].append(f"{path.name}: {reason}")
            continue

        results['loaded_files'].append(path.name)
        results['total_inserted'] += outcome.inserted
        results['total_duplicates'] += len(outcome.report.duplicates)
        results['total_skipped'] += outcome.result.skipped

    return results
