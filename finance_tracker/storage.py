"""Storage backends for transactions and budgets.

:class:`TransactionStore` is the interface the services are written against.
Two implementations ship with the package:

* :class:`InMemoryStore` keeps records in dictionaries and is what tests and
  short-lived callers use.
* :class:`SqliteStore` persists to a SQLite database file.

Operations that must change several records together run inside
``store.atomic()``.  The in-memory store restores a snapshot and the SQLite
store rolls back when the block raises.
"""

from __future__ import annotations

import copy
import json
import sqlite3
from abc import ABC, abstractmethod
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterable, Iterator, List, Optional, Union

import pandas as pd

from . import config
from .log import get_logger
from .models import Budget, Transaction

logger = get_logger(__name__)


class TransactionStore(ABC):
    """Persistence collaborator for transactions and budgets."""

    @abstractmethod
    def list_transactions(self) -> List[Transaction]: ...

    @abstractmethod
    def get_transaction(self, transaction_id: str) -> Transaction:
        """Raises ``KeyError`` if absent."""

    @abstractmethod
    def create_transaction(self, transaction: Transaction) -> Transaction: ...

    @abstractmethod
    def update_transaction(self, transaction: Transaction) -> Transaction: ...

    @abstractmethod
    def delete_transaction(self, transaction_id: str) -> None: ...

    @abstractmethod
    def bulk_create_transactions(self, transactions: Iterable[Transaction]) -> int: ...

    @abstractmethod
    def list_budgets(self) -> List[Budget]: ...

    @abstractmethod
    def get_budget(self, budget_id: str) -> Budget:
        """Raises ``KeyError`` if absent."""

    @abstractmethod
    def create_budget(self, budget: Budget) -> Budget: ...

    @abstractmethod
    def update_budget(self, budget: Budget) -> Budget: ...

    @abstractmethod
    def delete_budget(self, budget_id: str) -> None: ...

    @abstractmethod
    def clear(self) -> None: ...

    @abstractmethod
    def atomic(self):
        """Context manager grouping several writes into one unit."""


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------


class InMemoryStore(TransactionStore):

    def __init__(
        self,
        transactions: Iterable[Transaction] = (),
        budgets: Iterable[Budget] = (),
    ) -> None:
        self._transactions: Dict[str, Transaction] = {txn.id: txn for txn in transactions}
        self._budgets: Dict[str, Budget] = {budget.id: budget for budget in budgets}

    # Transactions -------------------------------------------------------------

    def list_transactions(self) -> List[Transaction]:
        return list(self._transactions.values())

    def get_transaction(self, transaction_id: str) -> Transaction:
        try:
            return self._transactions[transaction_id]
        except KeyError:
            raise KeyError(f"Transaction '{transaction_id}' not found") from None

    def create_transaction(self, transaction: Transaction) -> Transaction:
        if transaction.id in self._transactions:
            raise ValueError(f"Transaction '{transaction.id}' already exists")
        self._transactions[transaction.id] = transaction
        return transaction

    def update_transaction(self, transaction: Transaction) -> Transaction:
        self.get_transaction(transaction.id)
        self._transactions[transaction.id] = transaction
        return transaction

    def delete_transaction(self, transaction_id: str) -> None:
        self.get_transaction(transaction_id)
        del self._transactions[transaction_id]

    def bulk_create_transactions(self, transactions: Iterable[Transaction]) -> int:
        batch = list(transactions)
        with self.atomic():
            for txn in batch:
                self.create_transaction(txn)
        return len(batch)

    # Budgets ------------------------------------------------------------------

    def list_budgets(self) -> List[Budget]:
        return list(self._budgets.values())

    def get_budget(self, budget_id: str) -> Budget:
        try:
            return self._budgets[budget_id]
        except KeyError:
            raise KeyError(f"Budget '{budget_id}' not found") from None

    def create_budget(self, budget: Budget) -> Budget:
        if budget.id in self._budgets:
            raise ValueError(f"Budget '{budget.id}' already exists")
        self._budgets[budget.id] = budget
        return budget

    def update_budget(self, budget: Budget) -> Budget:
        self.get_budget(budget.id)
        self._budgets[budget.id] = budget
        return budget

    def delete_budget(self, budget_id: str) -> None:
        self.get_budget(budget_id)
        del self._budgets[budget_id]

    def clear(self) -> None:
        self._transactions.clear()
        self._budgets.clear()

    @contextmanager
    def atomic(self) -> Iterator['InMemoryStore']:
        # Records are immutable so shallow copies of the maps are a full snapshot
        transactions = copy.copy(self._transactions)
        budgets = copy.copy(self._budgets)
        try:
            yield self
        except BaseException:
            self._transactions = transactions
            self._budgets = budgets
            raise


# ---------------------------------------------------------------------------
# SQLite
# ---------------------------------------------------------------------------

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS transactions (
    id TEXT PRIMARY KEY,
    transaction_date TEXT NOT NULL,
    description TEXT,
    amount TEXT NOT NULL,
    type TEXT NOT NULL,
    category TEXT,
    account TEXT,
    notes TEXT,
    status TEXT,
    budget_id TEXT
);

CREATE TABLE IF NOT EXISTS budgets (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    amount TEXT NOT NULL,
    period TEXT NOT NULL,
    start_date TEXT,
    starting_balance TEXT NOT NULL DEFAULT '0',
    rollover_day INTEGER,
    transaction_ids TEXT NOT NULL DEFAULT '[]',
    created_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_date ON transactions (transaction_date);
CREATE INDEX IF NOT EXISTS ix_txn_budget ON transactions (budget_id);
CREATE INDEX IF NOT EXISTS ix_txn_category ON transactions (category);
"""

# Columns added after the first schema version
BUDGET_MIGRATIONS = [
    ('categories', "TEXT NOT NULL DEFAULT '[]'"),
    ('pinned', 'INTEGER NOT NULL DEFAULT 0'),
    ('display_order', 'INTEGER'),
]

TRANSACTION_FIELDS = (
    'id', 'transaction_date', 'description', 'amount', 'type',
    'category', 'account', 'notes', 'status', 'budget_id',
)
BUDGET_FIELDS = (
    'id', 'title', 'amount', 'period', 'start_date', 'starting_balance', 'rollover_day',
    'transaction_ids', 'created_at', 'categories', 'pinned', 'display_order',
)


def _transaction_params(txn: Transaction) -> tuple:
    return (
        txn.id, txn.date.isoformat(), txn.description, str(txn.amount), txn.type,
        txn.category, txn.account, txn.notes, txn.status, txn.budget_id,
    )


def _budget_params(budget: Budget) -> tuple:
    return (
        budget.id, budget.title, str(budget.amount), budget.period,
        budget.start_date.isoformat() if budget.start_date else None,
        str(budget.starting_balance), budget.rollover_day,
        json.dumps(list(budget.transaction_ids)), budget.created_at,
        json.dumps(list(budget.categories)), int(budget.pinned), budget.display_order,
    )


def _row_to_transaction(row: sqlite3.Row) -> Transaction:
    return Transaction(
        id=row['id'],
        date=row['transaction_date'],
        description=row['description'] or '',
        amount=row['amount'],
        type=row['type'],
        category=row['category'] or 'Other',
        account=row['account'] or '',
        notes=row['notes'],
        status=row['status'],
        budget_id=row['budget_id'],
    )


def _row_to_budget(row: sqlite3.Row) -> Budget:
    return Budget(
        id=row['id'],
        title=row['title'],
        amount=row['amount'],
        period=row['period'],
        start_date=row['start_date'],
        starting_balance=row['starting_balance'],
        rollover_day=row['rollover_day'],
        transaction_ids=tuple(json.loads(row['transaction_ids'] or '[]')),
        categories=tuple(json.loads(row['categories'] or '[]')),
        pinned=bool(row['pinned']),
        display_order=row['display_order'],
        created_at=row['created_at'] or '',
    )


class SqliteStore(TransactionStore):
    """SQLite-backed store.  Amounts are stored as text to keep decimals exact."""

    def __init__(self, db_path: Optional[Union[str, Path]] = None) -> None:
        self.db_path = Path(db_path) if db_path else config.DB_PATH
        self._active: Optional[sqlite3.Connection] = None
        self.init_db()

    # Connection handling -------------------------------------------------------

    @contextmanager
    def connect(self) -> Iterator[sqlite3.Connection]:
        """Yield the connection of the enclosing ``atomic()`` block, or a fresh one."""
        if self._active is not None:
            yield self._active
            return
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        conn = sqlite3.connect(str(self.db_path))
        conn.row_factory = sqlite3.Row
        try:
            yield conn
            conn.commit()
        except BaseException:
            conn.rollback()
            raise
        finally:
            conn.close()

    @contextmanager
    def atomic(self) -> Iterator['SqliteStore']:
        if self._active is not None:
            yield self
            return
        with self.connect() as conn:
            self._active = conn
            try:
                yield self
            finally:
                self._active = None

    def init_db(self) -> None:
        with self.connect() as conn:
            conn.executescript(SCHEMA_SQL)
            self._migrate_database(conn)

    def _migrate_database(self, conn: sqlite3.Connection) -> None:
        """Add new columns to an existing database if they don't exist."""
        existing_columns = [row[1] for row in conn.execute("PRAGMA table_info(budgets)").fetchall()]
        for column_name, column_type in BUDGET_MIGRATIONS:
            if column_name not in existing_columns:
                conn.execute(f"ALTER TABLE budgets ADD COLUMN {column_name} {column_type}")
                logger.info("Added column %s to budgets table", column_name)

    # Transactions -------------------------------------------------------------

    def list_transactions(self) -> List[Transaction]:
        with self.connect() as conn:
            rows = conn.execute(
                "SELECT * FROM transactions ORDER BY transaction_date ASC, id ASC"
            ).fetchall()
        return [_row_to_transaction(row) for row in rows]

    def get_transaction(self, transaction_id: str) -> Transaction:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM transactions WHERE id = ?", (transaction_id,)).fetchone()
        if row is None:
            raise KeyError(f"Transaction '{transaction_id}' not found")
        return _row_to_transaction(row)

    def create_transaction(self, transaction: Transaction) -> Transaction:
        self.bulk_create_transactions([transaction])
        return transaction

    def update_transaction(self, transaction: Transaction) -> Transaction:
        params = _transaction_params(transaction)
        assignments = ', '.join(f"{name} = ?" for name in TRANSACTION_FIELDS[1:])
        with self.connect() as conn:
            cursor = conn.execute(
                f"UPDATE transactions SET {assignments} WHERE id = ?",
                params[1:] + (transaction.id,),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Transaction '{transaction.id}' not found")
        return transaction

    def delete_transaction(self, transaction_id: str) -> None:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM transactions WHERE id = ?", (transaction_id,))
            if cursor.rowcount == 0:
                raise KeyError(f"Transaction '{transaction_id}' not found")

    def bulk_create_transactions(self, transactions: Iterable[Transaction]) -> int:
        records = [_transaction_params(txn) for txn in transactions]
        if not records:
            return 0
        placeholders = ', '.join('?' for _ in TRANSACTION_FIELDS)
        insert_sql = f"INSERT INTO transactions ({', '.join(TRANSACTION_FIELDS)}) VALUES ({placeholders})"
        try:
            with self.connect() as conn:
                conn.executemany(insert_sql, records)
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Duplicate transaction id: {exc}") from exc
        return len(records)

    # Budgets ------------------------------------------------------------------

    def list_budgets(self) -> List[Budget]:
        with self.connect() as conn:
            rows = conn.execute("SELECT * FROM budgets ORDER BY created_at ASC, id ASC").fetchall()
        return [_row_to_budget(row) for row in rows]

    def get_budget(self, budget_id: str) -> Budget:
        with self.connect() as conn:
            row = conn.execute("SELECT * FROM budgets WHERE id = ?", (budget_id,)).fetchone()
        if row is None:
            raise KeyError(f"Budget '{budget_id}' not found")
        return _row_to_budget(row)

    def create_budget(self, budget: Budget) -> Budget:
        placeholders = ', '.join('?' for _ in BUDGET_FIELDS)
        try:
            with self.connect() as conn:
                conn.execute(
                    f"INSERT INTO budgets ({', '.join(BUDGET_FIELDS)}) VALUES ({placeholders})",
                    _budget_params(budget),
                )
        except sqlite3.IntegrityError as exc:
            raise ValueError(f"Budget '{budget.id}' already exists") from exc
        return budget

    def update_budget(self, budget: Budget) -> Budget:
        params = _budget_params(budget)
        assignments = ', '.join(f"{name} = ?" for name in BUDGET_FIELDS[1:])
        with self.connect() as conn:
            cursor = conn.execute(
                f"UPDATE budgets SET {assignments} WHERE id = ?",
                params[1:] + (budget.id,),
            )
            if cursor.rowcount == 0:
                raise KeyError(f"Budget '{budget.id}' not found")
        return budget

    def delete_budget(self, budget_id: str) -> None:
        with self.connect() as conn:
            cursor = conn.execute("DELETE FROM budgets WHERE id = ?", (budget_id,))
            if cursor.rowcount == 0:
                raise KeyError(f"Budget '{budget_id}' not found")

    def clear(self) -> None:
        with self.connect() as conn:
            conn.execute("DELETE FROM transactions")
            conn.execute("DELETE FROM budgets")

    # Reporting ----------------------------------------------------------------

    def fetch_transactions_frame(
        self,
        start_date: Optional[str] = None,
        end_date: Optional[str] = None,
        budget_id: Optional[str] = None,
    ) -> pd.DataFrame:
        where: List[str] = []
        params: List[Any] = []
        if start_date:
            where.append("transaction_date >= ?")
            params.append(start_date)
        if end_date:
            where.append("transaction_date <= ?")
            params.append(end_date)
        if budget_id:
            where.append("budget_id = ?")
            params.append(budget_id)

        sql = (
            "SELECT id, transaction_date AS 'Date', description AS 'Description', amount AS 'Amount', "
            "type AS 'Type', category AS 'Category', account AS 'Account', notes AS 'Notes', "
            "status AS 'Status', budget_id AS 'Budget ID' FROM transactions"
        )
        if where:
            sql += " WHERE " + " AND ".join(where)
        sql += " ORDER BY transaction_date ASC, id ASC"

        with self.connect() as conn:
            df = pd.read_sql_query(sql, conn, params=params)
        if not df.empty:
            df['Date'] = pd.to_datetime(df['Date'])
            df['Amount'] = pd.to_numeric(df['Amount'])
            df.loc[df['Type'] == 'expense', 'Amount'] *= -1
        return df
