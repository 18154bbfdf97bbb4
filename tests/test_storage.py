"""Tests for the in-memory and SQLite stores."""

from __future__ import annotations

import sqlite3
from datetime import date
from decimal import Decimal

import pytest

from finance_tracker.models import Budget, Transaction
from finance_tracker.storage import InMemoryStore, SqliteStore


def _txn(txn_id: str, **overrides) -> Transaction:
    values = dict(id=txn_id, date='2025-10-01', description='Grocer', amount='12.10',
                  type='expense', category='Groceries', account='TFCU')
    values.update(overrides)
    return Transaction(**values)


@pytest.fixture(params=['memory', 'sqlite'])
def store(request, tmp_path):
    if request.param == 'memory':
        return InMemoryStore()
    return SqliteStore(tmp_path / 'finance.db')


def test_transaction_round_trip(store) -> None:
    txn = _txn('t1', notes='weekly shop', status='cleared')
    store.create_transaction(txn)

    loaded = store.get_transaction('t1')
    assert loaded == txn
    assert loaded.amount == Decimal('12.10')
    assert loaded.date == date(2025, 10, 1)


def test_budget_round_trip(store) -> None:
    budget = Budget(id='b1', title='Groceries', amount='400', start_date='2025-01-15',
                    starting_balance='-25.50', rollover_day=None, transaction_ids=('t1',),
                    categories=('Groceries',), pinned=True, display_order=3)
    store.create_budget(budget)

    assert store.get_budget('b1') == budget
    assert store.list_budgets() == [budget]


def test_updates_replace_records(store) -> None:
    store.create_transaction(_txn('t1'))
    store.update_transaction(_txn('t1', category='Dining'))
    assert store.get_transaction('t1').category == 'Dining'

    store.create_budget(Budget(id='b1', title='Food', amount=100))
    store.update_budget(Budget(id='b1', title='Food & Dining', amount=150))
    assert store.get_budget('b1').amount == Decimal('150')


def test_missing_records_raise_key_error(store) -> None:
    with pytest.raises(KeyError):
        store.get_transaction('nope')
    with pytest.raises(KeyError):
        store.update_transaction(_txn('nope'))
    with pytest.raises(KeyError):
        store.delete_transaction('nope')
    with pytest.raises(KeyError):
        store.get_budget('nope')
    with pytest.raises(KeyError):
        store.delete_budget('nope')


def test_duplicate_ids_rejected(store) -> None:
    store.create_transaction(_txn('t1'))
    with pytest.raises(ValueError):
        store.create_transaction(_txn('t1'))


def test_bulk_create_is_all_or_nothing(store) -> None:
    store.create_transaction(_txn('t1'))
    with pytest.raises(ValueError):
        store.bulk_create_transactions([_txn('t2'), _txn('t1')])
    assert [txn.id for txn in store.list_transactions()] == ['t1']

    assert store.bulk_create_transactions([_txn('t2'), _txn('t3')]) == 2
    assert len(store.list_transactions()) == 3


def test_atomic_rolls_back_on_error(store) -> None:
    store.create_budget(Budget(id='b1', title='Food', amount=100))
    with pytest.raises(RuntimeError):
        with store.atomic():
            store.create_transaction(_txn('t1', budget_id='b1'))
            store.update_budget(Budget(id='b1', title='Food', amount=100, transaction_ids=('t1',)))
            raise RuntimeError("boom")

    assert store.list_transactions() == []
    assert store.get_budget('b1').transaction_ids == ()


def test_clear_removes_everything(store) -> None:
    store.create_transaction(_txn('t1'))
    store.create_budget(Budget(id='b1', title='Food', amount=100))
    store.clear()
    assert store.list_transactions() == []
    assert store.list_budgets() == []


def test_sqlite_persists_between_instances(tmp_path) -> None:
    db_path = tmp_path / 'finance.db'
    SqliteStore(db_path).create_transaction(_txn('t1'))
    assert SqliteStore(db_path).get_transaction('t1') == _txn('t1')


def test_sqlite_migrates_old_budget_table(tmp_path) -> None:
    db_path = tmp_path / 'old.db'
    conn = sqlite3.connect(str(db_path))
    conn.execute(
        "CREATE TABLE budgets (id TEXT PRIMARY KEY, title TEXT NOT NULL, amount TEXT NOT NULL, "
        "period TEXT NOT NULL, start_date TEXT, starting_balance TEXT NOT NULL DEFAULT '0', "
        "rollover_day INTEGER, transaction_ids TEXT NOT NULL DEFAULT '[]', created_at TEXT)"
    )
    conn.execute(
        "INSERT INTO budgets (id, title, amount, period, transaction_ids, created_at) "
        "VALUES ('b1', 'Rent', '1200', 'monthly', '[]', '2024-01-01T00:00:00+00:00')"
    )
    conn.commit()
    conn.close()

    store = SqliteStore(db_path)

    with sqlite3.connect(str(db_path)) as check:
        columns = {row[1] for row in check.execute("PRAGMA table_info(budgets)")}
    assert {'categories', 'pinned', 'display_order'} <= columns
    budget = store.get_budget('b1')
    assert budget.categories == ()
    assert budget.pinned is False
    assert budget.rollover_day is None


def test_sqlite_transactions_frame_signs_amounts(tmp_path) -> None:
    store = SqliteStore(tmp_path / 'finance.db')
    store.bulk_create_transactions([
        _txn('t1', amount='40'),
        _txn('t2', date='2025-10-05', amount='1000', type='income', category='Income'),
        _txn('t3', date='2025-11-01', amount='5', budget_id='b1'),
    ])

    df = store.fetch_transactions_frame(end_date='2025-10-31')
    assert df['Amount'].tolist() == [-40.0, 1000.0]

    df = store.fetch_transactions_frame(budget_id='b1')
    assert df['id'].tolist() == ['t3']
