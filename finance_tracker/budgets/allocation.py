"""Allocation of transactions to budgets.

``Budget.transaction_ids`` and ``Transaction.budget_id`` describe the same
relationship from both ends.  The functions here are the only place that
change either side; each returns the complete set of records that must be
written back together so that the two ends never disagree.

A transaction belongs to at most one budget.  Allocating a transaction that
currently belongs to another budget moves it, removing it from that
budget's id list as well.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Sequence, Tuple

from ..models import Budget, Transaction, unique_ids


@dataclass(frozen=True)
class AllocationChange:
    """Records to persist after an allocation operation."""

    budget: Budget
    transactions: Tuple[Transaction, ...] = ()
    other_budgets: Tuple[Budget, ...] = ()
    added: Tuple[str, ...] = ()
    removed: Tuple[str, ...] = ()


def allocate(
    budget: Budget,
    transaction_ids: Iterable[str],
    transactions: Iterable[Transaction],
    budgets: Iterable[Budget] = (),
) -> AllocationChange:
    """Make ``transaction_ids`` the exact membership of ``budget``.

    Args:
        budget: Budget receiving the allocation
        transaction_ids: New member ids, in display order
        transactions: Known transactions; every requested id must be present
        budgets: Other budgets, used to release transactions that move here

    Returns:
        An :class:`AllocationChange` with the updated budget, every
        transaction whose ``budget_id`` changed, and every other budget whose
        membership shrank.

    Raises:
        KeyError: If a requested id is not among ``transactions``.

    Example:
        >>> change = allocate(budget, ['b', 'c'], transactions)
        >>> change.budget.transaction_ids
        ('b', 'c')
    """
    by_id: Dict[str, Transaction] = {txn.id: txn for txn in transactions}
    wanted = unique_ids(transaction_ids)
    missing = [tid for tid in wanted if tid not in by_id]
    if missing:
        raise KeyError(f"Unknown transaction ids: {', '.join(missing)}")

    wanted_set = set(wanted)
    previous = set(budget.transaction_ids) | {
        txn.id for txn in by_id.values() if txn.budget_id == budget.id
    }

    changed: List[Transaction] = []
    for txn in by_id.values():
        if txn.id in wanted_set:
            if txn.budget_id != budget.id:
                changed.append(replace(txn, budget_id=budget.id))
        elif txn.id in previous and txn.budget_id == budget.id:
            changed.append(replace(txn, budget_id=None))

    other_budgets: List[Budget] = []
    for other in budgets:
        if other.id == budget.id:
            continue
        kept = tuple(tid for tid in other.transaction_ids if tid not in wanted_set)
        if kept != other.transaction_ids:
            other_budgets.append(replace(other, transaction_ids=kept))

    return AllocationChange(
        budget=replace(budget, transaction_ids=wanted),
        transactions=tuple(changed),
        other_budgets=tuple(other_budgets),
        added=tuple(tid for tid in wanted if tid not in previous),
        removed=tuple(sorted(previous - wanted_set)),
    )


def release_budget(budget: Budget, transactions: Iterable[Transaction]) -> Tuple[Transaction, ...]:
    """Clear ``budget_id`` on every member of ``budget`` ahead of deleting it."""
    return tuple(
        replace(txn, budget_id=None)
        for txn in transactions
        if txn.budget_id == budget.id
    )


def detach_transaction(transaction: Transaction, budgets: Sequence[Budget]) -> Tuple[Budget, ...]:
    """Drop ``transaction`` from every budget listing it ahead of deleting it."""
    updated: List[Budget] = []
    for budget in budgets:
        if budget.id == transaction.budget_id or transaction.id in budget.transaction_ids:
            kept = tuple(tid for tid in budget.transaction_ids if tid != transaction.id)
            if kept != budget.transaction_ids:
                updated.append(replace(budget, transaction_ids=kept))
    return tuple(updated)
