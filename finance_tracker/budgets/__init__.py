"""Budget accounting: accrual, allocation and lifecycle series.

This package provides:
- Accrued, spent and remaining figures for a budget
- The allocation operations that keep budget and transaction links in sync
- The rollover-aligned history used for budget charts
"""

from .calculations import (
    BudgetSnapshot,
    budget_periods,
    cumulative_budget,
    total_available,
    calculate_spent,
    calculate_income,
    calculate_remaining,
    percentage_used,
    budget_snapshot,
    budget_summary_frame,
)
from .allocation import (
    AllocationChange,
    allocate,
    release_budget,
    detach_transaction,
)
from .lifecycle import (
    LifecyclePoint,
    generate_series,
    lifecycle_frame,
)

__all__ = [
    # Calculations
    'BudgetSnapshot',
    'budget_periods',
    'cumulative_budget',
    'total_available',
    'calculate_spent',
    'calculate_income',
    'calculate_remaining',
    'percentage_used',
    'budget_snapshot',
    'budget_summary_frame',
    # Allocation
    'AllocationChange',
    'allocate',
    'release_budget',
    'detach_transaction',
    # Lifecycle
    'LifecyclePoint',
    'generate_series',
    'lifecycle_frame',
]
