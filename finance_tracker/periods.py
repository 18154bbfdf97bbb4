"""Funding period arithmetic for budgets.

Given a budget's anchor date and period type, these helpers count how many
funding periods have elapsed as of a reference day.  Monthly budgets support
two counting strategies:

* ``MonthlyStrategy.ROLLOVER`` counts the rollover days (the day of month on
  which the budget is credited) that fall between the start date and today.
* ``MonthlyStrategy.CALENDAR_MONTHS`` is the older behaviour and counts the
  calendar months touched, ignoring the day of month entirely.  It reports
  one more period than the rollover strategy whenever the start date falls
  after the month's rollover day.

All functions are pure; ``today`` defaults to :func:`datetime.date.today`
and is read exactly once per call.

Example:
    >>> elapsed_periods(date(2025, 1, 15), 'monthly', 1, today=date(2025, 3, 1))
    2
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import Iterator, List, Optional

from dateutil.relativedelta import relativedelta


class MonthlyStrategy(str, Enum):
    ROLLOVER = 'rollover'
    CALENDAR_MONTHS = 'calendar_months'


def rollover_date(year: int, month: int, rollover_day: int) -> date:
    """Return ``rollover_day`` of the given month, clamped to the month's last day."""
    return date(year, month, 1) + relativedelta(day=rollover_day)


def first_rollover_date(start_date: date, rollover_day: int) -> date:
    """First rollover date on or after ``start_date``."""
    candidate = rollover_date(start_date.year, start_date.month, rollover_day)
    if start_date > candidate:
        following = date(start_date.year, start_date.month, 1) + relativedelta(months=1)
        candidate = rollover_date(following.year, following.month, rollover_day)
    return candidate


def iter_rollover_dates(start_date: date, rollover_day: int, until: date) -> Iterator[date]:
    """Yield every rollover date from ``start_date`` up to and including ``until``.

    Each date is derived from the anchor month rather than the previous date,
    so a day clamped in a short month (31 -> Feb 28) does not drift the rest
    of the schedule.
    """
    first = first_rollover_date(start_date, rollover_day)
    anchor = date(first.year, first.month, 1)
    offset = 0
    current = first
    while current <= until:
        yield current
        offset += 1
        month = anchor + relativedelta(months=offset)
        current = rollover_date(month.year, month.month, rollover_day)


def rollover_dates(start_date: date, rollover_day: int, until: date) -> List[date]:
    return list(iter_rollover_dates(start_date, rollover_day, until))


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------


def elapsed_rollover_periods(start_date: date, rollover_day: int, today: date) -> int:
    """Count rollover dates in ``[first rollover on/after start, today]``."""
    return sum(1 for _ in iter_rollover_dates(start_date, rollover_day, today))


def elapsed_calendar_months(start_date: date, today: date) -> int:
    """Whole calendar months between the two dates, inclusive of the start month."""
    return (today.year - start_date.year) * 12 + (today.month - start_date.month) + 1


def elapsed_weeks(start_date: date, today: date) -> int:
    return (today - start_date).days // 7 + 1


def elapsed_years(start_date: date, today: date) -> int:
    return today.year - start_date.year + 1


def elapsed_periods(
    start_date: Optional[date],
    period: str,
    rollover_day: Optional[int] = None,
    *,
    today: Optional[date] = None,
    monthly_strategy: Optional[MonthlyStrategy] = None,
) -> int:
    """Number of funding periods a budget has accrued as of ``today``.

    Args:
        start_date: Anchor date of the budget schedule.  ``None`` is treated
            as a single current period.
        period: ``'monthly'``, ``'weekly'`` or ``'yearly'``.
        rollover_day: Day of month monthly credits apply.  Only used by the
            rollover strategy.
        today: Reference day; defaults to the current date.
        monthly_strategy: Force a monthly counting strategy.  When omitted the
            rollover strategy is used if ``rollover_day`` is set, otherwise the
            calendar-month strategy.

    Returns:
        A non-negative integer period count.
    """
    if start_date is None:
        return 1

    now = today or date.today()
    if start_date > now:
        return 0

    if period == 'monthly':
        strategy = MonthlyStrategy(monthly_strategy or (
            MonthlyStrategy.ROLLOVER if rollover_day else MonthlyStrategy.CALENDAR_MONTHS
        ))
        if strategy is MonthlyStrategy.ROLLOVER:
            return elapsed_rollover_periods(start_date, rollover_day or 1, now)
        return elapsed_calendar_months(start_date, now)
    if period == 'weekly':
        return elapsed_weeks(start_date, now)
    if period == 'yearly':
        return elapsed_years(start_date, now)
    raise ValueError(f"Unknown budget period '{period}'")
