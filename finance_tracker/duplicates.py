"""Duplicate detection for imported transactions.

Bank exports overlap: the same statement may be imported twice, and a
purchase paid through PayPal shows up in both the PayPal download and the
funding bank's feed with different descriptions.  A candidate is treated as
a duplicate of an existing transaction when date, amount and type are equal
and either

* enough of the candidate's significant words (longer than three characters)
  appear in the existing description, or
* one side is a PayPal account entry and the other side's description
  mentions PayPal.

The match is existential: the first existing transaction that qualifies is
taken.  The rules err on the side of flagging near matches rather than
importing a purchase twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Tuple

from . import config
from .log import get_logger
from .models import Transaction

logger = get_logger(__name__)

MIN_WORD_LENGTH = 4


@dataclass
class DuplicateReport:
    duplicates: List[Transaction] = field(default_factory=list)
    unique: List[Transaction] = field(default_factory=list)
    # (candidate, existing transaction it matched)
    matches: List[Tuple[Transaction, Transaction]] = field(default_factory=list)


def significant_words(description: str) -> List[str]:
    return [word for word in description.lower().split() if len(word) >= MIN_WORD_LENGTH]


def description_similarity(candidate: str, other: str) -> float:
    """Fraction of ``candidate``'s significant words found in ``other``.

    Example:
        >>> description_similarity('STARBUCKS #123', 'Starbucks Coffee')
        0.5
    """
    words = significant_words(candidate)
    other_lower = other.lower()
    if not words:
        return 1.0 if candidate.strip().lower() == other_lower.strip() else 0.0
    found = sum(1 for word in words if word in other_lower)
    return found / len(words)


def is_cross_account_match(a: Transaction, b: Transaction) -> bool:
    """A PayPal feed entry against a bank entry describing a PayPal charge."""
    return (
        ('paypal' in a.account.lower() and 'paypal' in b.description.lower())
        or ('paypal' in b.account.lower() and 'paypal' in a.description.lower())
    )


def is_duplicate(candidate: Transaction, existing: Transaction, threshold: Optional[float] = None) -> bool:
    if threshold is None:
        threshold = config.DUPLICATE_SIMILARITY_THRESHOLD
    if (
        candidate.date != existing.date
        or candidate.amount != existing.amount
        or candidate.type != existing.type
    ):
        return False
    if description_similarity(candidate.description, existing.description) >= threshold:
        return True
    return is_cross_account_match(candidate, existing)


def detect_duplicates(
    candidates: Iterable[Transaction],
    existing: Iterable[Transaction],
    threshold: Optional[float] = None,
) -> DuplicateReport:
    """Split ``candidates`` into duplicates of ``existing`` and unique transactions.

    Args:
        candidates: Newly imported transactions
        existing: Transactions already stored
        threshold: Minimum description similarity; defaults to
            ``config.DUPLICATE_SIMILARITY_THRESHOLD``

    Returns:
        A :class:`DuplicateReport`; candidate order is preserved in both lists.
    """
    existing = list(existing)
    report = DuplicateReport()
    for candidate in candidates:
        match = next((txn for txn in existing if is_duplicate(candidate, txn, threshold)), None)
        if match is None:
            report.unique.append(candidate)
        else:
            report.duplicates.append(candidate)
            report.matches.append((candidate, match))
    if report.duplicates:
        logger.info(
            "Flagged %d of %d imported transactions as duplicates",
            len(report.duplicates), len(report.duplicates) + len(report.unique),
        )
    return report
