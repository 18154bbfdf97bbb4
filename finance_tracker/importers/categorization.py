"""Category inference for imported transactions.

Sources without a native category column are categorized from the merchant
name (and, for PayPal, the transaction type) with an ordered list of
:class:`CategoryRule` objects.  Rules are evaluated in order and the first
match wins, so more specific rules must come before general ones.

Chase exports carry their own category which is translated through
:data:`CHASE_CATEGORY_MAP`; unknown Chase categories pass through unchanged.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Optional, Sequence

DEFAULT_CATEGORY = 'Other'

# (merchant, type) -> bool, both already lowercased
Predicate = Callable[[str, str], bool]


@dataclass(frozen=True)
class CategoryRule:
    """A rule assigning ``category`` when ``predicate`` accepts a transaction."""
    category: str
    predicate: Predicate
    label: str = ''

    def matches(self, merchant: str, txn_type: str = '') -> bool:
        return self.predicate(merchant.lower(), txn_type.lower())


def merchant_contains(*keywords: str) -> Predicate:
    lowered = [keyword.lower() for keyword in keywords]
    return lambda merchant, _type: any(keyword in merchant for keyword in lowered)


def type_contains(*keywords: str) -> Predicate:
    lowered = [keyword.lower() for keyword in keywords]
    return lambda _merchant, txn_type: any(keyword in txn_type for keyword in lowered)


def all_of(*predicates: Predicate) -> Predicate:
    return lambda merchant, txn_type: all(p(merchant, txn_type) for p in predicates)


def merchant_rule(category: str, *keywords: str) -> CategoryRule:
    return CategoryRule(category, merchant_contains(*keywords), label=f"merchant:{'|'.join(keywords)}")


def categorize(
    rules: Sequence[CategoryRule],
    merchant: str,
    txn_type: str = '',
    default: str = DEFAULT_CATEGORY,
) -> str:
    """Return the category of the first matching rule, or ``default``.

    Example:
        >>> categorize(PAYPAL_RULES, 'Spotify USA', 'PreApproved Payment Bill User Payment')
        'Entertainment'
    """
    for rule in rules:
        if rule.matches(merchant or '', txn_type or ''):
            return rule.category
    return default


# ---------------------------------------------------------------------------
# Chase
# ---------------------------------------------------------------------------

CHASE_CATEGORY_MAP: Dict[str, str] = {
    'Food & Drink': 'Food & Dining',
    'Groceries': 'Groceries',
    'Shopping': 'Shopping',
    'Gas': 'Gas & Fuel',
    'Travel': 'Travel',
    'Entertainment': 'Entertainment',
    'Bills & Utilities': 'Bills & Utilities',
    'Health & Wellness': 'Health & Medical',
    'Personal': 'Personal Care',
    'Education': 'Education',
    'Fees & Adjustments': 'Fees & Adjustments',
}


def map_chase_category(chase_category: Optional[str]) -> str:
    """Translate a Chase category label; blank labels become ``'Other'``."""
    value = (chase_category or '').strip()
    if not value:
        return DEFAULT_CATEGORY
    return CHASE_CATEGORY_MAP.get(value, value)


# ---------------------------------------------------------------------------
# PayPal
# ---------------------------------------------------------------------------

PAYPAL_RULES: Sequence[CategoryRule] = (
    # Music/entertainment subscriptions
    merchant_rule('Entertainment', 'spotify'),
    CategoryRule('Entertainment', all_of(merchant_contains('apple'), type_contains('preapproved')),
                 label='apple preapproved'),
    merchant_rule('Entertainment', 'netflix', 'hulu'),
    merchant_rule('Entertainment', 'bandcamp'),
    merchant_rule('Entertainment', 'patreon'),
    # Gaming
    merchant_rule('Entertainment', 'valve', 'steam'),
    merchant_rule('Entertainment', 'nintendo'),
    CategoryRule('Entertainment', all_of(merchant_contains('microsoft'), type_contains('preapproved')),
                 label='microsoft preapproved'),
    merchant_rule('Entertainment', 'green man gaming'),
    merchant_rule('Shopping', 'target'),
    merchant_rule('Shopping', 'amazon'),
    merchant_rule('Travel', 'southwest', 'airline'),
    merchant_rule('Travel', 'hotel', 'airbnb'),
    # Tickets/events
    merchant_rule('Entertainment', 'axs', 'ticketmaster'),
    merchant_rule('Bills & Utilities', 'colorado interactive'),
    # Fall back on the payment type
    CategoryRule('Subscriptions', type_contains('preapproved payment'), label='type:preapproved payment'),
    CategoryRule('Shopping', type_contains('express checkout'), label='type:express checkout'),
)


# ---------------------------------------------------------------------------
# Credit union
# ---------------------------------------------------------------------------

CREDIT_UNION_RULES: Sequence[CategoryRule] = (
    merchant_rule('Income', 'payroll', 'direct dep', 'dir dep'),
    merchant_rule('Interest', 'dividend', 'interest'),
    merchant_rule('Groceries', 'king soopers', 'safeway', 'whole foods', 'trader joe', 'sprouts'),
    merchant_rule('Food & Dining', 'starbucks', 'restaurant', 'cafe', 'coffee', 'pizza', 'taco', 'chipotle'),
    merchant_rule('Gas & Fuel', 'shell oil', 'exxon', 'conoco', 'chevron', 'fuel'),
    merchant_rule('Bills & Utilities', 'xcel', 'comcast', 'xfinity', 'verizon', 't-mobile', 'utility', 'water'),
    merchant_rule('Insurance', 'insurance', 'geico', 'state farm'),
    merchant_rule('Housing', 'apartments', 'property mgmt', 'mortgage'),
    merchant_rule('Shopping', 'amazon', 'amzn', 'target', 'walmart', 'costco'),
    merchant_rule('Entertainment', 'spotify', 'netflix', 'hulu', 'steam'),
    merchant_rule('Fees & Adjustments', 'fee', 'overdraft'),
    merchant_rule('Cash', 'atm', 'withdrawal'),
)
