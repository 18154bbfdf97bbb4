"""Chase credit card activity exports.

Columns: ``Transaction Date, Post Date, Description, Category, Type, Amount,
Memo`` with ``MM/DD/YYYY`` dates.  Purchases are negative, payments and
refunds positive.
"""

from __future__ import annotations

from typing import Dict, Optional

from ..models import Transaction
from .base import CsvFormatAdapter, make_transaction_id
from .categorization import map_chase_category
from .csv_parser import parse_amount, parse_us_date


class ChaseAdapter(CsvFormatAdapter):
    name = 'chase'
    display_name = 'Chase'
    source_tag = 'chase'
    default_account = 'Chase Credit Card'
    columns = ('Transaction Date', 'Post Date', 'Description', 'Category', 'Type', 'Amount', 'Memo')

    def row_to_transaction(
        self,
        row: Dict[str, str],
        account: Optional[str] = None,
        row_index: int = 0,
    ) -> Optional[Transaction]:
        description = row.get('Description', '').strip()
        if not description:
            raise ValueError("Missing description")
        signed = parse_amount(row.get('Amount'))
        if signed == 0:
            return None
        memo = row.get('Memo', '').strip()
        return Transaction(
            id=make_transaction_id(self.source_tag, row_index),
            date=parse_us_date(row.get('Transaction Date')),
            description=description,
            amount=abs(signed),
            type='expense' if signed < 0 else 'income',
            category=map_chase_category(row.get('Category')),
            account=account or self.default_account,
            notes=memo or None,
            status='cleared',
        )
