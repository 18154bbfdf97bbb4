"""PayPal activity downloads.

Columns: ``Date, Time, TimeZone, Name, Type, Status, Currency, Amount, Fees,
Total, Exchange Rate, Receipt ID, Balance, Transaction ID, Item Title``.
Pending payments and money moved into the PayPal balance from a bank or
card are not spending and are skipped.
"""

from __future__ import annotations

from typing import Dict, Optional

from ..models import Transaction
from .base import CsvFormatAdapter, make_transaction_id
from .categorization import PAYPAL_RULES, categorize
from .csv_parser import parse_amount, parse_us_date

INTERNAL_TRANSFER_TYPES = ('deposit to pp account', 'general card deposit', 'bank deposit')


class PayPalAdapter(CsvFormatAdapter):
    name = 'paypal'
    display_name = 'PayPal'
    source_tag = 'paypal'
    default_account = 'PayPal'
    columns = (
        'Date', 'Time', 'TimeZone', 'Name', 'Type', 'Status', 'Currency', 'Amount',
        'Fees', 'Total', 'Exchange Rate', 'Receipt ID', 'Balance', 'Transaction ID', 'Item Title',
    )
    required_headers = ('Date', 'Time', 'TimeZone', 'Name', 'Type')
    positional_headers = False

    def row_to_transaction(
        self,
        row: Dict[str, str],
        account: Optional[str] = None,
        row_index: int = 0,
    ) -> Optional[Transaction]:
        if row.get('Status', '').strip().lower() == 'pending':
            return None
        txn_type = row.get('Type', '').strip()
        if any(marker in txn_type.lower() for marker in INTERNAL_TRANSFER_TYPES):
            return None

        signed = parse_amount(row.get('Amount'))
        if signed == 0:
            return None

        merchant = row.get('Name', '').strip()
        description = merchant or txn_type
        if not description:
            raise ValueError("Missing name and type")
        item_title = row.get('Item Title', '').strip()
        return Transaction(
            id=make_transaction_id(self.source_tag, row_index),
            date=parse_us_date(row.get('Date')),
            description=description,
            amount=abs(signed),
            type='expense' if signed < 0 else 'income',
            category=categorize(PAYPAL_RULES, merchant, txn_type),
            account=account or self.default_account,
            notes=item_title or None,
            status='cleared',
        )
