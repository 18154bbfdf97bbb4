"""Credit union (TFCU-style) account history exports.

Columns: ``Account Name, Processed Date, Description, Check Number, Credit or
Debit, Amount`` with ISO dates.  Amounts are usually unsigned and the
``Credit or Debit`` column carries the direction; when it is blank the sign
of the amount decides.  Transfers between the member's own shares and loans
are skipped.
"""

from __future__ import annotations

from typing import Dict, Optional

from ..models import Transaction
from .base import CsvFormatAdapter, make_transaction_id
from .categorization import CREDIT_UNION_RULES, categorize
from .csv_parser import parse_amount, parse_iso_date

INTERNAL_TRANSFER_MARKERS = ('transfer to share', 'transfer from share', 'transfer to loan',
                             'transfer from loan', 'internal transfer')


class CreditUnionAdapter(CsvFormatAdapter):
    name = 'credit_union'
    display_name = 'Credit Union'
    source_tag = 'tfcu'
    default_account = 'TFCU'
    columns = ('Account Name', 'Processed Date', 'Description', 'Check Number', 'Credit or Debit', 'Amount')

    def row_to_transaction(
        self,
        row: Dict[str, str],
        account: Optional[str] = None,
        row_index: int = 0,
    ) -> Optional[Transaction]:
        description = row.get('Description', '').strip()
        if not description:
            raise ValueError("Missing description")
        if any(marker in description.lower() for marker in INTERNAL_TRANSFER_MARKERS):
            return None

        signed = parse_amount(row.get('Amount'))
        if signed == 0:
            return None
        direction = row.get('Credit or Debit', '').strip().lower()
        if direction == 'credit':
            txn_type = 'income'
        elif direction == 'debit':
            txn_type = 'expense'
        elif not direction:
            txn_type = 'expense' if signed < 0 else 'income'
        else:
            raise ValueError(f"Unknown credit/debit indicator '{row.get('Credit or Debit')}'")

        check_number = row.get('Check Number', '').strip()
        return Transaction(
            id=make_transaction_id(self.source_tag, row_index),
            date=parse_iso_date(row.get('Processed Date')),
            description=description,
            amount=abs(signed),
            type=txn_type,
            category=categorize(CREDIT_UNION_RULES, description),
            account=account or self.default_account,
            notes=f"Check #{check_number}" if check_number else None,
            status='cleared',
        )
