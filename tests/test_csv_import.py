"""Tests for the bank CSV adapters and format detection."""

from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from finance_tracker import importers
from finance_tracker.importers import ChaseAdapter, CreditUnionAdapter, PayPalAdapter
from finance_tracker.importers.csv_parser import parse_amount, parse_csv, parse_us_date

CHASE_HEADER = "Transaction Date,Post Date,Description,Category,Type,Amount,Memo"
PAYPAL_HEADER = (
    "Date,Time,TimeZone,Name,Type,Status,Currency,Amount,Fees,Total,"
    "Exchange Rate,Receipt ID,Balance,Transaction ID,Item Title"
)
CREDIT_UNION_HEADER = "Account Name,Processed Date,Description,Check Number,Credit or Debit,Amount"


def _csv(*lines: str) -> str:
    return "\n".join(lines) + "\n"


# ---------------------------------------------------------------------------
# Tokenizer and field parsing
# ---------------------------------------------------------------------------


def test_parse_csv_respects_quotes_and_skips_blank_lines() -> None:
    rows = parse_csv('\ufeffa, "b,c" ,d\r\n\n  \n1,2,3')
    assert rows == [['a', 'b,c', 'd'], ['1', '2', '3']]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('-12.50', Decimal('-12.50')),
        ('$1,234.56', Decimal('1234.56')),
        ('(45.00)', Decimal('-45.00')),
        (' 7 ', Decimal('7')),
    ],
)
def test_parse_amount(raw, expected) -> None:
    assert parse_amount(raw) == expected


@pytest.mark.parametrize("raw", ['', 'abc', 'NaN', None])
def test_parse_amount_rejects_garbage(raw) -> None:
    with pytest.raises(ValueError):
        parse_amount(raw)


def test_parse_us_date_rejects_other_layouts() -> None:
    assert parse_us_date('10/26/2025') == date(2025, 10, 26)
    with pytest.raises(ValueError):
        parse_us_date('2025-10-26')
    with pytest.raises(ValueError):
        parse_us_date('13/01/2025')


# ---------------------------------------------------------------------------
# Chase
# ---------------------------------------------------------------------------


def test_chase_purchase_row() -> None:
    result = ChaseAdapter().import_text(_csv(
        CHASE_HEADER,
        "10/26/2025,10/27/2025,Starbucks,Food & Drink,Sale,-12.50,",
    ))

    assert result.success
    assert result.errors == []
    txn = result.transactions[0]
    assert txn.date == date(2025, 10, 26)
    assert txn.amount == Decimal('12.50')
    assert txn.type == 'expense'
    assert txn.category == 'Food & Dining'
    assert txn.account == 'Chase Credit Card'
    assert txn.status == 'cleared'
    assert txn.notes is None
    assert txn.id.startswith('chase_')


def test_chase_payment_and_category_fallbacks() -> None:
    result = ChaseAdapter().import_text(_csv(
        CHASE_HEADER,
        "10/01/2025,10/02/2025,Payment Thank You,,Payment,250.00,autopay",
        "10/03/2025,10/04/2025,Jiffy Lube,Automotive,Sale,-80.00,",
    ), account='Sapphire')

    payment, oil_change = result.transactions
    assert payment.type == 'income'
    assert payment.category == 'Other'
    assert payment.notes == 'autopay'
    assert oil_change.category == 'Automotive'
    assert {txn.account for txn in result.transactions} == {'Sapphire'}


def test_chase_rejects_wrong_headers() -> None:
    result = ChaseAdapter().import_text(_csv(CREDIT_UNION_HEADER, "Checking,2025-10-01,Coffee,,Debit,4.50"))

    assert not result.success
    assert result.transactions == []
    assert len(result.errors) == 1
    assert result.errors[0].startswith('Invalid Chase CSV format')


def test_empty_file_reports_error() -> None:
    result = ChaseAdapter().import_text("\n\n")
    assert result.errors == ['File is empty']
    assert not result.success


def test_chase_row_errors_are_numbered_and_do_not_abort() -> None:
    result = ChaseAdapter().import_text(_csv(
        CHASE_HEADER,
        "10/01/2025,10/02/2025,Grocer,Groceries,Sale,-20.00,",
        "10/02/2025,10/03/2025,Broken,Groceries,Sale,abc,",
        ",,,,,,",
        "10/03/2025,10/04/2025,,Groceries,Sale,-5.00,",
        "10/04/2025,10/05/2025,Zero,Groceries,Adjustment,0.00,",
    ))

    assert [txn.description for txn in result.transactions] == ['Grocer']
    assert result.errors == ["Row 3: Invalid amount 'abc'", "Row 5: Missing description"]
    assert result.skipped == 2
    assert result.success


def test_transaction_ids_are_unique() -> None:
    lines = [CHASE_HEADER] + [
        f"10/{day:02d}/2025,10/{day:02d}/2025,Shop {day},Shopping,Sale,-1.00," for day in range(1, 21)
    ]
    result = ChaseAdapter().import_text(_csv(*lines))
    ids = [txn.id for txn in result.transactions]
    assert len(set(ids)) == len(ids) == 20


# ---------------------------------------------------------------------------
# PayPal
# ---------------------------------------------------------------------------


def test_paypal_import_skips_pending_and_transfers() -> None:
    result = PayPalAdapter().import_text(_csv(
        PAYPAL_HEADER,
        "10/01/2025,08:15:00,PDT,Spotify USA,PreApproved Payment Bill User Payment,Completed,USD,"
        "-10.99,0.00,-10.99,,,0.00,1AB,Premium",
        "10/02/2025,09:00:00,PDT,,Bank Deposit to PP Account,Completed,USD,50.00,0.00,50.00,,,50.00,2CD,",
        "10/03/2025,10:00:00,PDT,Target,Express Checkout Payment,Pending,USD,-20.00,0.00,-20.00,,,0.00,3EF,",
        "10/04/2025,11:00:00,PDT,Some Shop,Express Checkout Payment,Completed,USD,"
        "\"-1,234.56\",0.00,\"-1,234.56\",,,0.00,4GH,Laptop",
        "10/05/2025,12:00:00,PDT,Friend,Mobile Payment,Completed,USD,0.00,0.00,0.00,,,0.00,5IJ,",
    ))

    assert result.errors == []
    assert result.skipped == 3
    spotify, laptop = result.transactions
    assert spotify.category == 'Entertainment'
    assert spotify.notes == 'Premium'
    assert spotify.account == 'PayPal'
    assert laptop.amount == Decimal('1234.56')
    assert laptop.category == 'Shopping'
    assert laptop.type == 'expense'


def test_paypal_description_falls_back_to_type() -> None:
    result = PayPalAdapter().import_text(_csv(
        PAYPAL_HEADER,
        "10/01/2025,08:15:00,PDT,,Payment Refund,Completed,USD,15.00,0.00,15.00,,,15.00,1AB,",
    ))
    refund = result.transactions[0]
    assert refund.description == 'Payment Refund'
    assert refund.type == 'income'


def test_paypal_accepts_headers_by_name() -> None:
    assert PayPalAdapter().validate_headers(['Date', 'Time', 'TimeZone', 'Name', 'Type', 'Status'])
    assert not PayPalAdapter().validate_headers(['Date', 'Name', 'Type'])


def test_paypal_reordered_columns_are_read_by_header_name() -> None:
    adapter = PayPalAdapter()
    header = "Date,TimeZone,Time,Type,Name,Currency,Status,Amount,Item Title"

    positions = adapter.column_positions(parse_csv(header)[0])
    assert positions['Time'] == 2
    assert positions['TimeZone'] == 1
    assert positions['Name'] == 4
    assert 'Receipt ID' not in positions

    result = adapter.import_text(_csv(
        header,
        "10/06/2025,PDT,09:30:00,Express Checkout Payment,Target,USD,Pending,-20.00,",
        "10/01/2025,PDT,08:15:00,PreApproved Payment Bill User Payment,Spotify USA,USD,Completed,-10.99,Premium",
    ))

    assert result.errors == []
    assert result.skipped == 1
    [spotify] = result.transactions
    assert spotify.description == 'Spotify USA'
    assert spotify.category == 'Entertainment'
    assert spotify.amount == Decimal('10.99')
    assert spotify.notes == 'Premium'


# ---------------------------------------------------------------------------
# Credit union
# ---------------------------------------------------------------------------


def test_credit_union_direction_and_transfers() -> None:
    result = CreditUnionAdapter().import_text(_csv(
        CREDIT_UNION_HEADER,
        "Checking,2025-10-01,ACME CORP PAYROLL,,Credit,2500.00",
        "Checking,2025-10-02,KING SOOPERS #12,,Debit,84.10",
        "Checking,2025-10-03,TRANSFER TO SHARE 01,,Debit,100.00",
        "Checking,2025-10-04,CHECK,1042,Debit,300.00",
        "Checking,2025-10-05,XCEL ENERGY,,,-61.20",
    ))

    assert result.errors == []
    assert result.skipped == 1
    payroll, groceries, check, power = result.transactions
    assert (payroll.type, payroll.category) == ('income', 'Income')
    assert (groceries.type, groceries.category) == ('expense', 'Groceries')
    assert check.notes == 'Check #1042'
    assert (power.type, power.amount, power.category) == ('expense', Decimal('61.20'), 'Bills & Utilities')
    assert payroll.date == date(2025, 10, 1)
    assert payroll.account == 'TFCU'
    assert payroll.id.startswith('tfcu_')


def test_credit_union_unknown_direction_is_row_error() -> None:
    result = CreditUnionAdapter().import_text(_csv(
        CREDIT_UNION_HEADER,
        "Checking,2025-10-01,Coffee,,Sideways,4.50",
        "Checking,10/02/2025,Coffee,,Debit,4.50",
    ))
    assert result.transactions == []
    assert len(result.errors) == 2
    assert result.errors[0].startswith('Row 2: Unknown credit/debit indicator')
    assert result.errors[1].startswith('Row 3: Invalid date')
    assert not result.success


# ---------------------------------------------------------------------------
# Format detection and sources
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "header, expected",
    [
        (CHASE_HEADER, 'chase'),
        (PAYPAL_HEADER, 'paypal'),
        (CREDIT_UNION_HEADER, 'credit_union'),
    ],
)
def test_detect_adapter(header, expected) -> None:
    adapter = importers.detect_adapter(parse_csv(header)[0])
    assert adapter is not None
    assert adapter.name == expected


def test_detect_adapter_unknown_headers() -> None:
    assert importers.detect_adapter(['Foo', 'Bar']) is None
    result = importers.import_text(_csv("Foo,Bar", "1,2"))
    assert not result.success
    assert result.errors[0].startswith('Unrecognised CSV format')


def test_get_adapter_by_name() -> None:
    assert isinstance(importers.get_adapter('PayPal'), PayPalAdapter)
    assert importers.available_formats() == ['chase', 'credit_union', 'paypal']
    with pytest.raises(ValueError):
        importers.get_adapter('mint')


def test_import_file_from_bytes_and_path(tmp_path) -> None:
    content = _csv(CHASE_HEADER, "10/26/2025,10/27/2025,Café Rouge,Food & Drink,Sale,-12.50,")

    from_bytes = importers.import_file(content.encode('cp1252'))
    assert from_bytes.transactions[0].description == 'Café Rouge'

    path = tmp_path / 'activity.csv'
    path.write_bytes(b'\xef\xbb\xbf' + content.encode('utf-8'))
    from_path = importers.import_file(path, fmt='chase')
    assert from_path.transactions[0].description == 'Café Rouge'
    assert from_path.transactions[0].category == 'Food & Dining'


def test_import_file_missing_path_raises(tmp_path) -> None:
    with pytest.raises(OSError):
        importers.import_file(tmp_path / 'missing.csv')


def test_import_file_treats_plain_string_as_csv_text() -> None:
    content = _csv(CHASE_HEADER, "10/26/2025,10/27/2025,Starbucks,Food & Drink,Sale,-12.50,")

    result = importers.import_file(content)

    assert result.success
    assert result.transactions[0].description == 'Starbucks'
