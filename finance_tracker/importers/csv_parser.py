"""Low-level CSV tokenizing and field parsing shared by the bank adapters.

The tokenizer is deliberately small: it splits on newlines, treats a double
quote as a toggle for an in-field state, and only splits on commas outside
quotes.  Escaped quotes (``""``) and newlines embedded in quoted fields are
not supported; bank exports handled here do not produce them.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from typing import List, Optional, Sequence

BOM = '\ufeff'


def parse_csv(text: str) -> List[List[str]]:
    """Split CSV text into rows of trimmed cells, skipping blank lines."""
    if text.startswith(BOM):
        text = text[len(BOM):]
    rows: List[List[str]] = []
    for line in text.split('\n'):
        if not line.strip():
            continue
        row: List[str] = []
        current: List[str] = []
        in_quotes = False
        for char in line:
            if char == '"':
                in_quotes = not in_quotes
            elif char == ',' and not in_quotes:
                row.append(''.join(current).strip())
                current = []
            else:
                current.append(char)
        row.append(''.join(current).strip())
        rows.append(row)
    return rows


def headers_in_order(headers: Sequence[str], expected: Sequence[str]) -> bool:
    """Each expected name must appear (case-insensitive) in the same column."""
    return all(
        index < len(headers) and name.lower() in headers[index].lower()
        for index, name in enumerate(expected)
    )


def headers_present(headers: Sequence[str], expected: Sequence[str]) -> bool:
    """Each expected name must appear (case-insensitive) in some column."""
    lowered = [header.lower() for header in headers]
    return all(any(name.lower() in header for header in lowered) for name in expected)


def header_score(headers: Sequence[str], expected: Sequence[str]) -> int:
    """Count expected names found at their own position."""
    return sum(
        1 for index, name in enumerate(expected)
        if index < len(headers) and name.lower() in headers[index].lower()
    )


def parse_amount(value: Optional[str]) -> Decimal:
    """Convert textual amount representations into a signed Decimal.

    Handles currency markers, thousands separators and accounting negatives
    such as ``(123.45)``.

    Raises:
        ValueError: If the value is empty or not a number.
    """
    if value is None or not value.strip():
        raise ValueError("Missing amount")
    cleaned = value.strip()
    if cleaned.startswith('(') and cleaned.endswith(')'):
        cleaned = f"-{cleaned[1:-1]}"
    cleaned = cleaned.replace('$', '').replace(',', '').replace(' ', '')
    try:
        number = Decimal(cleaned)
    except InvalidOperation:
        raise ValueError(f"Invalid amount '{value}'") from None
    if not number.is_finite():
        raise ValueError(f"Invalid amount '{value}'")
    return number


def parse_us_date(value: Optional[str]) -> date:
    """Parse ``MM/DD/YYYY`` into a date."""
    parts = (value or '').strip().split('/')
    if len(parts) != 3 or not all(part.isdigit() for part in parts):
        raise ValueError(f"Invalid date '{value}', expected MM/DD/YYYY")
    month, day, year = (int(part) for part in parts)
    try:
        return date(year, month, day)
    except ValueError:
        raise ValueError(f"Invalid date '{value}', expected MM/DD/YYYY") from None


def parse_iso_date(value: Optional[str]) -> date:
    """Parse ``YYYY-MM-DD`` into a date."""
    try:
        return date.fromisoformat((value or '').strip())
    except ValueError:
        raise ValueError(f"Invalid date '{value}', expected YYYY-MM-DD") from None
