"""Shared machinery for bank CSV adapters.

An adapter knows one export format: its expected header row, how to read a
data row into a :class:`~finance_tracker.models.Transaction`, and when a row
is not a real transaction.  :meth:`CsvFormatAdapter.import_text` runs the
common pipeline:

1. tokenize the text (:func:`~.csv_parser.parse_csv`);
2. validate the header row, aborting the whole file on mismatch;
3. convert each data row, collecting per-row failures as ``"Row N: ..."``
   messages and counting rows the adapter declines as ``skipped``.

Only an unreadable source raises; every other problem is reported in the
returned :class:`ImportResult`.
"""

from __future__ import annotations

import os
import time
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import IO, ClassVar, Dict, List, Optional, Sequence, Union

from ..log import get_logger
from ..models import Transaction
from .csv_parser import header_score as score_headers, headers_in_order, headers_present, parse_csv

logger = get_logger(__name__)

SourceType = Union[str, os.PathLike, bytes, IO]
ENCODINGS = ('utf-8-sig', 'cp1252', 'latin-1')


@dataclass
class ImportResult:
    success: bool = False
    transactions: List[Transaction] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    skipped: int = 0


def make_transaction_id(source_tag: str, row_index: int) -> str:
    """Synthetic id: source tag, millisecond timestamp, row index and random suffix."""
    return f"{source_tag}_{int(time.time() * 1000)}_{row_index}_{uuid.uuid4().hex[:7]}"


def decode_bytes(raw: bytes) -> str:
    for encoding in ENCODINGS[:-1]:
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError:
            continue
    return raw.decode(ENCODINGS[-1])


def read_source(source: SourceType) -> str:
    """Return CSV text from text, raw bytes, a path, or a file-like object.

    A plain ``str`` is taken to be the CSV contents; pass a :class:`~pathlib.Path`
    (or any ``os.PathLike``) to read a file.

    Raises:
        OSError: If a path cannot be read.
    """
    if isinstance(source, str):
        return source
    if isinstance(source, bytes):
        return decode_bytes(source)
    if isinstance(source, os.PathLike):
        return decode_bytes(Path(source).read_bytes())
    if hasattr(source, 'read'):
        content = source.read()
        if isinstance(content, bytes):
            return decode_bytes(content)
        return content
    raise TypeError(f"Unsupported CSV source type: {type(source).__name__}")


class CsvFormatAdapter:
    """Base class for a single bank export format."""

    name: ClassVar[str] = ''
    display_name: ClassVar[str] = ''
    source_tag: ClassVar[str] = ''
    default_account: ClassVar[str] = ''
    columns: ClassVar[Sequence[str]] = ()
    # Headers that must be present for the file to be accepted
    required_headers: ClassVar[Sequence[str]] = ()
    # True: each required header must sit in its own column position
    positional_headers: ClassVar[bool] = True

    # Public API -------------------------------------------------------------

    def parse(self, raw_text: str) -> List[List[str]]:
        return parse_csv(raw_text)

    def validate_headers(self, headers: Sequence[str]) -> bool:
        expected = self.required_headers or self.columns
        if self.positional_headers:
            return headers_in_order(headers, expected)
        return headers_present(headers, expected)

    def header_score(self, headers: Sequence[str]) -> int:
        return score_headers(headers, self.columns)

    def column_positions(self, headers: Sequence[str]) -> Dict[str, int]:
        """Map each known column name to its cell index in rows of this file.

        Positional formats use the fixed column order.  Otherwise each name is
        located in ``headers``: an exact (case-insensitive) header wins over one
        that merely contains the name, so ``Time`` does not land on
        ``TimeZone``.  Names absent from the file are left out.
        """
        if self.positional_headers:
            return {name: position for position, name in enumerate(self.columns)}
        lowered = [header.strip().lower() for header in headers]
        positions: Dict[str, int] = {}
        taken = set()
        for name in self.columns:
            key = name.lower()
            exact = [i for i, header in enumerate(lowered) if header == key and i not in taken]
            partial = [i for i, header in enumerate(lowered) if key in header and i not in taken]
            candidates = exact or partial
            if candidates:
                positions[name] = candidates[0]
                taken.add(candidates[0])
        return positions

    def row_to_transaction(
        self,
        row: Dict[str, str],
        account: Optional[str] = None,
        row_index: int = 0,
    ) -> Optional[Transaction]:
        """Convert one data row; return ``None`` for rows that are not transactions.

        Raises:
            ValueError: If a required field is missing or malformed.
        """
        raise NotImplementedError

    def import_text(self, raw_text: str, account: Optional[str] = None) -> ImportResult:
        result = ImportResult()
        rows = self.parse(raw_text)
        if not rows:
            result.errors.append('File is empty')
            logger.warning("%s import aborted: file is empty", self.display_name)
            return result

        headers = rows[0]
        if not self.validate_headers(headers):
            expected = self.required_headers or self.columns
            result.errors.append(
                f"Invalid {self.display_name} CSV format. Expected headers: {', '.join(expected)}"
            )
            logger.warning("%s import aborted: unexpected headers %s", self.display_name, headers)
            return result

        label = account or self.default_account
        column_index = self.column_positions(headers)
        for index in range(1, len(rows)):
            cells = rows[index]
            if all(not cell.strip() for cell in cells):
                result.skipped += 1
                continue
            try:
                transaction = self.row_to_transaction(self._row_dict(cells, column_index), label, index)
            except ValueError as exc:
                message = f"Row {index + 1}: {exc}"
                result.errors.append(message)
                logger.warning("%s %s", self.display_name, message)
                continue
            if transaction is None:
                result.skipped += 1
            else:
                result.transactions.append(transaction)

        result.success = len(result.transactions) > 0
        logger.info(
            "%s import parsed %d transactions (%d skipped, %d errors)",
            self.display_name, len(result.transactions), result.skipped, len(result.errors),
        )
        return result

    def import_file(self, source: SourceType, account: Optional[str] = None) -> ImportResult:
        return self.import_text(read_source(source), account=account)

    # Internal ----------------------------------------------------------------

    def _row_dict(self, cells: Sequence[str], column_index: Dict[str, int]) -> Dict[str, str]:
        return {
            name: cells[position] if position < len(cells) else ''
            for name, position in column_index.items()
        }
