"""Bank export adapters and format detection.

Adapters are registered by name (``chase``, ``paypal``, ``credit_union``).
:func:`detect_adapter` chooses one from a file's header row when the caller
does not know the format in advance.
"""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .base import CsvFormatAdapter, ImportResult, make_transaction_id, read_source
from .chase import ChaseAdapter
from .credit_union import CreditUnionAdapter
from .csv_parser import parse_csv
from .paypal import PayPalAdapter

ADAPTERS: Dict[str, CsvFormatAdapter] = {
    adapter.name: adapter
    for adapter in (ChaseAdapter(), PayPalAdapter(), CreditUnionAdapter())
}


def available_formats() -> List[str]:
    return sorted(ADAPTERS)


def get_adapter(name: str) -> CsvFormatAdapter:
    try:
        return ADAPTERS[name.lower()]
    except KeyError:
        raise ValueError(
            f"Unknown CSV format '{name}'. Expected one of: {', '.join(available_formats())}"
        ) from None


def detect_adapter(headers: Sequence[str]) -> Optional[CsvFormatAdapter]:
    """Return the adapter whose headers best match ``headers``.

    Only adapters that would accept the header row are considered; ``None``
    means no adapter recognises the file.
    """
    best: Optional[CsvFormatAdapter] = None
    best_score = -1
    for adapter in ADAPTERS.values():
        if not adapter.validate_headers(headers):
            continue
        score = adapter.header_score(headers)
        if score > best_score:
            best, best_score = adapter, score
    return best


def import_text(raw_text: str, fmt: Optional[str] = None, account: Optional[str] = None) -> ImportResult:
    """Import CSV text with a named or auto-detected adapter."""
    if fmt:
        return get_adapter(fmt).import_text(raw_text, account=account)
    rows = parse_csv(raw_text)
    if not rows:
        return ImportResult(errors=['File is empty'])
    adapter = detect_adapter(rows[0])
    if adapter is None:
        return ImportResult(errors=[
            'Unrecognised CSV format. Supported formats: '
            + ', '.join(ADAPTERS[name].display_name for name in available_formats())
        ])
    return adapter.import_text(raw_text, account=account)


def import_file(source, fmt: Optional[str] = None, account: Optional[str] = None) -> ImportResult:
    """Import CSV text, bytes, a ``Path`` or a file-like object; unreadable paths raise ``OSError``."""
    return import_text(read_source(source), fmt=fmt, account=account)


__all__ = [
    'ADAPTERS',
    'CsvFormatAdapter',
    'ChaseAdapter',
    'PayPalAdapter',
    'CreditUnionAdapter',
    'ImportResult',
    'available_formats',
    'detect_adapter',
    'get_adapter',
    'import_file',
    'import_text',
    'make_transaction_id',
]
