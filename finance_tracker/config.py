"""Runtime settings for the finance tracker.

Every value can be overridden through a ``FINTRACK_*`` environment variable
read once at import time.
"""

from __future__ import annotations

import os
from decimal import Decimal
from pathlib import Path

_PACKAGE_PARENT = Path(__file__).resolve().parent.parent

DATA_DIR = Path(os.getenv("FINTRACK_DATA_DIR", _PACKAGE_PARENT / "data"))
# Bank exports dropped here are picked up by auto_load_raw_files
RAW_DATA_DIR = DATA_DIR / "raw"
EXPORTS_DIR = DATA_DIR / "exports"
DB_PATH = Path(os.getenv("FINTRACK_DB_PATH", DATA_DIR / "finance.db")).resolve()

LOG_LEVEL = os.getenv("FINTRACK_LOG_LEVEL", "INFO").upper()

# Share of a candidate's significant words that must appear in a stored
# description for the two to count as the same purchase
DUPLICATE_SIMILARITY_THRESHOLD = float(os.getenv("FINTRACK_DUPLICATE_THRESHOLD", "0.3"))

# Day of month new monthly budgets are credited on
DEFAULT_ROLLOVER_DAY = int(os.getenv("FINTRACK_DEFAULT_ROLLOVER_DAY", "1"))

ZERO = Decimal("0")


def ensure_data_directories() -> None:
    """Create the data, raw and exports directories."""
    for directory in (DATA_DIR, RAW_DATA_DIR, EXPORTS_DIR):
        directory.mkdir(parents=True, exist_ok=True)
