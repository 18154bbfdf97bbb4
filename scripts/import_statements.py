#!/usr/bin/env python3
"""Load bank exports from the raw data directory and print budget status."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Optional

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from finance_tracker import config
from finance_tracker.budgets import budget_summary_frame
from finance_tracker.services import TransactionService, auto_load_raw_files
from finance_tracker.storage import SqliteStore


def main(raw_dir: Optional[str] = None, db_path: Optional[str] = None) -> int:
    if raw_dir is None:
        config.ensure_data_directories()
        raw_dir = str(config.RAW_DATA_DIR)
    store = SqliteStore(db_path or config.DB_PATH)
    print(f"Scanning {raw_dir}")
    results = auto_load_raw_files(TransactionService(store), raw_dir)

    print(f"Loaded files: {len(results['loaded_files'])}")
    for name in results['loaded_files']:
        print(f"  - {name}")
    print(
        f"Inserted {results['total_inserted']} transactions, "
        f"{results['total_duplicates']} duplicates, {results['total_skipped']} skipped"
    )
    if results['error_files']:
        print("\nFiles with errors:")
        for message in results['error_files']:
            print(f"  - {message}")
    for name, issues in results['issues'].items():
        print(f"\nIssues in {name}:")
        for issue in issues:
            print(f"  - {issue}")

    summary = budget_summary_frame(store.list_budgets(), store.list_transactions())
    if summary.empty:
        print("\nNo budgets defined.")
    else:
        print("\nBudget status:")
        print(summary.to_string(index=False))
    return 1 if results['error_files'] else 0


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Import raw bank exports into the finance database.')
    parser.add_argument('--raw-dir', default=None, help='Directory of CSV exports (defaults to data/raw)')
    parser.add_argument('--db', default=None, help='SQLite database path')
    args = parser.parse_args()
    raise SystemExit(main(raw_dir=args.raw_dir, db_path=args.db))
