"""
This script migrates transactions from the local-storage variant (a single
JSON blob: {"transactions": [...], "lastSync": ...}) into the synced
collection in the SQL database, stamping every record with one owner id.

Records keep their id, createdAt and priceInMain; documents that already exist
in the collection are skipped, so the script can be re-run.

Purpose:
- Move a user's offline history into the synced backend
- Serve as a one-time / repeatable migration step

Usage:
    python data-migration/script.py <owner-id> [path/to/travel-spending-data.json]
"""


from __future__ import annotations

import argparse
import logging
import os
import sys

# allow running from the project root without installing the package
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from db import SessionLocal, init_db  # noqa: E402
from spending.config import load_config  # noqa: E402
from spending.services.collection import TransactionCollection  # noqa: E402
from spending.services.migration import copy_local_to_collection  # noqa: E402


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Copy local transactions into the synced collection.")
    parser.add_argument("owner", help="user id that will own the migrated transactions")
    parser.add_argument("data_file", nargs="?", help="local JSON blob (default: SPENDING_DATA_FILE)")
    args = parser.parse_args(argv)

    config = load_config()
    logging.basicConfig(level=config.log_level)

    data_file = args.data_file or config.data_file

    init_db()
    inserted = copy_local_to_collection(data_file, TransactionCollection(SessionLocal), args.owner)
    print(f"\nDONE. Total inserted: {inserted}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
