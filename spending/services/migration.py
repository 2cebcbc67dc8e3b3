# spending/services/migration.py
"""
Copy a local JSON blob into the synced collection for one owner.

Used when a user switches from the local variant to the synced one.
Records keep their id, createdAt and priceInMain; ids already present in the
collection are skipped so the copy can be re-run safely.
"""

from __future__ import annotations

import logging
from pathlib import Path

from spending.services.collection import TransactionCollection
from spending.services.store import LocalTransactionStore

logger = logging.getLogger(__name__)


def copy_local_to_collection(
    data_file: str | Path,
    collection: TransactionCollection,
    owner: str,
    batch_size: int = 500,
) -> int:
    """Returns the number of documents created."""
    data_file = Path(data_file)
    if not data_file.exists():
        raise FileNotFoundError(f"No local data file at: {data_file.resolve()}")

    local = LocalTransactionStore(data_file)
    existing_ids = {tx.id for tx in collection.snapshot()}

    pending = [
        tx.model_copy(update={"owner": owner})
        for tx in local.list()
        if tx.id not in existing_ids
    ]
    skipped = len(local.list()) - len(pending)

    # insert in batches
    for i in range(0, len(pending), batch_size):
        collection.create_many(pending[i : i + batch_size])

    logger.info(
        "[migrate] copied %d transaction(s) for owner %r (%d already present)",
        len(pending),
        owner,
        skipped,
    )
    return len(pending)
