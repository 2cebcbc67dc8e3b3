# spending/services/store.py
"""
Transaction stores.

Two variants share one interface:

- LocalTransactionStore keeps the collection in memory, loads it from a JSON
  blob at startup, and saves the blob after every mutation.
- SyncedTransactionStore forwards every mutation to the shared
  TransactionCollection and only ever shows collection snapshots, filtered to
  its owner: the ones pushed after each write, plus a fresh read on list().
  It never mutates its own list.

Both expose subscribe(listener): the listener receives the full list right
away and after every change.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError

from spending.errors import (
    DuplicateTransactionError,
    PersistenceError,
    TransactionNotFoundError,
)
from spending.schemas import LocalBlob, Transaction, utc_now_iso
from spending.services.collection import TransactionCollection

logger = logging.getLogger(__name__)

Listener = Callable[[List[Transaction]], None]


class TransactionStore(ABC):
    def __init__(self) -> None:
        self._listeners: List[Listener] = []

    @abstractmethod
    def list(self) -> List[Transaction]:
        ...

    @abstractmethod
    def add_many(self, records: Iterable[Transaction]) -> None:
        ...

    @abstractmethod
    def update(self, transaction_id: str, record: Transaction) -> None:
        ...

    @abstractmethod
    def remove(self, transaction_id: str) -> None:
        ...

    def add(self, record: Transaction) -> None:
        self.add_many([record])

    def get(self, transaction_id: str) -> Optional[Transaction]:
        for tx in self.list():
            if tx.id == transaction_id:
                return tx
        return None

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        listener(self.list())

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self, current: List[Transaction]) -> None:
        for listener in list(self._listeners):
            listener(current)


# -------------------------------------------------------------------
# Local variant
# -------------------------------------------------------------------

class LocalTransactionStore(TransactionStore):
    def __init__(self, path: str | os.PathLike):
        super().__init__()
        self.path = Path(path)
        self._transactions: List[Transaction] = self._load()

    def list(self) -> List[Transaction]:
        return list(self._transactions)

    def add_many(self, records: Iterable[Transaction]) -> None:
        records = list(records)
        if not records:
            return
        known = {tx.id for tx in self._transactions}
        for record in records:
            if record.id in known:
                raise DuplicateTransactionError(record.id)
            known.add(record.id)

        self._commit(self._transactions + records)
        logger.info("[local-store] added %d transaction(s)", len(records))

    def update(self, transaction_id: str, record: Transaction) -> None:
        if not any(tx.id == transaction_id for tx in self._transactions):
            raise TransactionNotFoundError(transaction_id)

        replacement = record.model_copy(update={"id": transaction_id})
        self._commit([
            replacement if tx.id == transaction_id else tx
            for tx in self._transactions
        ])
        logger.info("[local-store] updated %s", transaction_id)

    def remove(self, transaction_id: str) -> None:
        remaining = [tx for tx in self._transactions if tx.id != transaction_id]
        if len(remaining) == len(self._transactions):
            return
        self._commit(remaining)
        logger.info("[local-store] removed %s", transaction_id)

    # ---- persistence ----

    def _load(self) -> List[Transaction]:
        if not self.path.exists():
            return []
        try:
            blob = LocalBlob.model_validate_json(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError, ValidationError) as e:
            logger.warning("[local-store] could not read %s (%r); starting fresh", self.path, e)
            return []
        logger.info("[local-store] loaded %d transaction(s) from %s", len(blob.transactions), self.path)
        return list(blob.transactions)

    def _commit(self, transactions: List[Transaction]) -> None:
        """Save first; only swap the in-memory list once the write succeeded."""
        blob = LocalBlob(transactions=transactions, last_sync=utc_now_iso())
        try:
            self._write(blob.model_dump(by_alias=True, exclude_none=True))
        except OSError as e:
            logger.error("[local-store] error saving %s: %r", self.path, e)
            raise PersistenceError(f"Error saving transactions: {e}") from e

        self._transactions = list(transactions)
        self._notify(self.list())

    def _write(self, data: dict) -> None:
        # write to a temp file next to the target, then rename into place
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(
            dir=self.path.parent,
            prefix=f".{self.path.name}.",
            suffix=".tmp",
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except OSError:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise


# -------------------------------------------------------------------
# Synced variant
# -------------------------------------------------------------------

class SyncedTransactionStore(TransactionStore):
    def __init__(self, collection: TransactionCollection, owner: str):
        super().__init__()
        self.owner = owner
        self._collection = collection
        self._snapshot: List[Transaction] = []
        self._unwatch = collection.watch(self._on_snapshot)

    def list(self) -> List[Transaction]:
        self.refresh()
        return list(self._snapshot)

    def refresh(self) -> None:
        """
        Pull the collection's current state, including writes made by other
        processes. If the read fails the last snapshot stays in place.
        """
        try:
            documents = self._collection.snapshot()
        except PersistenceError as e:
            logger.warning("[synced-store] refresh failed for %r, keeping last snapshot: %s", self.owner, e)
            return
        self._on_snapshot(documents)

    def add_many(self, records: Iterable[Transaction]) -> None:
        self._collection.create_many([self._owned(record) for record in records])

    def update(self, transaction_id: str, record: Transaction) -> None:
        self._collection.update(
            transaction_id,
            self._owned(record).model_copy(update={"id": transaction_id}),
        )

    def remove(self, transaction_id: str) -> None:
        self._collection.delete(transaction_id, owner=self.owner)

    def close(self) -> None:
        self._unwatch()

    def _owned(self, record: Transaction) -> Transaction:
        return record.model_copy(update={"owner": self.owner})

    def _on_snapshot(self, documents: List[Transaction]) -> None:
        owned = [doc for doc in documents if doc.owner == self.owner]
        if owned == self._snapshot:
            return
        self._snapshot = owned
        self._notify(list(owned))
