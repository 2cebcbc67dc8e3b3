# spending/services/collection.py
"""
Shared transaction collection for the synced backend.

The collection holds every owner's documents. Watchers receive the full
collection snapshot immediately and again after every write committed through
this instance; writes from other processes are seen on the next snapshot()
read. Owner scoping happens in the store.
"""

from __future__ import annotations

import logging
from typing import Callable, List

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from db import SessionLocal
from models import TransactionDocument
from spending.errors import (
    DuplicateTransactionError,
    PersistenceError,
    TransactionNotFoundError,
)
from spending.schemas import Transaction

logger = logging.getLogger(__name__)

SnapshotListener = Callable[[List[Transaction]], None]


class TransactionCollection:
    def __init__(self, session_factory: sessionmaker = SessionLocal):
        self._session_factory = session_factory
        self._watchers: List[SnapshotListener] = []

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------

    def snapshot(self) -> List[Transaction]:
        """All documents, in insertion order."""
        try:
            with self._session_factory() as db:
                rows = db.query(TransactionDocument).order_by(TransactionDocument.row_id).all()
                return [row.to_transaction() for row in rows]
        except SQLAlchemyError as e:
            logger.error("[collection] snapshot failed: %r", e)
            raise PersistenceError(f"Could not read transactions: {e}") from e

    def watch(self, listener: SnapshotListener) -> Callable[[], None]:
        """
        Register `listener` for full-collection snapshots.
        It is called right away with the current snapshot.
        Returns a function that removes the listener.
        """
        self._watchers.append(listener)
        listener(self.snapshot())

        def unwatch() -> None:
            if listener in self._watchers:
                self._watchers.remove(listener)

        return unwatch

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------

    def create(self, tx: Transaction) -> None:
        self.create_many([tx])

    def create_many(self, txs: List[Transaction]) -> None:
        if not txs:
            return

        def write(db: Session) -> None:
            ids = [tx.id for tx in txs]
            existing = (
                db.query(TransactionDocument.id)
                .filter(TransactionDocument.id.in_(ids))
                .first()
            )
            if existing is not None:
                raise DuplicateTransactionError(existing[0])
            if len(set(ids)) != len(ids):
                raise PersistenceError("Duplicate ids in one write")
            db.add_all([TransactionDocument.from_transaction(tx) for tx in txs])

        self._commit("create", write)
        logger.info("[collection] created %d document(s)", len(txs))

    def update(self, transaction_id: str, tx: Transaction) -> None:
        """Full replace of one document. Only its owner may write it."""

        def write(db: Session) -> None:
            doc = self._get_doc(db, transaction_id)
            if doc is None:
                raise TransactionNotFoundError(transaction_id)
            if doc.owner != tx.owner:
                raise PersistenceError("Permission denied: document belongs to another owner")
            doc.apply(tx)

        self._commit("update", write)
        logger.info("[collection] updated %s", transaction_id)

    def delete(self, transaction_id: str, owner: str) -> None:
        """Delete one document. Deleting an unknown id is a no-op."""

        def write(db: Session) -> None:
            doc = self._get_doc(db, transaction_id)
            if doc is None:
                return
            if doc.owner != owner:
                raise PersistenceError("Permission denied: document belongs to another owner")
            db.delete(doc)

        self._commit("delete", write)
        logger.info("[collection] deleted %s", transaction_id)

    # -------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------

    @staticmethod
    def _get_doc(db: Session, transaction_id: str):
        return (
            db.query(TransactionDocument)
            .filter(TransactionDocument.id == transaction_id)
            .one_or_none()
        )

    def _commit(self, operation: str, write: Callable[[Session], None]) -> None:
        """Run `write` in one DB transaction, then publish a fresh snapshot."""
        db = self._session_factory()
        try:
            write(db)
            db.commit()
        except PersistenceError:
            db.rollback()
            raise
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("[collection] %s failed: %r", operation, e)
            raise PersistenceError(f"Could not {operation} transaction: {e}") from e
        finally:
            db.close()

        self._publish()

    def _publish(self) -> None:
        if not self._watchers:
            return
        snapshot = self.snapshot()
        for listener in list(self._watchers):
            listener(snapshot)
