# models.py
# Role: SQLAlchemy ORM models for the synced storage backend.
#       Each row of TransactionDocument is one transaction document in the
#       shared collection; visibility is scoped by the `owner` column.

from sqlalchemy import Column, Integer, String, Float

from db import Base
from spending.schemas import Transaction


class TransactionDocument(Base):
    """
    ORM model representing a single transaction document.

    All owners share one table; the synced store filters the snapshot down to
    its own owner. Amounts are stored both in the original currency and
    converted to the main currency selected at write time.
    """

    __tablename__ = "transactions"

    # Surrogate primary key; also gives snapshots a stable insertion order
    row_id = Column(Integer, primary_key=True)

    # Public document id (uuid hex)
    id = Column(String, unique=True, index=True, nullable=False)

    # Identifier of the user who created the document
    owner = Column(String, index=True, nullable=False)

    # Calendar day as entered, e.g. "2024-01-01"
    date = Column(String, nullable=False)

    # Free-text description, e.g. "Lunch"
    name = Column(String, nullable=False)

    # Amount in the original currency
    price = Column(Float, nullable=False)

    # Original currency code, e.g. "EUR", "USD"
    currency = Column(String(3), nullable=False)

    # Same amount converted to the main currency at write time
    price_in_main = Column(Float, nullable=False)

    # Optional category / payment method (empty string = not set)
    category = Column(String, nullable=False, default="")
    payment_method = Column(String, nullable=False, default="")

    # ISO timestamp, never changed after creation
    created_at = Column(String, nullable=False)

    def to_transaction(self) -> Transaction:
        return Transaction(
            id=self.id,
            date=self.date,
            name=self.name,
            price=self.price,
            currency=self.currency,
            price_in_main=self.price_in_main,
            category=self.category or "",
            payment_method=self.payment_method or "",
            created_at=self.created_at,
            owner=self.owner,
        )

    def apply(self, tx: Transaction) -> None:
        """Copy every field of `tx` (except the id) onto this row."""
        self.owner = tx.owner
        self.date = tx.date
        self.name = tx.name
        self.price = tx.price
        self.currency = tx.currency
        self.price_in_main = tx.price_in_main
        self.category = tx.category
        self.payment_method = tx.payment_method
        self.created_at = tx.created_at

    @classmethod
    def from_transaction(cls, tx: Transaction) -> "TransactionDocument":
        doc = cls(id=tx.id)
        doc.apply(tx)
        return doc
