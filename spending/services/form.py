# spending/services/form.py
"""
Add/edit form controller.

States:
    idle      form hidden
    creating  blank form (date = today, currency = main currency)
    editing   form prefilled from an existing transaction

submit() validates name/price, writes through the store (update when there
is an edit target, add otherwise) and returns to idle. A validation error
keeps the form open in its current state.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields, replace
from datetime import date
from enum import Enum
from typing import Callable, Mapping, Optional

from spending.errors import FormStateError, FormValidationError
from spending.schemas import Transaction, new_transaction_id, utc_now_iso
from spending.services.currency import convert, format_amount
from spending.services.store import TransactionStore

logger = logging.getLogger(__name__)


class FormState(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    EDITING = "editing"


@dataclass(frozen=True)
class FormFields:
    date: str = ""
    name: str = ""
    price: str = ""
    currency: str = ""
    category: str = ""
    payment_method: str = ""


FIELD_NAMES = tuple(f.name for f in fields(FormFields))


class TransactionForm:
    def __init__(
        self,
        store: TransactionStore,
        rates: Mapping[str, float],
        main_currency: str,
        today: Callable[[], date] = date.today,
    ):
        self.store = store
        self.rates = rates
        self.main_currency = main_currency
        self._today = today

        self.state = FormState.IDLE
        self.fields = FormFields()
        self.editing: Optional[Transaction] = None
        self.error: Optional[str] = None

    @property
    def is_open(self) -> bool:
        return self.state is not FormState.IDLE

    # ---- transitions ----

    def open_for_create(self) -> None:
        self.state = FormState.CREATING
        self.editing = None
        self.error = None
        self.fields = FormFields(
            date=self._today().isoformat(),
            currency=self.main_currency,
        )

    def open_for_edit(self, record: Transaction) -> None:
        self.state = FormState.EDITING
        self.editing = record
        self.error = None
        self.fields = FormFields(
            date=record.date,
            name=record.name,
            price=format_amount(record.price),
            currency=record.currency,
            category=record.category or "",
            payment_method=record.payment_method or "",
        )

    def cancel(self) -> None:
        self._reset()

    def set_fields(self, **values: Optional[str]) -> None:
        if not self.is_open:
            raise FormStateError("Form is not open")

        unknown = set(values) - set(FIELD_NAMES)
        if unknown:
            raise TypeError(f"Unknown form field(s): {sorted(unknown)}")

        cleaned = {key: "" if value is None else str(value) for key, value in values.items()}
        self.fields = replace(self.fields, **cleaned)

    def submit(self) -> Transaction:
        """
        Validate, write to the store, and go back to idle.

        Raises FormValidationError (form stays open) or whatever the store
        raises on a failed write (form also stays open).
        """
        if not self.is_open:
            raise FormStateError("Nothing to submit: form is not open")

        try:
            price = self._validate()
        except FormValidationError as e:
            self.error = str(e)
            raise

        record = self._build_record(price)
        if self.editing is not None:
            self.store.update(self.editing.id, record)
            logger.info("[form] updated %s", record.id)
        else:
            self.store.add(record)
            logger.info("[form] added %s", record.id)

        self._reset()
        return record

    # ---- helpers ----

    def _validate(self) -> float:
        name = self.fields.name.strip()
        raw_price = self.fields.price.strip()

        if not name or not raw_price:
            raise FormValidationError("Please fill in name and price")

        try:
            price = float(raw_price)
        except ValueError:
            raise FormValidationError(f"Price must be a number, got {raw_price!r}") from None

        if not math.isfinite(price) or price < 0:
            raise FormValidationError("Price must be a non-negative number")

        return price

    def _build_record(self, price: float) -> Transaction:
        currency = self.fields.currency.strip() or self.main_currency
        return Transaction(
            id=self.editing.id if self.editing else new_transaction_id(),
            date=self.fields.date.strip() or self._today().isoformat(),
            name=self.fields.name.strip(),
            price=price,
            currency=currency,
            price_in_main=convert(price, currency, self.main_currency, self.rates),
            category=self.fields.category.strip(),
            payment_method=self.fields.payment_method.strip(),
            created_at=self.editing.created_at if self.editing else utc_now_iso(),
            owner=self.editing.owner if self.editing else None,
        )

    def _reset(self) -> None:
        self.state = FormState.IDLE
        self.editing = None
        self.error = None
        self.fields = FormFields()
