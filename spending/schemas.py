# spending/schemas.py
# Role: Pydantic value models shared by the stores, services, and JSON API.
#       Serialized keys are camelCase (priceInMain, paymentMethod, createdAt)
#       so the local blob and the API keep the same shape.

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


def new_transaction_id() -> str:
    return uuid.uuid4().hex


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
    )


class Transaction(CamelModel):
    """
    One logged expense.

    price_in_main is a cache of `price` converted to the main currency that
    was selected when the record was written. It is never recomputed later.
    """

    id: str
    date: str
    name: str
    price: float
    currency: str
    price_in_main: float
    category: str = ""
    payment_method: str = ""
    created_at: str
    owner: Optional[str] = None


class LocalBlob(CamelModel):
    """Shape of the local persistence file: {transactions, lastSync}."""

    transactions: List[Transaction] = []
    last_sync: Optional[str] = None


# ---- Dashboard view-model ----

class CategoryTotal(CamelModel):
    name: str
    value: float


class DateTotal(CamelModel):
    date: str
    amount: float


class CurrencyTotal(CamelModel):
    currency: str
    amount: float


class DashboardSummary(CamelModel):
    main_currency: str
    count: int
    total: float
    average: float
    by_category: List[CategoryTotal] = []
    by_date: List[DateTotal] = []
    by_currency: List[CurrencyTotal] = []
