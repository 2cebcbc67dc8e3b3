# spending/services/csv_io.py

"""
CSV export / import for transactions.

Export columns (fixed order):
    Date, Name, Price, Currency, Price in Main, Main Currency, Category, Payment Method

Import looks columns up by header name (case-insensitive, any order) and
ignores unknown columns. A row is kept only when Date, Name and Price are
present and Price parses as a finite, non-negative number; other rows are dropped
silently and only the accepted count is reported.
"""

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date
from typing import Iterable, List, Mapping, Tuple

import numpy as np
import pandas as pd

from spending.errors import CsvImportError
from spending.schemas import Transaction, new_transaction_id, utc_now_iso
from spending.services.currency import convert, format_amount

logger = logging.getLogger(__name__)

EXPORT_COLUMNS = [
    "Date",
    "Name",
    "Price",
    "Currency",
    "Price in Main",
    "Main Currency",
    "Category",
    "Payment Method",
]


@dataclass(frozen=True)
class ImportResult:
    transactions: List[Transaction]
    total_rows: int

    @property
    def imported(self) -> int:
        return len(self.transactions)

    @property
    def dropped(self) -> int:
        return self.total_rows - self.imported

    @property
    def message(self) -> str:
        return f"Imported {self.imported} transactions"


# ---- Export ----

def export_filename(day: date) -> str:
    return f"expenses-{day.isoformat()}.csv"


def export_csv(transactions: Iterable[Transaction], main_currency: str) -> str:
    """Serialize transactions to CSV text (header row always present)."""
    rows = [
        {
            "Date": tx.date,
            "Name": tx.name,
            "Price": format_amount(tx.price),
            "Currency": tx.currency,
            "Price in Main": f"{tx.price_in_main:.2f}",
            "Main Currency": main_currency,
            "Category": tx.category,
            "Payment Method": tx.payment_method,
        }
        for tx in transactions
    ]
    df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)
    return df.to_csv(index=False, lineterminator="\r\n")


# ---- Import ----

def _count_long_rows(text: str) -> int:
    """Rows with more fields than the header; read_csv skips these."""
    rows = csv.reader(io.StringIO(text))
    header = next(rows, [])
    return sum(1 for row in rows if len(row) > len(header))


def _read_frame(text: str) -> Tuple[pd.DataFrame, int]:
    """Return the parsed rows (lower-cased headers) and the number of skipped rows."""
    try:
        df = pd.read_csv(
            io.StringIO(text),
            dtype=str,
            keep_default_na=False,
            skip_blank_lines=True,
            on_bad_lines="skip",
        )
    except pd.errors.EmptyDataError:
        return pd.DataFrame(), 0
    except pd.errors.ParserError as e:
        raise CsvImportError(f"Could not read CSV: {e}") from e

    # normalize headers for case-insensitive lookup
    df.columns = df.columns.str.strip().str.lower()
    return df.fillna(""), _count_long_rows(text)


def import_csv(
    text: str,
    main_currency: str,
    rates: Mapping[str, float],
) -> ImportResult:
    """
    Parse CSV text into new Transaction records (fresh ids and createdAt).

    price_in_main comes from the "Price in Main" column when it is a finite,
    non-negative number and the row's "Main Currency" is empty or matches
    `main_currency`; otherwise it is converted from price with the current
    rate table. Rows with more fields than the header are skipped and counted
    as dropped.
    """
    df, skipped = _read_frame(text.lstrip("\ufeff"))
    if df.empty:
        return ImportResult(transactions=[], total_rows=skipped)

    def column(name: str) -> pd.Series:
        if name not in df.columns:
            return pd.Series("", index=df.index, dtype=object)
        return df[name].astype(str).str.strip()

    dates = column("date")
    names = column("name")
    raw_price = column("price")
    price = pd.to_numeric(raw_price, errors="coerce")

    accepted = (dates != "") & (names != "") & (raw_price != "") & np.isfinite(price) & (price >= 0)

    currency = column("currency").replace("", main_currency)

    # "Price in Main" is only trusted when it was computed for the same main currency
    csv_in_main = pd.to_numeric(column("price in main"), errors="coerce")
    csv_main = column("main currency").str.upper()
    usable_in_main = (
        np.isfinite(csv_in_main)
        & (csv_in_main >= 0)
        & ((csv_main == "") | (csv_main == main_currency))
    )

    converted = pd.Series(
        [convert(p, c, main_currency, rates) if pd.notna(p) else np.nan for p, c in zip(price, currency)],
        index=df.index,
        dtype=float,
    )
    price_in_main = pd.Series(np.where(usable_in_main, csv_in_main, converted), index=df.index)

    category = column("category")
    payment_method = column("payment method")

    created_at = utc_now_iso()
    transactions = [
        Transaction(
            id=new_transaction_id(),
            date=dates[i],
            name=names[i],
            price=float(price[i]),
            currency=currency[i],
            price_in_main=float(price_in_main[i]),
            category=category[i],
            payment_method=payment_method[i],
            created_at=created_at,
        )
        for i in df.index[accepted.to_numpy()]
    ]

    result = ImportResult(transactions=transactions, total_rows=len(df) + skipped)
    logger.info(
        "[import] %d row(s) read, %d accepted, %d dropped",
        result.total_rows,
        result.imported,
        result.dropped,
    )
    return result
