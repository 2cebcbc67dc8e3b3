# spending/services/aggregate.py
"""
Dashboard aggregation.

summarize() recomputes everything from the full transaction list on each
call; nothing is cached between renders.
"""

from __future__ import annotations

from typing import Iterable, List, Sequence

import pandas as pd

from spending.schemas import (
    CategoryTotal,
    CurrencyTotal,
    DashboardSummary,
    DateTotal,
    Transaction,
)

COLUMNS = ["id", "date", "name", "price", "currency", "price_in_main", "category", "payment_method"]


def _to_frame(transactions: Iterable[Transaction]) -> pd.DataFrame:
    rows = [tx.model_dump(include=set(COLUMNS)) for tx in transactions]
    return pd.DataFrame(rows, columns=COLUMNS)


def _parse_dates(values: pd.Series) -> pd.Series:
    # unparseable strings become NaT
    return pd.to_datetime(values, errors="coerce", format="mixed", utc=True)


def summarize(
    transactions: Iterable[Transaction],
    categories: Sequence[str],
    main_currency: str,
) -> DashboardSummary:
    df = _to_frame(transactions)
    if df.empty:
        return DashboardSummary(main_currency=main_currency, count=0, total=0.0, average=0.0)

    count = len(df)
    total = float(df["price_in_main"].sum())

    # Per category (configured order; zero-spend categories dropped)
    by_category: List[CategoryTotal] = []
    for category in categories:
        value = float(df.loc[df["category"] == category, "price_in_main"].sum())
        if value > 0:
            by_category.append(CategoryTotal(name=category, value=value))

    # Per date: exact date string groups, ascending by parsed date.
    # Dates that don't parse go last, in first-seen order.
    per_date = (
        df.groupby("date", sort=False)["price_in_main"]
        .sum()
        .reset_index()
    )
    per_date["parsed"] = _parse_dates(per_date["date"])
    per_date = per_date.sort_values("parsed", kind="stable", na_position="last")
    by_date = [
        DateTotal(date=row.date, amount=float(row.price_in_main))
        for row in per_date.itertuples(index=False)
    ]

    # Per currency: raw price, first-seen order
    per_currency = df.groupby("currency", sort=False)["price"].sum()
    by_currency = [
        CurrencyTotal(currency=currency, amount=float(amount))
        for currency, amount in per_currency.items()
    ]

    return DashboardSummary(
        main_currency=main_currency,
        count=count,
        total=total,
        average=total / count,
        by_category=by_category,
        by_date=by_date,
        by_currency=by_currency,
    )


def newest_first(transactions: Iterable[Transaction]) -> List[Transaction]:
    """Order for the transactions page: latest date first, unparseable dates last."""
    transactions = list(transactions)
    if not transactions:
        return []

    parsed = _parse_dates(pd.Series([tx.date for tx in transactions]))
    order = parsed.sort_values(ascending=False, kind="stable", na_position="last").index
    return [transactions[i] for i in order]
