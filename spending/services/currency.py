# spending/services/currency.py
#
# Currency Conversion
# Converts an amount between currencies using a static rate table where every
# rate is expressed relative to the same base unit (rate[base] == 1).

from typing import Mapping


def get_rate(currency: str, rates: Mapping[str, float]) -> float:
    """
    Rate for `currency`, or 1.0 when it is missing from the table.
    A zero rate is treated as missing as well.
    """
    return rates.get(currency) or 1.0


def convert(
    amount: float,
    from_currency: str,
    to_currency: str,
    rates: Mapping[str, float],
) -> float:
    """
    Convert `amount` from `from_currency` to `to_currency`:

        (amount / rate[from]) * rate[to]

    Unknown currencies fall back to rate 1 instead of raising.
    """
    return (float(amount) / get_rate(from_currency, rates)) * get_rate(to_currency, rates)


def format_amount(value: float) -> str:
    """Plain decimal text without a trailing ".0" (100.0 -> "100", 12.5 -> "12.5")."""
    text = repr(float(value))
    return text[:-2] if text.endswith(".0") else text
